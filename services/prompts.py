"""Prompt assembly for opportunity generation."""
import re
from typing import Tuple

PROMPT_CONTENT_LIMIT = 5000

_PLACEHOLDER = re.compile(r"\{(title|content|url|opportunity_type)\}")

DEFAULT_PROMPT = """You are a content specialist. Analyze the provided content and generate a well-structured article.

If the content is NOT a valid {opportunity_type} opportunity, respond with: invalid_content

Otherwise, provide your response in this exact format:
[gpt]
A brief 20-word excerpt for SEO
[gpt]
An engaging SEO-optimized title
[gpt]
<article>
Full HTML article content here...
</article>

Requirements:
- Title should be catchy and SEO-friendly
- Content should be well-formatted HTML
- Include relevant details like deadlines, prizes, requirements
- Keep the tone professional but engaging"""


def get_default_prompt(opportunity_type: str) -> str:
    # Placeholders other than {opportunity_type} are filled at generation time
    return DEFAULT_PROMPT.replace("{opportunity_type}", opportunity_type)


def build_prompts(title: str, content: str, url: str,
                  opportunity_type: str, template: str) -> Tuple[str, str]:
    """Return (system_prompt, user_message) for one source item."""
    content = (content or "")[:PROMPT_CONTENT_LIMIT]
    values = {
        "title": title or "",
        "content": content,
        "url": url or "",
        "opportunity_type": opportunity_type,
    }

    # One pass, so placeholder text inside substituted values stays literal
    system_prompt = _PLACEHOLDER.sub(lambda m: values[m.group(1)], template)

    user_message = f"""Process this content and generate an article:

Title: {title}
URL: {url}
Content: {content}"""

    return system_prompt, user_message
