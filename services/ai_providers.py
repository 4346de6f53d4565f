"""LLM provider gateway.

Resolves which provider, model and key apply to a feed, assembles the
prompt, and issues one request in the vendor's own wire shape:

- OpenAI and DeepSeek share the chat-completions shape
- Anthropic goes through the official SDK (messages API)
- Gemini uses generateContent with the key in the query string
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

import anthropic
import httpx

import config
from services.content_store import ContentStore
from services.prompts import build_prompts
from services.scraper import ScrapedContent

logger = logging.getLogger(__name__)

TEMPERATURE = 0.7
MAX_TOKENS = 2000

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
DEEPSEEK_URL = "https://api.deepseek.com/v1/chat/completions"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    DEEPSEEK = "deepseek"

    @classmethod
    def parse(cls, name: Optional[str]) -> "Provider":
        """Map a stored provider name to a Provider, defaulting to OpenAI."""
        try:
            return cls((name or "").strip().lower())
        except ValueError:
            if name:
                logger.warning(f"Unknown AI provider '{name}', using OpenAI-compatible request")
            return cls.OPENAI


DEFAULT_MODELS = {
    Provider.OPENAI: "gpt-4o-mini",
    Provider.ANTHROPIC: "claude-3-haiku-20240307",
    Provider.GEMINI: "gemini-2.0-flash-exp",
    Provider.DEEPSEEK: "deepseek-chat",
}


class ProviderError(Exception):
    """A vendor call failed; fatal to the queue item being processed."""

    def __init__(self, provider: str, message: str,
                 status_code: Optional[int] = None, body: Optional[str] = None):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            message = f"{message}: {status_code} - {body}"
        super().__init__(message)


@dataclass
class ProviderConfig:
    provider: Provider
    model: str
    api_key: str = field(repr=False)


@dataclass
class AIRequest:
    url: str
    headers: Dict[str, str]
    json: Dict
    params: Dict[str, str] = field(default_factory=dict)


def build_chat_completion_request(url: str, cfg: ProviderConfig,
                                  system_prompt: str, user_message: str) -> AIRequest:
    return AIRequest(
        url=url,
        headers={
            "Authorization": f"Bearer {cfg.api_key}",
            "Content-Type": "application/json",
        },
        json={
            "model": cfg.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
        },
    )


def extract_chat_completion_text(payload: Dict) -> str:
    choices = payload.get("choices") or [{}]
    return ((choices[0].get("message") or {}).get("content")) or ""


def build_gemini_request(cfg: ProviderConfig, system_prompt: str, user_message: str) -> AIRequest:
    return AIRequest(
        url=GEMINI_URL.format(model=cfg.model),
        headers={"Content-Type": "application/json"},
        params={"key": cfg.api_key},
        json={
            "contents": [
                {"parts": [{"text": f"{system_prompt}\n\n{user_message}"}]}
            ],
            "generationConfig": {
                "temperature": TEMPERATURE,
                "maxOutputTokens": MAX_TOKENS,
            },
        },
    )


def extract_gemini_text(payload: Dict) -> str:
    candidates = payload.get("candidates") or [{}]
    parts = (candidates[0].get("content") or {}).get("parts") or [{}]
    return parts[0].get("text") or ""


RequestBuilder = Callable[[ProviderConfig, str, str], AIRequest]
TextExtractor = Callable[[Dict], str]

# Providers spoken to over plain HTTP; Anthropic uses its SDK
HTTP_PROVIDERS: Dict[Provider, Tuple[RequestBuilder, TextExtractor]] = {
    Provider.OPENAI: (
        lambda cfg, system, user: build_chat_completion_request(OPENAI_URL, cfg, system, user),
        extract_chat_completion_text,
    ),
    Provider.DEEPSEEK: (
        lambda cfg, system, user: build_chat_completion_request(DEEPSEEK_URL, cfg, system, user),
        extract_chat_completion_text,
    ),
    Provider.GEMINI: (build_gemini_request, extract_gemini_text),
}


class ProviderGateway:
    """Single entry point for content generation across LLM vendors."""

    def __init__(self, store: ContentStore, client: Optional[httpx.AsyncClient] = None,
                 timeout: float = config.AI_TIMEOUT_SECONDS,
                 anthropic_factory: Callable = anthropic.AsyncAnthropic):
        self.store = store
        # Used for the plain-HTTP providers only; the Anthropic SDK owns its transport
        self.client = client
        self.timeout = timeout
        self.anthropic_factory = anthropic_factory

    async def resolve_provider(self, provider: Optional[str] = None,
                               model: Optional[str] = None) -> ProviderConfig:
        """Work out provider, model and key for a feed.

        A feed-level provider uses that provider's stored credentials, with
        the feed's model taking precedence over the stored one. Without a
        feed-level provider the globally active setting is used.
        """
        if provider:
            creds = await self.store.get_provider_credentials(provider)
            resolved = Provider.parse(provider)
            chosen_model = model or creds.model
        else:
            creds = await self.store.get_active_provider()
            if creds is None:
                logger.warning("No active AI provider configured, defaulting to OpenAI")
                return ProviderConfig(
                    provider=Provider.OPENAI,
                    model=DEFAULT_MODELS[Provider.OPENAI],
                    api_key="",
                )
            resolved = Provider.parse(creds.provider)
            chosen_model = creds.model

        return ProviderConfig(
            provider=resolved,
            model=chosen_model or DEFAULT_MODELS[resolved],
            api_key=creds.api_key,
        )

    async def generate(self, content: ScrapedContent, opportunity_type: str,
                       template: str, cfg: ProviderConfig) -> str:
        """Generate raw article text for one source item.

        Raises:
            ProviderError: missing key, transport failure, non-2xx status
                or an empty completion
        """
        if not cfg.api_key:
            raise ProviderError(cfg.provider.value, f"No API key configured for {cfg.provider.value}")

        system_prompt, user_message = build_prompts(
            content.title, content.content, content.url, opportunity_type, template
        )

        logger.info(f"Generating content with {cfg.provider.value}/{cfg.model}...")

        if cfg.provider is Provider.ANTHROPIC:
            text = await self._generate_anthropic(cfg, system_prompt, user_message)
        else:
            builder, extractor = HTTP_PROVIDERS[cfg.provider]
            payload = await self._post(cfg, builder(cfg, system_prompt, user_message))
            text = extractor(payload)

        if not text.strip():
            raise ProviderError(cfg.provider.value, "Empty response from provider")
        return text

    async def _post(self, cfg: ProviderConfig, request: AIRequest) -> Dict:
        try:
            if self.client is not None:
                response = await self.client.post(
                    request.url, headers=request.headers,
                    params=request.params, json=request.json,
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        request.url, headers=request.headers,
                        params=request.params, json=request.json,
                    )
        except httpx.HTTPError as e:
            raise ProviderError(cfg.provider.value, f"AI API request failed: {e}") from e

        if not response.is_success:
            raise ProviderError(
                cfg.provider.value, "AI API error",
                status_code=response.status_code, body=response.text,
            )
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(
                cfg.provider.value, "AI API returned a non-JSON body",
                status_code=response.status_code, body=response.text,
            ) from e

    async def _generate_anthropic(self, cfg: ProviderConfig,
                                  system_prompt: str, user_message: str) -> str:
        async with self.anthropic_factory(
            api_key=cfg.api_key, max_retries=0, timeout=self.timeout,
        ) as client:
            try:
                message = await client.messages.create(
                    model=cfg.model,
                    max_tokens=MAX_TOKENS,
                    system=system_prompt,
                    messages=[{"role": "user", "content": user_message}],
                )
            except anthropic.APIStatusError as e:
                raise ProviderError(
                    cfg.provider.value, "AI API error",
                    status_code=e.status_code, body=e.response.text,
                ) from e
            except anthropic.APIConnectionError as e:
                raise ProviderError(cfg.provider.value, f"AI API request failed: {e}") from e

        if not message.content:
            return ""
        return getattr(message.content[0], "text", "") or ""
