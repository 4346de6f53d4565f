"""Source page scraping and main-content extraction."""
import logging
import re
from dataclasses import dataclass
from typing import Optional

import httpx
from bs4 import BeautifulSoup

import config

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 10000

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)

# Tried in order, first match wins; falls back to <body>
CONTENT_SELECTORS = [
    "article",
    '[role="main"]',
    "main",
    ".content",
    "#content",
]

NOISE_SELECTOR = "script, style, nav, footer, header, aside, .sidebar, .menu, .comments"


@dataclass
class ScrapedContent:
    title: str
    content: str
    url: str


def extract_content(html: str, url: str) -> ScrapedContent:
    """Pull the title and main text out of an HTML document."""
    soup = BeautifulSoup(html, "html.parser")

    title = ""
    for tag_name in ("title", "h1"):
        tag = soup.find(tag_name)
        if tag and tag.get_text(strip=True):
            title = tag.get_text(strip=True)
            break

    container = None
    for selector in CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is not None:
            break
    if container is None:
        container = soup.body or soup

    for element in container.select(NOISE_SELECTOR):
        element.extract()

    text = container.get_text(separator=" ", strip=True)
    text = re.sub(r"\s+", " ", text).strip()

    return ScrapedContent(title=title, content=text[:MAX_CONTENT_LENGTH], url=url)


class ContentScraper:
    """Fetch a page and extract its readable content."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None,
                 timeout: float = config.HTTP_TIMEOUT_SECONDS):
        self.client = client
        self.timeout = timeout

    async def fetch(self, url: str) -> Optional[ScrapedContent]:
        """Scrape a URL.

        Returns None on a non-success HTTP status. Network and parse
        errors propagate so the caller can log them and carry on with
        the feed-supplied content.
        """
        headers = {"User-Agent": USER_AGENT}

        if self.client is not None:
            response = await self.client.get(url, headers=headers, follow_redirects=True)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=headers, follow_redirects=True)

        if not response.is_success:
            logger.info(f"Scrape of {url} returned HTTP {response.status_code}")
            return None

        scraped = extract_content(response.text, url)
        logger.info(f"Scraped {len(scraped.content)} characters from {url}")
        return scraped
