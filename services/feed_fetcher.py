"""RSS feed fetching and parsing service."""
import logging
import re
import feedparser
import httpx
from typing import List, Dict, Optional

import config

logger = logging.getLogger(__name__)

FEED_USER_AGENT = "Mozilla/5.0 (compatible; GellobitRSS/1.0)"

_IMG_SRC = re.compile(r"<img[^>]+src=[\"']([^\"']+)[\"']", re.IGNORECASE)


class FeedFetcher:
    """Fetch and parse RSS feeds."""

    @staticmethod
    async def fetch_feed(feed_url: str, max_items: int = 50,
                         client: Optional[httpx.AsyncClient] = None) -> List[Dict]:
        """Fetch and parse a single RSS feed.

        Args:
            feed_url: URL of the RSS feed
            max_items: Maximum number of items to return
            client: Optional shared HTTP client

        Returns:
            List of feed items with normalized fields
        """
        try:
            headers = {"User-Agent": FEED_USER_AGENT}
            if client is not None:
                response = await client.get(feed_url, headers=headers, follow_redirects=True)
            else:
                async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS) as http:
                    response = await http.get(feed_url, headers=headers, follow_redirects=True)
            response.raise_for_status()

            # Parse feed (feedparser handles various formats)
            feed = feedparser.parse(response.text)

            if feed.bozo:
                # Feed has parsing errors
                logger.warning(f"Feed parsing errors for {feed_url}: {feed.bozo_exception}")

            items = []
            for entry in feed.entries[:max_items]:
                content = FeedFetcher._extract_content(entry)
                item = {
                    'url': entry.get('link', '') or entry.get('id', ''),
                    'title': entry.get('title', ''),
                    'content': content,
                    'image_url': FeedFetcher._extract_image(entry, content)
                }

                # Only include items with a URL and a title
                if item['url'] and item['title']:
                    items.append(item)

            logger.info(f"Fetched {len(items)} items from {feed_url}")
            return items

        except Exception as e:
            logger.error(f"Failed to fetch feed {feed_url}: {e}")
            return []

    @staticmethod
    def _extract_content(entry) -> str:
        """Extract content from feed entry, trying various fields."""
        # Try content field first
        if hasattr(entry, 'content') and entry.content:
            return entry.content[0].get('value', '')

        # Try description
        if hasattr(entry, 'description'):
            return entry.description

        # Fall back to summary
        if hasattr(entry, 'summary'):
            return entry.summary

        return ''

    @staticmethod
    def _extract_image(entry, content: str) -> Optional[str]:
        """Enclosure, media:content/thumbnail, then the first <img> in the body."""
        for enclosure in entry.get('enclosures', []):
            if enclosure.get('type', '').startswith('image') and enclosure.get('href'):
                return enclosure['href']

        for key in ('media_content', 'media_thumbnail'):
            for media in entry.get(key, []):
                if media.get('url'):
                    return media['url']

        match = _IMG_SRC.search(content or '')
        return match.group(1) if match else None
