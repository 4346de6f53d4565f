"""Source-URL duplicate detection."""
import logging

from services.content_store import ContentStore

logger = logging.getLogger(__name__)


class Deduplicator:
    """Check whether a source URL already produced an opportunity.

    The check is advisory: two queue items for the same URL claimed at the
    same moment can both pass it.
    """

    def __init__(self, store: ContentStore):
        self.store = store

    async def exists(self, source_url: str) -> bool:
        existing = await self.store.find_by_source_url(source_url)
        if existing:
            logger.info(f"Duplicate detected: opportunity {existing.id} has source_url {source_url}")
            return True
        return False
