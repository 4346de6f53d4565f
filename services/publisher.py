"""Persist generated opportunities and close out queue items."""
import logging
import re
import time
from typing import Optional

from models.opportunity import Opportunity, DRAFT, PUBLISHED, REJECTED
from models.queue_item import COMPLETED
from services.content_store import ContentStore
from services.response_parser import GenerationResult
from services.work_queue import ClaimedItem, WorkQueue

logger = logging.getLogger(__name__)

SLUG_BASE_LENGTH = 100
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_slug(title: str, now_ms: Optional[int] = None) -> str:
    """URL-safe slug from a title plus a base36 millisecond timestamp."""
    base = (title or "").lower()
    base = re.sub(r"[^a-z0-9\s-]", "", base)
    base = re.sub(r"\s+", "-", base.strip())
    base = re.sub(r"-+", "-", base)
    base = base[:SLUG_BASE_LENGTH].strip("-") or "opportunity"

    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{base}-{to_base36(now_ms)}"


class Publisher:
    """Write the final opportunity record, bump counters, finalize the item."""

    def __init__(self, store: ContentStore, queue: WorkQueue):
        self.store = store
        self.queue = queue

    async def publish(self, item: ClaimedItem, result: GenerationResult, provider: str) -> int:
        status = PUBLISHED if item.auto_publish else DRAFT
        title = result.title or item.item_title

        opportunity = Opportunity(
            title=title,
            slug=generate_slug(title),
            excerpt=result.excerpt or "",
            content=result.content,
            opportunity_type=item.opportunity_type,
            source_url=item.item_url,
            source_feed_id=item.feed_id,
            status=status,
            confidence_score=result.confidence_score,
            ai_provider=provider,
            deadline=result.deadline,
            prize_value=result.prize_value,
            location=result.location,
            featured_image_url=item.item_image_url or item.fallback_featured_image_url or None,
        )
        opportunity_id = await self.store.insert_opportunity(opportunity)

        await self.store.increment_feed_counters(
            item.feed_id, processed=1, published=1 if status == PUBLISHED else 0
        )
        await self.queue.finalize(item.queue_id, COMPLETED)

        logger.info(f"✓ Created opportunity {opportunity_id} '{title}' ({status})")
        return opportunity_id

    async def reject(self, item: ClaimedItem, result: GenerationResult,
                     reason: str, provider: str) -> int:
        """Store a rejected record for audit; counts as processed, not published."""
        title = result.title or item.item_title

        opportunity = Opportunity(
            title=title,
            slug=generate_slug(title),
            content="",
            opportunity_type=item.opportunity_type,
            source_url=item.item_url,
            source_feed_id=item.feed_id,
            status=REJECTED,
            rejection_reason=reason,
            confidence_score=result.confidence_score,
            ai_provider=provider,
        )
        opportunity_id = await self.store.insert_opportunity(opportunity)

        await self.store.increment_feed_counters(item.feed_id, processed=1, published=0)
        await self.queue.finalize(item.queue_id, COMPLETED, f"Rejected: {reason}")

        logger.info(f"Rejected '{title}': {reason}")
        return opportunity_id
