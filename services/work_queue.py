"""Durable work queue backed by the queue_items table."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError

from models import database
from models.queue_item import (
    QueueItem, PENDING, PROCESSING, FAILED, TERMINAL_STATUSES,
)
from models.rss_feed import RssFeed

logger = logging.getLogger(__name__)


@dataclass
class ClaimedItem:
    """A claimed queue item joined with its feed's processing policy."""
    queue_id: int
    feed_id: int
    feed_name: str
    opportunity_type: str
    item_url: str
    item_title: str
    item_content: str
    item_image_url: Optional[str]
    enable_scraping: bool
    enable_ai_processing: bool
    auto_publish: bool
    ai_provider: Optional[str]
    ai_model: Optional[str]
    quality_threshold: float
    fallback_featured_image_url: Optional[str]
    attempts: int


class WorkQueue:
    """Claim, finalize and maintain queue items.

    Every operation is a single conditional statement in its own
    transaction, so overlapping workers coordinate through the database
    only.
    """

    def __init__(self, session_maker=None):
        self._session_maker = session_maker

    @property
    def session_maker(self):
        return self._session_maker or database.async_session_maker

    async def claim_next(self) -> Optional[ClaimedItem]:
        """Atomically move the oldest pending item to processing.

        The candidate is selected inside the UPDATE itself; re-checking
        ``status = 'pending'`` in the outer WHERE makes the transition a
        compare-and-set, so two callers can never both win the same row.
        """
        now = datetime.utcnow()
        candidate = (
            select(QueueItem.id)
            .where(QueueItem.status == PENDING)
            .order_by(QueueItem.created_at, QueueItem.id)
            .limit(1)
            .with_for_update(skip_locked=True)
            .scalar_subquery()
        )

        async with self.session_maker() as session:
            result = await session.execute(
                update(QueueItem)
                .where(QueueItem.id == candidate, QueueItem.status == PENDING)
                .values(
                    status=PROCESSING,
                    attempts=QueueItem.attempts + 1,
                    claimed_at=now,
                )
                .returning(QueueItem.id)
                .execution_options(synchronize_session=False)
            )
            queue_id = result.scalar_one_or_none()

            if queue_id is None:
                await session.commit()
                return None

            row = (await session.execute(
                select(QueueItem, RssFeed)
                .join(RssFeed, QueueItem.feed_id == RssFeed.id)
                .where(QueueItem.id == queue_id)
            )).one()
            await session.commit()

        item, feed = row
        logger.info(f"Claimed queue item {item.id} (attempt {item.attempts}): {item.item_title[:60]}")

        return ClaimedItem(
            queue_id=item.id,
            feed_id=feed.id,
            feed_name=feed.name,
            opportunity_type=item.opportunity_type,
            item_url=item.item_url,
            item_title=item.item_title,
            item_content=item.item_content or "",
            item_image_url=item.item_image_url,
            enable_scraping=bool(feed.enable_scraping),
            enable_ai_processing=bool(feed.enable_ai_processing),
            auto_publish=bool(feed.auto_publish),
            ai_provider=feed.ai_provider,
            ai_model=feed.ai_model,
            quality_threshold=feed.quality_threshold if feed.quality_threshold is not None else 0.6,
            fallback_featured_image_url=feed.fallback_featured_image_url,
            attempts=item.attempts,
        )

    async def finalize(self, queue_id: int, status: str, error_message: Optional[str] = None):
        """Move a processing item to a terminal status.

        Repeating a finalize with the same terminal status is a no-op.
        No-ops are logged, never raised.
        """
        if status not in TERMINAL_STATUSES:
            raise ValueError(f"Cannot finalize queue item with non-terminal status '{status}'")

        async with self.session_maker() as session:
            result = await session.execute(
                update(QueueItem)
                .where(QueueItem.id == queue_id, QueueItem.status == PROCESSING)
                .values(
                    status=status,
                    error_message=error_message,
                    completed_at=datetime.utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            await session.commit()

            if result.rowcount:
                logger.info(f"Queue item {queue_id} finalized as {status}")
                return

            current = (await session.execute(
                select(QueueItem.status).where(QueueItem.id == queue_id)
            )).scalar_one_or_none()

        if current == status:
            logger.info(f"Queue item {queue_id} already {status}, nothing to do")
        else:
            logger.warning(
                f"Queue item {queue_id} not finalized as {status}: current status is {current}"
            )

    async def enqueue(self, feed: RssFeed, items: List[Dict]) -> int:
        """Add feed entries as pending items, skipping URLs already queued.

        Returns the number of items added.
        """
        if not items:
            return 0

        urls = [item['url'] for item in items]
        added = 0

        async with self.session_maker() as session:
            result = await session.execute(
                select(QueueItem.item_url).where(
                    QueueItem.feed_id == feed.id,
                    QueueItem.item_url.in_(urls),
                )
            )
            existing = set(result.scalars().all())

            for item in items:
                if item['url'] in existing:
                    continue
                existing.add(item['url'])
                session.add(QueueItem(
                    feed_id=feed.id,
                    opportunity_type=feed.opportunity_type,
                    item_url=item['url'],
                    item_title=item['title'],
                    item_content=item.get('content', ''),
                    item_image_url=item.get('image_url'),
                    status=PENDING,
                ))
                added += 1

            try:
                await session.commit()
            except IntegrityError:
                # Another poller queued the same URLs concurrently
                await session.rollback()
                logger.warning(f"Concurrent enqueue detected for feed {feed.id}, batch skipped")
                return 0

        return added

    async def release_stale(self, timeout_minutes: int, max_attempts: int) -> Tuple[int, int]:
        """Recover items left in processing by a crashed worker.

        Items claimed more than ``timeout_minutes`` ago go back to pending,
        unless they already used ``max_attempts`` claims, in which case
        they are failed permanently.

        Returns:
            (requeued, failed) counts
        """
        cutoff = datetime.utcnow() - timedelta(minutes=timeout_minutes)

        async with self.session_maker() as session:
            failed = await session.execute(
                update(QueueItem)
                .where(
                    QueueItem.status == PROCESSING,
                    QueueItem.claimed_at < cutoff,
                    QueueItem.attempts >= max_attempts,
                )
                .values(
                    status=FAILED,
                    error_message=f"Exceeded {max_attempts} attempts",
                    completed_at=datetime.utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            requeued = await session.execute(
                update(QueueItem)
                .where(
                    QueueItem.status == PROCESSING,
                    QueueItem.claimed_at < cutoff,
                )
                .values(status=PENDING, claimed_at=None)
                .execution_options(synchronize_session=False)
            )
            await session.commit()

        if requeued.rowcount or failed.rowcount:
            logger.warning(
                f"Released stale queue items: {requeued.rowcount} requeued, {failed.rowcount} failed"
            )
        return requeued.rowcount, failed.rowcount

    async def status_counts(self) -> Dict[str, int]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(QueueItem.status, func.count()).group_by(QueueItem.status)
            )
            return {status: count for status, count in result.all()}
