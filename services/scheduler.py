import logging
from datetime import datetime
from sqlalchemy import select, update

import config
from models import database
from models.rss_feed import RssFeed
from services.feed_fetcher import FeedFetcher
from services.pipeline import PipelineOrchestrator, PipelineOutcome
from services.work_queue import WorkQueue

logger = logging.getLogger(__name__)

class ProcessingService:
    """Entry points for the periodic jobs registered with APScheduler."""

    @staticmethod
    async def run_queue_worker() -> PipelineOutcome:
        """Process at most one queued item."""
        outcome = await PipelineOrchestrator().process_next()
        if outcome.error:
            logger.error(f"Queue worker finished with error: {outcome.error}")
        return outcome

    @staticmethod
    async def release_stale_items():
        """Requeue items stuck in processing after a crashed worker."""
        return await WorkQueue().release_stale(
            config.STALE_CLAIM_MINUTES, config.MAX_QUEUE_ATTEMPTS
        )

    @staticmethod
    async def run_feed_polling(limit_feeds: int = None, limit_items_per_feed: int = None,
                               session_maker=None, client=None):
        """
        Poll enabled RSS feeds and queue their new items.

        Args:
            limit_feeds: Limit number of feeds to poll (for testing)
            limit_items_per_feed: Items queued per feed (default: MAX_ITEMS_PER_FEED)

        Returns:
            Summary dict with feed and item counts
        """
        session_maker = session_maker or database.async_session_maker
        max_items = limit_items_per_feed or config.MAX_ITEMS_PER_FEED
        queue = WorkQueue(session_maker)

        logger.info("=" * 70)
        logger.info(f"Starting feed polling at {datetime.utcnow()}")
        logger.info("=" * 70)

        async with session_maker() as session:
            query = select(RssFeed).where(RssFeed.enabled == True).order_by(RssFeed.id)
            if limit_feeds:
                query = query.limit(limit_feeds)

            result = await session.execute(query)
            feeds = result.scalars().all()

        logger.info(f"Polling {len(feeds)} feeds...")

        total_found = 0
        total_queued = 0

        for feed in feeds:
            logger.info(f"Polling feed: {feed.name}")

            items = await FeedFetcher.fetch_feed(feed.feed_url, max_items=max_items, client=client)
            total_found += len(items)

            values = {"last_fetched": datetime.utcnow()}
            if items:
                queued = await queue.enqueue(feed, items)
                total_queued += queued
                values["last_error"] = None
                logger.info(f"✓ Queued {queued} new items for {feed.name}")
            else:
                values["last_error"] = "No items fetched"

            async with session_maker() as session:
                await session.execute(
                    update(RssFeed).where(RssFeed.id == feed.id).values(**values)
                )
                await session.commit()

        logger.info("=" * 70)
        logger.info("✓ Feed polling complete!")
        logger.info(f"  Feeds polled: {len(feeds)}")
        logger.info(f"  Items found: {total_found}")
        logger.info(f"  Items queued: {total_queued}")
        logger.info("=" * 70)

        return {
            "feeds_polled": len(feeds),
            "items_found": total_found,
            "items_queued": total_queued,
        }
