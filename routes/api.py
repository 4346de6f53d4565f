import logging
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy import select, func

import config
from auth import verify_cron_secret
from models import database
from models.opportunity import Opportunity
from models.rss_feed import RssFeed
from services.scheduler import ProcessingService
from services.work_queue import WorkQueue

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/process-queue", dependencies=[Depends(verify_cron_secret)])
async def process_queue():
    """Worker entry point: claim and process at most one queue item."""
    outcome = await ProcessingService.run_queue_worker()
    if outcome.error:
        return JSONResponse(outcome.to_dict(), status_code=500)
    return outcome.to_dict()


@router.post("/fetch-feeds", dependencies=[Depends(verify_cron_secret)])
async def fetch_feeds(limit_feeds: int = None, limit_items: int = None):
    """
    Poll enabled feeds and queue new items.

    Args:
        limit_feeds: Number of feeds to poll (default: all)
        limit_items: Items queued per feed (default: MAX_ITEMS_PER_FEED)
    """
    try:
        summary = await ProcessingService.run_feed_polling(
            limit_feeds=limit_feeds,
            limit_items_per_feed=limit_items
        )
    except Exception as e:
        logger.error(f"Feed polling failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Feed polling failed: {str(e)}")

    return {"status": "success", **summary}


@router.post("/release-stale", dependencies=[Depends(verify_cron_secret)])
async def release_stale():
    """Requeue or fail items stuck in processing."""
    requeued, failed = await ProcessingService.release_stale_items()
    return {
        "requeued": requeued,
        "failed": failed,
        "timeout_minutes": config.STALE_CLAIM_MINUTES,
        "max_attempts": config.MAX_QUEUE_ATTEMPTS
    }


@router.get("/stats")
async def get_stats():
    """JSON endpoint for queue and opportunity statistics."""
    queue_counts = await WorkQueue().status_counts()

    async with database.async_session_maker() as session:
        result = await session.execute(
            select(Opportunity.status, func.count()).group_by(Opportunity.status)
        )
        opportunity_counts = {status: count for status, count in result.all()}

    return {
        "queue": {
            status: queue_counts.get(status, 0)
            for status in ("pending", "processing", "completed", "failed", "duplicate")
        },
        "opportunities": {
            status: opportunity_counts.get(status, 0)
            for status in ("draft", "published", "rejected")
        }
    }


@router.get("/feeds")
async def list_feeds():
    """List all feeds with their processing policy and counters."""
    async with database.async_session_maker() as session:
        result = await session.execute(
            select(RssFeed).order_by(RssFeed.name)
        )
        feeds = result.scalars().all()

        feed_list = []
        for feed in feeds:
            feed_list.append({
                "id": feed.id,
                "name": feed.name,
                "feed_url": feed.feed_url,
                "opportunity_type": feed.opportunity_type,
                "enabled": feed.enabled,
                "ai_provider": feed.ai_provider,
                "ai_model": feed.ai_model,
                "enable_scraping": feed.enable_scraping,
                "enable_ai_processing": feed.enable_ai_processing,
                "auto_publish": feed.auto_publish,
                "quality_threshold": feed.quality_threshold,
                "total_processed": feed.total_processed,
                "total_published": feed.total_published,
                "last_fetched": feed.last_fetched.isoformat() if feed.last_fetched else None,
                "last_error": feed.last_error
            })

        return {
            "total": len(feed_list),
            "feeds": feed_list
        }
