import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
import pytz

import config
from models.database import init_db
from routes.api import router as api_router
from services.scheduler import ProcessingService

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def register_jobs(target: AsyncIOScheduler):
    """Register the queue worker, feed polling and stale-claim jobs."""
    tz = pytz.timezone(config.SCHEDULER_TIMEZONE)

    target.add_job(
        ProcessingService.run_queue_worker,
        IntervalTrigger(seconds=config.QUEUE_INTERVAL_SECONDS, timezone=tz),
        id='process_queue_item',
        max_instances=1,
        coalesce=True,
        replace_existing=True
    )
    target.add_job(
        ProcessingService.run_feed_polling,
        CronTrigger(minute=config.FEED_POLL_CRON_MINUTE, timezone=tz),
        id='fetch_feeds',
        max_instances=1,
        coalesce=True,
        replace_existing=True
    )
    target.add_job(
        ProcessingService.release_stale_items,
        IntervalTrigger(minutes=config.STALE_CLAIM_MINUTES, timezone=tz),
        id='release_stale_items',
        replace_existing=True
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown tasks."""
    # Startup
    logger.info("Starting Gellobit feed pipeline...")

    # Initialize database
    await init_db()
    logger.info("Database initialized")

    if config.SCHEDULER_ENABLED:
        register_jobs(scheduler)
        scheduler.start()
        logger.info(
            f"Scheduler started - queue every {config.QUEUE_INTERVAL_SECONDS}s, "
            f"feeds at minute '{config.FEED_POLL_CRON_MINUTE}' ({config.SCHEDULER_TIMEZONE})"
        )

    yield

    # Shutdown
    if scheduler.running:
        scheduler.shutdown()
    logger.info("Application shutdown complete")

# Create FastAPI app
app = FastAPI(
    title="Gellobit Pipeline",
    description="Queue-driven RSS ingestion and AI opportunity generation",
    version="1.0.0",
    lifespan=lifespan
)

# Include routers
app.include_router(api_router, prefix="/api")

@app.get("/health")
async def health_check():
    """Health check endpoint for deployment."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "version": "1.0.0"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True)
