"""Runtime configuration read from environment variables."""
import os

# Database
DATABASE_URL = os.getenv("DATABASE_URL")

# Worker endpoint protection
CRON_SECRET = os.getenv("CRON_SECRET", "")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Scheduler
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() in ("1", "true", "yes")
SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", "UTC")
QUEUE_INTERVAL_SECONDS = int(os.getenv("QUEUE_INTERVAL_SECONDS", "60"))
FEED_POLL_CRON_MINUTE = os.getenv("FEED_POLL_CRON_MINUTE", "*/15")

# Queue policy
STALE_CLAIM_MINUTES = int(os.getenv("STALE_CLAIM_MINUTES", "15"))
MAX_QUEUE_ATTEMPTS = int(os.getenv("MAX_QUEUE_ATTEMPTS", "3"))
MAX_ITEMS_PER_FEED = int(os.getenv("MAX_ITEMS_PER_FEED", "10"))

# Outbound HTTP
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "60"))
