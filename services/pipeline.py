"""Queue worker: process one claimed item end to end."""
import logging
import time
from dataclasses import dataclass, asdict
from typing import Optional

from models.queue_item import COMPLETED, DUPLICATE, FAILED
from services.ai_providers import ProviderError, ProviderGateway
from services.content_store import ContentStore
from services.deduplicator import Deduplicator
from services.publisher import Publisher
from services.quality_gate import decide
from services.response_parser import parse_ai_response
from services.scraper import ContentScraper, ScrapedContent
from services.work_queue import ClaimedItem, WorkQueue

logger = logging.getLogger(__name__)


@dataclass
class PipelineOutcome:
    processed: bool
    duplicate: bool = False
    rejected: bool = False
    opportunity_id: Optional[int] = None
    status: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
    execution_time_ms: Optional[int] = None

    def to_dict(self):
        return {key: value for key, value in asdict(self).items() if value is not None}


class PipelineOrchestrator:
    """Claims at most one queue item per call and runs it through
    dedup, scraping, generation, quality gate and publishing.

    Content outcomes (duplicate, rejected, AI disabled) are normal
    results. Vendor and store failures mark the item failed and are
    reported through ``PipelineOutcome.error``.
    """

    def __init__(self, store: Optional[ContentStore] = None,
                 queue: Optional[WorkQueue] = None,
                 scraper: Optional[ContentScraper] = None,
                 gateway: Optional[ProviderGateway] = None,
                 deduplicator: Optional[Deduplicator] = None,
                 publisher: Optional[Publisher] = None):
        self.store = store or ContentStore()
        self.queue = queue or WorkQueue()
        self.scraper = scraper or ContentScraper()
        self.gateway = gateway or ProviderGateway(self.store)
        self.deduplicator = deduplicator or Deduplicator(self.store)
        self.publisher = publisher or Publisher(self.store, self.queue)

    async def process_next(self) -> PipelineOutcome:
        start_time = time.monotonic()

        item = await self.queue.claim_next()
        if item is None:
            logger.info("No items in queue")
            return PipelineOutcome(processed=False, message="No items in queue")

        logger.info(f"Processing '{item.item_title}' from feed '{item.feed_name}'")

        try:
            outcome = await self._process(item)
        except ProviderError as e:
            logger.error(f"AI generation failed for queue item {item.queue_id}: {e}")
            await self._fail(item, f"AI error: {e}")
            outcome = PipelineOutcome(processed=False, error=f"AI generation failed: {e}")
        except Exception as e:
            logger.error(f"Processing failed for queue item {item.queue_id}: {e}", exc_info=True)
            await self._fail(item, str(e))
            outcome = PipelineOutcome(processed=False, error=str(e))

        outcome.execution_time_ms = int((time.monotonic() - start_time) * 1000)
        return outcome

    async def _process(self, item: ClaimedItem) -> PipelineOutcome:
        if await self.deduplicator.exists(item.item_url):
            await self.queue.finalize(item.queue_id, DUPLICATE, "Already exists in opportunities")
            return PipelineOutcome(processed=True, duplicate=True, message="Duplicate skipped")

        content = ScrapedContent(title=item.item_title, content=item.item_content, url=item.item_url)

        if item.enable_scraping:
            content = await self._scrape(item, content)

        if not item.enable_ai_processing:
            logger.info(f"AI processing disabled for feed '{item.feed_name}', skipping")
            await self.queue.finalize(item.queue_id, COMPLETED, "AI processing disabled")
            return PipelineOutcome(processed=True, message="AI processing disabled")

        provider_config = await self.gateway.resolve_provider(item.ai_provider, item.ai_model)
        template = await self.store.get_prompt_template(item.opportunity_type)

        raw_text = await self.gateway.generate(content, item.opportunity_type, template, provider_config)
        result = parse_ai_response(raw_text, content.title or item.item_title)

        provider = provider_config.provider.value
        decision = decide(result, item.quality_threshold)

        if not decision.accept:
            opportunity_id = await self.publisher.reject(item, result, decision.reason, provider)
            return PipelineOutcome(
                processed=True, rejected=True, opportunity_id=opportunity_id,
                status="rejected", message=decision.reason,
            )

        opportunity_id = await self.publisher.publish(item, result, provider)
        return PipelineOutcome(
            processed=True, opportunity_id=opportunity_id,
            status="published" if item.auto_publish else "draft",
            message=result.title,
        )

    async def _scrape(self, item: ClaimedItem, content: ScrapedContent) -> ScrapedContent:
        """Enrich with the scraped page; any failure keeps the feed content."""
        logger.info(f"Scraping {item.item_url}...")
        try:
            scraped = await self.scraper.fetch(item.item_url)
        except Exception as e:
            logger.warning(f"Scraping failed, using RSS content: {e}")
            return content

        if not scraped or not scraped.content:
            return content

        return ScrapedContent(
            title=scraped.title or content.title,
            content=scraped.content,
            url=item.item_url,
        )

    async def _fail(self, item: ClaimedItem, message: str):
        try:
            await self.queue.finalize(item.queue_id, FAILED, message)
        except Exception as e:
            logger.error(f"Could not mark queue item {item.queue_id} as failed: {e}")
