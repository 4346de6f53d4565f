"""Persistence boundary used by the generation pipeline."""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update

from models import database
from models.opportunity import Opportunity
from models.rss_feed import RssFeed
from models.settings import AISetting, SystemSetting
from services.prompts import get_default_prompt

logger = logging.getLogger(__name__)


@dataclass
class ProviderCredentials:
    provider: Optional[str]
    model: str
    api_key: str


class ContentStore:
    """Narrow read/write surface over opportunities, feeds and settings."""

    def __init__(self, session_maker=None):
        self._session_maker = session_maker

    @property
    def session_maker(self):
        return self._session_maker or database.async_session_maker

    async def find_by_source_url(self, url: str) -> Optional[Opportunity]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(Opportunity).where(Opportunity.source_url == url).limit(1)
            )
            return result.scalars().first()

    async def insert_opportunity(self, opportunity: Opportunity) -> int:
        """Persist a new opportunity and return its id."""
        async with self.session_maker() as session:
            session.add(opportunity)
            await session.commit()
            await session.refresh(opportunity)
            return opportunity.id

    async def increment_feed_counters(self, feed_id: int, processed: int = 1, published: int = 0):
        """Add deltas to the feed counters in a single UPDATE.

        The increment is computed by the database so concurrent workers
        never lose an update.
        """
        async with self.session_maker() as session:
            await session.execute(
                update(RssFeed)
                .where(RssFeed.id == feed_id)
                .values(
                    total_processed=RssFeed.total_processed + processed,
                    total_published=RssFeed.total_published + published,
                    last_fetched=datetime.utcnow(),
                )
            )
            await session.commit()

    async def get_feed_config(self, feed_id: int) -> Optional[RssFeed]:
        async with self.session_maker() as session:
            return await session.get(RssFeed, feed_id)

    async def get_provider_credentials(self, provider: str) -> ProviderCredentials:
        """Stored model and key for a provider; empty values if none stored."""
        async with self.session_maker() as session:
            result = await session.execute(
                select(AISetting).where(AISetting.provider == provider)
            )
            setting = result.scalar_one_or_none()

        if not setting:
            logger.warning(f"No AI settings stored for provider '{provider}'")
            return ProviderCredentials(provider=provider, model="", api_key="")

        return ProviderCredentials(
            provider=provider,
            model=setting.model or "",
            api_key=setting.api_key or "",
        )

    async def get_active_provider(self) -> Optional[ProviderCredentials]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(AISetting)
                .where(AISetting.is_active == True)
                .order_by(AISetting.id)
                .limit(1)
            )
            setting = result.scalars().first()

        if not setting:
            return None

        return ProviderCredentials(
            provider=setting.provider,
            model=setting.model or "",
            api_key=setting.api_key or "",
        )

    async def get_prompt_template(self, opportunity_type: str) -> str:
        """Prompt stored under prompts.<type>, or the built-in default."""
        async with self.session_maker() as session:
            result = await session.execute(
                select(SystemSetting.value).where(
                    SystemSetting.key == f"prompts.{opportunity_type}"
                )
            )
            value = result.scalar_one_or_none()

        if value:
            return value
        return get_default_prompt(opportunity_type)
