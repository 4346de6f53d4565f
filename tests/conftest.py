"""
Pytest configuration and fixtures for the pipeline tests.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CRON_SECRET", "test-secret")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from datetime import datetime
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app import app
from models.database import Base
from models.opportunity import Opportunity
from models.queue_item import QueueItem, PENDING
from models.rss_feed import RssFeed
from models.settings import AISetting, SystemSetting
from services.ai_providers import Provider, ProviderConfig
from services.content_store import ContentStore
from services.work_queue import WorkQueue


@pytest.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a test database engine.

    A file database is used so concurrent sessions get real connections.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def db_session(session_maker):
    """Create a test database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def store(session_maker):
    return ContentStore(session_maker)


@pytest.fixture
def queue(session_maker):
    return WorkQueue(session_maker)


@pytest.fixture(scope="function")
async def client(session_maker):
    """Create a test client."""
    from models import database

    # Override the database session maker
    original_session_maker = database.async_session_maker
    database.async_session_maker = session_maker

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    # Restore original session maker
    database.async_session_maker = original_session_maker


@pytest.fixture
def make_feed(session_maker):
    """Factory inserting an RssFeed with sensible defaults."""
    counter = {"n": 0}

    async def _make_feed(**overrides):
        counter["n"] += 1
        values = {
            "name": f"Test Feed {counter['n']}",
            "feed_url": f"https://feeds.example.com/{counter['n']}.rss",
            "opportunity_type": "scholarship",
            "enable_scraping": False,
            "enable_ai_processing": True,
            "auto_publish": True,
            "quality_threshold": 0.6,
            "total_processed": 0,
            "total_published": 0,
        }
        values.update(overrides)
        feed = RssFeed(**values)
        async with session_maker() as session:
            session.add(feed)
            await session.commit()
            await session.refresh(feed)
        return feed

    return _make_feed


@pytest.fixture
def make_queue_item(session_maker):
    """Factory inserting a pending QueueItem for a feed."""
    counter = {"n": 0}

    async def _make_queue_item(feed, **overrides):
        counter["n"] += 1
        values = {
            "feed_id": feed.id,
            "opportunity_type": feed.opportunity_type,
            "item_url": f"https://example.com/item-{counter['n']}",
            "item_title": f"Item {counter['n']}",
            "item_content": "Apply now for the Example Scholarship worth $5,000.",
            "status": PENDING,
            "attempts": 0,
            "created_at": datetime(2026, 1, 1, 12, 0, counter["n"] % 60),
        }
        values.update(overrides)
        item = QueueItem(**values)
        async with session_maker() as session:
            session.add(item)
            await session.commit()
            await session.refresh(item)
        return item

    return _make_queue_item


@pytest.fixture
async def ai_settings(session_maker):
    """Stored provider credentials: OpenAI active, Anthropic and Gemini stored."""
    async with session_maker() as session:
        session.add_all([
            AISetting(provider="openai", model="gpt-4o", api_key="sk-openai", is_active=True),
            AISetting(provider="anthropic", model="claude-3-5-sonnet", api_key="sk-ant", is_active=False),
            AISetting(provider="gemini", model="", api_key="gm-key", is_active=False),
        ])
        await session.commit()


class FakeGateway:
    """ProviderGateway stand-in returning a canned completion."""

    def __init__(self, response='{"valid": true, "title": "Generated", "confidence_score": 0.9}',
                 error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def resolve_provider(self, provider=None, model=None):
        return ProviderConfig(provider=Provider.parse(provider), model=model or "test-model", api_key="key")

    async def generate(self, content, opportunity_type, template, cfg):
        self.calls.append({
            "content": content,
            "opportunity_type": opportunity_type,
            "template": template,
            "config": cfg,
        })
        if self.error:
            raise self.error
        return self.response


class FakeScraper:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def fetch(self, url):
        self.calls.append(url)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def fake_scraper():
    return FakeScraper()
