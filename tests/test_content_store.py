"""
Tests for the content store boundary.
"""
import asyncio
import pytest

from models.opportunity import Opportunity
from models.settings import SystemSetting


@pytest.mark.asyncio
async def test_find_by_source_url(store):
    await store.insert_opportunity(Opportunity(
        title="Existing", slug="existing-abc", opportunity_type="contest",
        source_url="https://example.com/x", status="draft",
    ))

    found = await store.find_by_source_url("https://example.com/x")

    assert found is not None
    assert found.slug == "existing-abc"
    assert await store.find_by_source_url("https://example.com/other") is None


@pytest.mark.asyncio
async def test_increment_feed_counters_under_concurrency(store, make_feed):
    """Test that concurrent increments are not lost."""
    feed = await make_feed()

    await asyncio.gather(*[
        store.increment_feed_counters(feed.id, processed=1, published=i % 2)
        for i in range(6)
    ])

    stored = await store.get_feed_config(feed.id)
    assert stored.total_processed == 6
    assert stored.total_published == 3
    assert stored.last_fetched is not None


@pytest.mark.asyncio
async def test_prompt_template_stored_and_default(store, session_maker):
    async with session_maker() as session:
        session.add(SystemSetting(key="prompts.contest", value="Custom {title}"))
        await session.commit()

    assert await store.get_prompt_template("contest") == "Custom {title}"

    default = await store.get_prompt_template("volunteer")
    assert "NOT a valid volunteer opportunity" in default
    assert "[gpt]" in default


@pytest.mark.asyncio
async def test_provider_credentials(store, ai_settings):
    creds = await store.get_provider_credentials("anthropic")
    assert (creds.model, creds.api_key) == ("claude-3-5-sonnet", "sk-ant")

    missing = await store.get_provider_credentials("deepseek")
    assert (missing.model, missing.api_key) == ("", "")

    active = await store.get_active_provider()
    assert active.provider == "openai"
