"""
Tests for the JSON API.
"""
import pytest
from httpx import AsyncClient

from services.pipeline import PipelineOutcome
from services.scheduler import ProcessingService


@pytest.fixture
def auth_headers():
    """Bearer header carrying the test cron secret."""
    return {"Authorization": "Bearer test-secret"}


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_process_queue_requires_secret(client: AsyncClient):
    """Test that the worker endpoint rejects missing credentials."""
    response = await client.post("/api/process-queue")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_process_queue_rejects_wrong_secret(client: AsyncClient):
    response = await client.post("/api/process-queue", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_process_queue_empty(client: AsyncClient, auth_headers):
    """Test the worker endpoint when nothing is queued."""
    response = await client.post("/api/process-queue", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["processed"] is False
    assert data["message"] == "No items in queue"


@pytest.mark.asyncio
async def test_process_queue_error_is_500(client: AsyncClient, auth_headers, monkeypatch):
    async def failing_worker():
        return PipelineOutcome(processed=False, error="AI generation failed: boom")

    monkeypatch.setattr(ProcessingService, "run_queue_worker", staticmethod(failing_worker))

    response = await client.post("/api/process-queue", headers=auth_headers)

    assert response.status_code == 500
    assert response.json()["error"] == "AI generation failed: boom"


@pytest.mark.asyncio
async def test_stats(client: AsyncClient, make_feed, make_queue_item):
    feed = await make_feed()
    await make_queue_item(feed)
    await make_queue_item(feed, status="duplicate")

    response = await client.get("/api/stats")

    assert response.status_code == 200
    data = response.json()
    assert data["queue"]["pending"] == 1
    assert data["queue"]["duplicate"] == 1
    assert data["queue"]["failed"] == 0
    assert data["opportunities"] == {"draft": 0, "published": 0, "rejected": 0}


@pytest.mark.asyncio
async def test_list_feeds(client: AsyncClient, make_feed):
    await make_feed(name="Scholarships", ai_provider="gemini")

    response = await client.get("/api/feeds")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["feeds"][0]["name"] == "Scholarships"
    assert data["feeds"][0]["ai_provider"] == "gemini"
    assert data["feeds"][0]["total_processed"] == 0


@pytest.mark.asyncio
async def test_release_stale(client: AsyncClient, auth_headers):
    response = await client.post("/api/release-stale", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["requeued"] == 0
