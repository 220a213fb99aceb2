"""Middleware tests: request ID, rate limiting, CORS, error handling."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert "x-request-id" in response.headers
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_rate_limiter_passes_through_without_redis(client: AsyncClient) -> None:
    """No Redis: requests succeed and carry no rate limit headers."""
    response = await client.get("/version")
    assert response.status_code == 200
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_rate_limit_blocks_excess(client: AsyncClient, monkeypatch) -> None:
    """Counter above the limit returns 429 with Retry-After."""
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[101, True])
    redis = MagicMock()
    redis.pipeline.return_value = pipe
    monkeypatch.setattr("pledgetrack.middleware.rate_limit.get_redis_or_none", lambda: redis)

    response = await client.get("/version")
    assert response.status_code == 429
    assert response.headers["retry-after"] == "60"
    assert "detail" in response.json()


@pytest.mark.asyncio
async def test_rate_limit_headers_under_limit(client: AsyncClient, monkeypatch) -> None:
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[1, True])
    redis = MagicMock()
    redis.pipeline.return_value = pipe
    monkeypatch.setattr("pledgetrack.middleware.rate_limit.get_redis_or_none", lambda: redis)

    response = await client.get("/version")
    assert response.status_code == 200
    assert response.headers["x-ratelimit-remaining"] == "99"
    assert response.headers["x-ratelimit-limit"] == "100"


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    """CORS preflight returns access-control-allow-origin for configured origin."""
    response = await client.options(
        "/health",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert "access-control-allow-origin" in response.headers


@pytest.mark.asyncio
async def test_cors_exposes_empty_reason(client: AsyncClient) -> None:
    """Cross-origin reads can see the empty-result marker header."""
    response = await client.get("/health", headers={"Origin": "http://localhost:5173"})
    assert "x-empty-reason" in response.headers["access-control-expose-headers"].lower()


@pytest.mark.asyncio
async def test_404_returns_json(client: AsyncClient) -> None:
    """Unknown paths return 404 with JSON body."""
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.json()["detail"] == "Not Found"


@pytest.mark.asyncio
async def test_422_lists_errors(client: AsyncClient) -> None:
    """Malformed bodies are rejected with the validation error list."""
    response = await client.post("/api/v1/pledges", json={"participant_id": "x"})
    assert response.status_code == 422
    data = response.json()
    assert data["detail"] == "Validation error"
    assert isinstance(data["errors"], list)
    assert data["errors"]
