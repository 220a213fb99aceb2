"""Read endpoints degrade to empty results while the database is unmigrated."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("path", "empty"),
    [
        ("/api/v1/browse", {"participants": [], "total": 0, "page": 1, "per_page": 50}),
        ("/api/v1/campaigns", []),
        ("/api/v1/challenge-categories", []),
        ("/api/v1/participants/1/pledges", {"pledges": [], "total": 0}),
        ("/api/v1/activities", {"ok": True, "items": []}),
    ],
)
async def test_list_endpoints_return_empty(uninitialized_client: AsyncClient, path, empty) -> None:
    response = await uninitialized_client.get(path)
    assert response.status_code == 200
    assert response.json() == empty
    assert response.headers["x-empty-reason"] == "db-not-initialized"


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/api/v1/participants/1", "/api/v1/participants/1/summary"])
async def test_participant_pages_are_zeroed(uninitialized_client: AsyncClient, path) -> None:
    response = await uninitialized_client.get(path)
    assert response.status_code == 200
    data = response.json()
    assert data["empty"] is True
    assert data["id"] == 1
    assert data["total_raised"] == 0
    assert data["donor_count"] == 0
    assert data["current_progress"] == 0
    assert response.headers["x-empty-reason"] == "db-not-initialized"


@pytest.mark.asyncio
async def test_writes_are_503(uninitialized_client: AsyncClient) -> None:
    response = await uninitialized_client.post(
        "/api/v1/pledges",
        json={
            "participant_id": 1,
            "donor_name": "Sam",
            "donor_email": "sam@example.com",
            "pledge_type": "flat_rate",
            "flat_amount": 5,
        },
    )
    assert response.status_code == 503
    assert response.json()["detail"] == "Database not initialized"


@pytest.mark.asyncio
@pytest.mark.parametrize(("window", "expected"), [("bogus", "24h"), ("7D", "7d")])
async def test_stats_window_normalized_when_empty(uninitialized_client: AsyncClient, window, expected) -> None:
    response = await uninitialized_client.get("/api/v1/activity-stats", params={"window": window})
    assert response.status_code == 200
    data = response.json()
    assert data["window"] == expected
    assert data["pledges"] == 0
    assert data["spark"] == []
    assert response.headers["x-empty-reason"] == "db-not-initialized"
