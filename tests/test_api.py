"""HTTP tests for the SLA router with the service and clock overridden."""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from portal.main import app
from portal.sla.application import SLAService
from portal.sla.interfaces import get_clock, get_sla_service
from tests.conftest import InMemoryProjectRepository, StaticPolicyProvider, utc


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock(utc(2024, 1, 1))


@pytest_asyncio.fixture
async def client(clock):
    service = SLAService(InMemoryProjectRepository(), StaticPolicyProvider())
    app.dependency_overrides[get_sla_service] = lambda: service
    app.dependency_overrides[get_clock] = clock
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


async def _register(client, project_id="PRJ-001", status="active"):
    response = await client.post("/sla/projects", json={
        "projects": [{"id": project_id, "title": "Marketing site", "service_status": status}]
    })
    assert response.status_code == 200
    return response


async def _configure(client, project_id="PRJ-001", days=30, start="2024-01-01T00:00:00Z"):
    return await client.put(
        f"/sla/projects/{project_id}/config",
        json={"duration_days": days, "start_date": start}
    )


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_root_lists_sla_endpoints(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["modules"]["sla"]["prefix"] == "/sla"


@pytest.mark.asyncio
async def test_register_and_fetch(client):
    response = await _register(client)
    assert response.json() == {"created": 1, "updated": 0, "failed": 0, "errors": []}

    response = await client.get("/sla/projects/PRJ-001")
    body = response.json()
    assert response.status_code == 200
    assert body["service_status"] == "active"
    assert body["sla"] is None
    assert body["evaluation"] is None


@pytest.mark.asyncio
async def test_scenario_over_http(client, clock):
    await _register(client)

    response = await _configure(client)
    assert response.status_code == 200
    assert response.json()["sla"]["due_date"].startswith("2024-01-31")

    clock.now = utc(2024, 1, 10)
    response = await client.post("/sla/projects/PRJ-001/pause", json={"reason": "awaiting_payment"})
    assert response.status_code == 200
    assert response.json()["service_status"] == "awaiting_payment"

    clock.now = utc(2024, 1, 15)
    response = await client.post("/sla/projects/PRJ-001/resume")
    body = response.json()
    assert response.status_code == 200
    assert body["service_status"] == "active"
    assert body["sla"]["due_date"].startswith("2024-02-05")
    assert body["sla"]["accumulated_pause_days"] == 5

    clock.now = utc(2024, 1, 20)
    response = await client.post("/sla/projects/PRJ-001/evaluate", json={"progress_percent": 10})
    assert response.status_code == 200
    assert response.json()["status"] == "at_risk"
    assert response.json()["expected_progress_percent"] == 47

    clock.now = utc(2024, 2, 10)
    response = await client.post("/sla/projects/PRJ-001/evaluate", json={"progress_percent": 80})
    assert response.json()["status"] == "breached"
    assert response.json()["days_remaining"] == -5


@pytest.mark.asyncio
async def test_pause_defaults_to_paused(client):
    await _register(client)
    await _configure(client)

    response = await client.post("/sla/projects/PRJ-001/pause")

    assert response.status_code == 200
    assert response.json()["service_status"] == "paused"


@pytest.mark.asyncio
async def test_double_pause_is_conflict(client):
    await _register(client)
    await _configure(client)
    await client.post("/sla/projects/PRJ-001/pause")

    response = await client.post("/sla/projects/PRJ-001/pause")
    body = response.json()

    assert response.status_code == 409
    assert body["error"] == "AlreadyPausedException"
    assert "paused_at" in body["details"]
    assert "correlation_id" in body


@pytest.mark.asyncio
async def test_resume_without_pause_is_conflict(client):
    await _register(client)
    await _configure(client)

    response = await client.post("/sla/projects/PRJ-001/resume")

    assert response.status_code == 409
    assert response.json()["error"] == "NotPausedException"


@pytest.mark.asyncio
async def test_pause_without_sla_is_conflict(client):
    await _register(client)

    response = await client.post("/sla/projects/PRJ-001/pause")

    assert response.status_code == 409
    assert response.json()["error"] == "NotConfiguredException"


@pytest.mark.asyncio
async def test_invalid_duration_is_unprocessable(client):
    await _register(client)

    response = await _configure(client, days=0)

    assert response.status_code == 422
    assert response.json()["error"] == "InvalidConfigurationException"


@pytest.mark.asyncio
async def test_invalid_transition_is_conflict(client):
    await _register(client, status="onboarding")

    response = await client.post("/sla/projects/PRJ-001/complete")

    assert response.status_code == 409
    assert response.json()["error"] == "InvalidTransitionException"


@pytest.mark.asyncio
async def test_activate_then_complete(client):
    await _register(client, status="onboarding")

    response = await client.post("/sla/projects/PRJ-001/activate")
    assert response.json()["service_status"] == "active"

    response = await client.post("/sla/projects/PRJ-001/complete")
    assert response.json()["service_status"] == "completed"


@pytest.mark.asyncio
async def test_unknown_project_is_not_found(client):
    response = await client.get("/sla/projects/missing")

    assert response.status_code == 404
    assert response.json()["error"] == "ResourceNotFoundException"


@pytest.mark.asyncio
async def test_bad_pause_reason_is_rejected(client):
    await _register(client)

    response = await client.post("/sla/projects/PRJ-001/pause", json={"reason": "vacation"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_dashboard_summary(client, clock):
    for project_id in ("PRJ-001", "PRJ-002", "PRJ-003"):
        await _register(client, project_id)
    await _configure(client, "PRJ-001", days=10)
    await _configure(client, "PRJ-002", days=100)
    await client.post("/sla/projects/PRJ-002/pause")

    clock.now = utc(2024, 1, 20)
    await client.post("/sla/projects/PRJ-001/evaluate", json={"progress_percent": 50})

    response = await client.get("/sla/dashboard")
    summary = response.json()["summary"]

    assert response.status_code == 200
    assert response.json()["total_count"] == 3
    assert summary["breached_count"] == 1
    assert summary["on_track_count"] == 1
    assert summary["frozen_count"] == 1
    assert summary["breach_rate"] == pytest.approx(33.33)

    response = await client.get("/sla/dashboard", params={"sla_status": "breached"})
    assert [p["project_id"] for p in response.json()["projects"]] == ["PRJ-001"]

    response = await client.get("/sla/dashboard", params={"service_status": "paused"})
    assert [p["project_id"] for p in response.json()["projects"]] == ["PRJ-002"]
