try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from typing import Any

import httpx
import pytest

from lisbridge.core.errors import CreateError, FetchError, ValidationError
from lisbridge.main import app
from lisbridge.schemas import PROMPT_REQUIRED_FIELDS, EngagementSummary, PostAnalytics
from lisbridge.services.sharepoint_items import missing_fields

pytestmark = pytest.mark.anyio("asyncio")


class StubItemService:
    def __init__(self) -> None:
        self.saved: list[Any] = []
        self.fail_with: Exception | None = None

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def get_items(self, list_name: str) -> list[dict]:
        self._maybe_fail()
        return [{"tag": "t1", "list": list_name}]

    async def sync_post_metrics(self) -> dict:
        self._maybe_fail()
        return {"successCount": 4, "failureCount": 1}

    async def save_prompt(self, payload):
        missing = missing_fields(payload, PROMPT_REQUIRED_FIELDS)
        if missing:
            raise ValidationError("Missing required prompt fields", missing)
        self._maybe_fail()
        self.saved.append(payload)
        return {"id": "1", "fields": payload}

    async def save_prompts_bulk(self, items):
        self.saved.extend(items)
        return {"results": [], "successCount": len(items), "failureCount": 0}

    async def save_prompt_and_post(self, payload):
        self._maybe_fail()
        return {"tag": payload["tag"], "prompt": {"id": "1"}, "post": {"id": "2"}}


class StubPowerBI:
    def __init__(self) -> None:
        self.fail = False

    async def generate_embed_token(self, *, group_id: str, report_id: str) -> dict:
        if self.fail:
            raise FetchError("Power BI said no")
        return {"token": f"embed-{report_id}", "expiration": "2025-01-01T00:10:00Z"}


class StubEngagement:
    async def compute_engagement_summary(self) -> EngagementSummary:
        return EngagementSummary(
            total_likes=8,
            total_engagements=12,
            total_impressions=200,
            engagement_rate=6.0,
            email_contacted=2,
        )


class StubLinkedIn:
    async def get_post_analytics(self, post_urn: str) -> PostAnalytics:
        return PostAnalytics(tag=post_urn, likes=3, emails=["a@example.com"])

    async def fetch_post(self, post_urn: str):
        return "fallback", {"id": post_urn, "contentSource": "fallback"}


@pytest.fixture()
def stubs():
    from lisbridge import dependencies

    items = StubItemService()
    powerbi = StubPowerBI()

    app.dependency_overrides.clear()
    app.dependency_overrides.update(
        {
            dependencies.get_sharepoint_item_service: lambda: items,
            dependencies.get_powerbi_client: lambda: powerbi,
            dependencies.get_engagement_service: lambda: StubEngagement(),
            dependencies.get_linkedin_client: lambda: StubLinkedIn(),
        }
    )

    yield items, powerbi

    app.dependency_overrides.clear()


@pytest.fixture()
async def client(stubs):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client


async def test_health(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_embed_token_requires_group_and_report(client):
    response = await client.post("/api/powerbi/embed-token", json={"groupId": "g-1"})

    assert response.status_code == 400
    assert "error" in response.json()


async def test_embed_token_success_and_failure(stubs, client):
    _, powerbi = stubs

    response = await client.post(
        "/api/powerbi/embed-token", json={"groupId": "g-1", "reportId": "r-1"}
    )
    assert response.status_code == 200
    assert response.json() == {"embedToken": "embed-r-1", "expiration": "2025-01-01T00:10:00Z"}

    powerbi.fail = True
    response = await client.post(
        "/api/powerbi/embed-token", json={"groupId": "g-1", "reportId": "r-1"}
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate embed token"}


async def test_save_prompt_missing_fields_is_400(stubs, client):
    items, _ = stubs

    response = await client.post("/api/sp/save/prompt", json={"tag": "t1", "prompt": "p"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["status"] == 400
    assert body["error"] == ["scheduledAt", "promptCreatedAt"]
    assert items.saved == []


async def test_save_prompt_created(client):
    payload = {
        "tag": "t1",
        "prompt": "p",
        "scheduledAt": "2025-02-01",
        "promptCreatedAt": "2025-01-30",
    }

    response = await client.post("/api/sp/save/prompt", json=payload)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["fields"] == payload


async def test_gateway_failure_maps_to_500_envelope(stubs, client):
    items, _ = stubs
    items.fail_with = CreateError("Failed to create list item: 400 bad")

    response = await client.post(
        "/api/sp/save",
        json={"tag": "t1", "prompt": {}, "post": {}},
    )

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert "Failed to create list item" in body["error"]


async def test_bulk_requires_non_empty_array(client):
    response = await client.post("/api/sp/save/prompt/bulk", json={"tag": "t1"})

    assert response.status_code == 400
    assert response.json()["success"] is False


async def test_items_and_sync_envelopes(stubs, client):
    items, _ = stubs

    response = await client.get("/api/sp/items/Post")
    assert response.status_code == 200
    assert response.json() == {"status": 200, "success": True, "data": [{"tag": "t1", "list": "Post"}]}

    response = await client.get("/api/sp/sync/post")
    assert response.json() == {"status": 200, "success": True, "successCount": 4, "failureCount": 1}

    items.fail_with = FetchError("Failed to fetch items of Post: 503")
    response = await client.get("/api/sp/items/Post")
    assert response.status_code == 500
    assert response.json()["message"] == "Failed to fetch items from Post"


async def test_dashboard_metrics(client):
    response = await client.get("/api/dashboard/metrics")

    assert response.status_code == 200
    body = response.json()
    assert body["total_engagements"] == 12
    assert body["engagement_rate"] == 6.0
    assert body["all_posts"] == []


async def test_linkedin_routes(client):
    response = await client.get("/api/linkedin/analytics", params={"postUrn": "urn:li:activity:1"})
    assert response.status_code == 200
    assert response.json()["emails"] == ["a@example.com"]

    response = await client.get("/api/linkedin/posts", params={"postUrn": "urn:li:activity:1"})
    assert response.json() == {
        "source": "fallback",
        "post": {"id": "urn:li:activity:1", "contentSource": "fallback"},
    }

    response = await client.get("/api/linkedin/analytics")
    assert response.status_code == 422
