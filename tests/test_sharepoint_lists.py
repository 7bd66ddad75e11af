from __future__ import annotations

import json

import httpx
import pytest

from lisbridge.clients.microsoft_identity import GRAPH_SCOPE
from lisbridge.clients.sharepoint_lists import (
    SharePointListClient,
    build_equality_filter,
    escape_odata_literal,
)
from lisbridge.core.config import SharePointSettings
from lisbridge.core.errors import (
    CreateError,
    FetchError,
    NotFoundError,
    UpdateError,
    ValidationError,
)
from lisbridge.models.token import AccessToken
from lisbridge.services.token_session import SharePointSession
from lisbridge.utils.http import RetryConfig

ITEMS_PATH = "/v1.0/sites/site-1/lists/list-1/items"


class RecordingTransport:
    """MockTransport handler that replays queued responses and keeps every request."""

    def __init__(self, *responses: httpx.Response) -> None:
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Unexpected request {request.method} {request.url}")
        return self._responses.pop(0)


def _client(recorder: RecordingTransport, token_provider, **settings) -> SharePointListClient:
    session = SharePointSession(token_provider, GRAPH_SCOPE, site_id=settings.pop("site_id", "site-1"))
    return SharePointListClient(
        session,
        SharePointSettings(**settings),
        transport=httpx.MockTransport(recorder),
        retry_config=RetryConfig(attempts=3, backoff_seconds=0, jitter_seconds=0),
    )


def test_escape_odata_literal_doubles_single_quotes() -> None:
    assert escape_odata_literal("O'Brien") == "O''Brien"
    assert build_equality_filter("tag", "a'b") == "fields/tag eq 'a''b'"


@pytest.mark.parametrize("field_name", ["tag eq 'x' or 1", "fields/tag", "", "1tag"])
def test_build_equality_filter_rejects_unsafe_field_names(field_name: str) -> None:
    with pytest.raises(ValidationError):
        build_equality_filter(field_name, "value")


@pytest.mark.asyncio
async def test_create_item_returns_created_body_unchanged(token_provider) -> None:
    created = {"id": "7", "fields": {"tag": "t1", "prompt": "hello"}, "webUrl": "https://x"}
    recorder = RecordingTransport(httpx.Response(201, json=created))
    client = _client(recorder, token_provider)

    result = await client.create_item("list-1", {"tag": "t1", "prompt": "hello"})

    assert result == created
    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == ITEMS_PATH
    assert request.headers["Authorization"] == "Bearer graph-token"
    assert json.loads(request.content) == {"fields": {"tag": "t1", "prompt": "hello"}}


@pytest.mark.asyncio
async def test_create_item_non_201_raises_without_retry(token_provider) -> None:
    recorder = RecordingTransport(
        httpx.Response(503, json={"error": "busy"}),
        httpx.Response(201, json={"id": "never"}),
    )
    client = _client(recorder, token_provider)

    with pytest.raises(CreateError):
        await client.create_item("list-1", {"tag": "t1"})
    assert len(recorder.requests) == 1


@pytest.mark.asyncio
async def test_find_item_escapes_quotes_in_filter(token_provider) -> None:
    recorder = RecordingTransport(
        httpx.Response(200, json={"value": [{"id": "1", "fields": {"tag": "it's"}}]})
    )
    client = _client(recorder, token_provider)

    item = await client.find_item_by_field("list-1", "tag", "it's")

    assert item["id"] == "1"
    request = recorder.requests[0]
    assert request.url.params["$filter"] == "fields/tag eq 'it''s'"
    assert request.url.params["expand"] == "fields"
    assert request.headers["Prefer"] == "HonorNonIndexedQueriesWarningMayFailRandomly"


@pytest.mark.asyncio
async def test_expired_token_is_refreshed_before_the_list_call(token_provider) -> None:
    recorder = RecordingTransport(
        httpx.Response(200, json={"value": [{"id": "9", "fields": {"tag": "t1"}}]})
    )
    session = SharePointSession(token_provider, GRAPH_SCOPE, site_id="site-1")
    session.set_token(AccessToken(value="stale", expires_at=1))
    client = SharePointListClient(
        session, SharePointSettings(), transport=httpx.MockTransport(recorder)
    )

    item = await client.find_item_by_field("list-1", "tag", "t1")

    assert item["id"] == "9"
    assert token_provider.scopes == [GRAPH_SCOPE]
    assert len(recorder.requests) == 1
    assert recorder.requests[0].headers["Authorization"] == "Bearer graph-token"


@pytest.mark.asyncio
async def test_find_item_with_invalid_field_name_makes_no_request(token_provider) -> None:
    recorder = RecordingTransport()
    client = _client(recorder, token_provider)

    with pytest.raises(ValidationError):
        await client.find_item_by_field("list-1", "tag' or '1'='1", "x")
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_update_post_by_tag_finds_then_patches(token_provider) -> None:
    recorder = RecordingTransport(
        httpx.Response(200, json={"value": [{"id": "42", "fields": {"tag": "t1"}}]}),
        httpx.Response(200, json={"likes": 5}),
    )
    client = _client(recorder, token_provider)

    result = await client.update_post_by_tag("list-1", "t1", {"likes": 5})

    assert result == {"likes": 5}
    find, patch = recorder.requests
    assert find.method == "GET"
    assert find.url.params["$filter"] == "fields/tag eq 't1'"
    assert patch.method == "PATCH"
    assert patch.url.path == f"{ITEMS_PATH}/42/fields"
    assert json.loads(patch.content) == {"likes": 5}


@pytest.mark.asyncio
async def test_update_post_by_tag_miss_sends_no_patch(token_provider) -> None:
    recorder = RecordingTransport(httpx.Response(200, json={"value": []}))
    client = _client(recorder, token_provider)

    with pytest.raises(NotFoundError):
        await client.update_post_by_tag("list-1", "missing", {"likes": 1})
    assert [request.method for request in recorder.requests] == ["GET"]


@pytest.mark.asyncio
async def test_update_post_by_tag_patch_failure_names_the_tag(token_provider) -> None:
    recorder = RecordingTransport(
        httpx.Response(200, json={"value": [{"id": "42"}]}),
        httpx.Response(400, json={"error": "bad column"}),
    )
    client = _client(recorder, token_provider)

    with pytest.raises(UpdateError, match="tag t1"):
        await client.update_post_by_tag("list-1", "t1", {"likes": 1})


@pytest.mark.asyncio
async def test_patch_is_retried_on_throttling(token_provider) -> None:
    recorder = RecordingTransport(
        httpx.Response(429, headers={"Retry-After": "0"}),
        httpx.Response(200, json={"shares": 2}),
    )
    client = _client(recorder, token_provider)

    result = await client.update_item_fields("list-1", "42", {"shares": 2})

    assert result == {"shares": 2}
    assert len(recorder.requests) == 2


@pytest.mark.asyncio
async def test_list_items_follows_next_link(token_provider) -> None:
    next_link = "https://graph.microsoft.com/v1.0/sites/site-1/lists/Post/items?$skiptoken=abc"
    recorder = RecordingTransport(
        httpx.Response(
            200,
            json={"value": [{"id": "1", "fields": {"tag": "a"}}], "@odata.nextLink": next_link},
        ),
        httpx.Response(200, json={"value": [{"id": "2", "fields": {"tag": "b"}}]}),
    )
    client = _client(recorder, token_provider)

    items = await client.list_items("Post")

    assert [item["fields"]["tag"] for item in items] == ["a", "b"]
    first, second = recorder.requests
    assert first.url.path == "/v1.0/sites/site-1/lists/Post/items"
    assert first.url.params["expand"] == "fields"
    assert second.url.params["$skiptoken"] == "abc"


@pytest.mark.asyncio
async def test_list_items_non_200_raises_fetch_error(token_provider) -> None:
    recorder = RecordingTransport(httpx.Response(404, json={"error": "itemNotFound"}))
    client = _client(recorder, token_provider)

    with pytest.raises(FetchError):
        await client.list_items("Unknown")


@pytest.mark.asyncio
async def test_list_id_is_resolved_once_and_cached(token_provider) -> None:
    recorder = RecordingTransport(httpx.Response(200, json={"id": "list-guid"}))
    client = _client(recorder, token_provider)

    assert await client.ensure_list_id("Prompt") == "list-guid"
    assert await client.ensure_list_id("Prompt") == "list-guid"

    assert len(recorder.requests) == 1
    assert recorder.requests[0].url.path == "/v1.0/sites/site-1/lists/Prompt"


@pytest.mark.asyncio
async def test_site_id_is_resolved_from_domain_and_path(token_provider) -> None:
    recorder = RecordingTransport(httpx.Response(200, json={"id": "contoso,abc,def"}))
    client = _client(
        recorder,
        token_provider,
        site_id=None,
        domain="contoso.sharepoint.com",
        site="marketing",
    )

    assert await client.ensure_site_id() == "contoso,abc,def"
    assert recorder.requests[0].url.path == "/v1.0/sites/contoso.sharepoint.com:/sites/marketing"


@pytest.mark.asyncio
async def test_site_resolution_requires_configuration(token_provider) -> None:
    recorder = RecordingTransport()
    client = _client(recorder, token_provider, site_id=None, domain=None, site=None)

    with pytest.raises(NotFoundError):
        await client.ensure_site_id()
