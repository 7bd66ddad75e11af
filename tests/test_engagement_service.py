from __future__ import annotations

from typing import Any

import pytest

from lisbridge.core.config import SharePointSettings
from lisbridge.core.errors import AuthError, FetchError
from lisbridge.services.engagement import EngagementService


class StubLists:
    def __init__(self, lists: dict[str, Any]) -> None:
        self._lists = lists

    async def list_items(self, list_name: str) -> list[dict[str, Any]]:
        value = self._lists.get(list_name, [])
        if isinstance(value, Exception):
            raise value
        return [{"id": str(index), "fields": fields} for index, fields in enumerate(value)]


def _service(**lists: Any) -> EngagementService:
    return EngagementService(StubLists(lists), SharePointSettings())


@pytest.mark.asyncio
async def test_empty_post_list_yields_zero_summary() -> None:
    summary = await _service(Post=[], Leads=[]).compute_engagement_summary()

    assert summary.total_likes == 0
    assert summary.total_engagements == 0
    assert summary.total_impressions == 0
    assert summary.engagement_rate == 0
    assert summary.email_contacted == 0
    assert summary.all_posts == []


@pytest.mark.asyncio
async def test_totals_and_engagement_rate() -> None:
    posts = [
        {"tag": "a", "likes": 3, "comments": 1, "shares": 0, "impressions": 100},
        {"tag": "b", "likes": 5, "comments": 0, "shares": 0, "impressions": 100},
        {"tag": "c", "likes": 0, "comments": 2, "shares": 1, "impressions": 0},
    ]
    leads = [{"email": "a@example.com"}, {"email": "b@example.com"}]

    summary = await _service(Post=posts, Leads=leads).compute_engagement_summary()

    assert summary.total_likes == 8
    assert summary.total_engagements == 12
    assert summary.total_impressions == 200
    assert summary.engagement_rate == pytest.approx(6.0)
    assert summary.email_contacted == 2
    assert [post.tag for post in summary.all_posts] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_missing_counters_count_as_zero() -> None:
    posts = [{"tag": "a", "likes": None}, {"tag": "b", "comments": 4, "impressions": 8}]

    summary = await _service(Post=posts).compute_engagement_summary()

    assert summary.total_likes == 0
    assert summary.total_engagements == 4
    assert summary.engagement_rate == pytest.approx(50.0)


@pytest.mark.asyncio
async def test_post_list_failure_degrades_to_zero_summary() -> None:
    summary = await _service(
        Post=FetchError("boom"), Leads=[{"email": "a@example.com"}]
    ).compute_engagement_summary()

    assert summary.total_engagements == 0
    assert summary.all_posts == []
    assert summary.email_contacted == 1


@pytest.mark.asyncio
async def test_leads_failure_reports_zero_contacts() -> None:
    summary = await _service(
        Post=[{"tag": "a", "likes": 2, "impressions": 10}], Leads=AuthError("denied")
    ).compute_engagement_summary()

    assert summary.email_contacted == 0
    assert summary.total_likes == 2


@pytest.mark.asyncio
async def test_off_type_columns_pass_through_to_summary() -> None:
    visual = {"Url": "https://cdn.example.com/a.png", "Description": "cover"}
    posts = [
        {"tag": "a", "visual": visual, "likes": 2, "impressions": 10},
        {"tag": "b", "likes": "n/a", "comments": 1},
        {"tag": "c", "content": 42, "shares": "3"},
    ]

    summary = await _service(Post=posts).compute_engagement_summary()

    assert summary.total_likes == 2
    assert summary.total_engagements == 6
    assert summary.total_impressions == 10
    assert summary.all_posts[0].visual == visual
    assert summary.all_posts[1].likes == "n/a"
    assert summary.all_posts[2].content == 42
