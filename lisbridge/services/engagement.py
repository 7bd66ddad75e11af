"""Dashboard engagement aggregation over the Post and Leads lists."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from lisbridge.clients.sharepoint_lists import SharePointListClient
from lisbridge.core.config import SharePointSettings
from lisbridge.schemas import EngagementSummary, PostSummary

logger = logging.getLogger(__name__)


def _count(value: Any) -> float | int:
    if not value:
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


class EngagementService:
    """Compute totals and the engagement rate for the dashboard."""

    def __init__(self, lists: SharePointListClient, settings: SharePointSettings) -> None:
        self._lists = lists
        self._settings = settings

    async def _fields(self, list_name: str) -> List[Dict[str, Any]]:
        items = await self._lists.list_items(list_name)
        return [item.get("fields", {}) for item in items]

    async def compute_engagement_summary(self) -> EngagementSummary:
        """
        Aggregate likes, engagements and impressions across all posts.

        Never raises for upstream failures: an unreadable Post list yields a
        zeroed summary and an unreadable Leads list yields ``email_contacted = 0``.
        """
        try:
            leads = await self._fields(self._settings.leads_list)
            email_contacted = len(leads)
        except Exception as exc:
            logger.warning("Leads list unavailable, reporting 0 contacts: %s", exc)
            email_contacted = 0

        try:
            posts = await self._fields(self._settings.post_list)
        except Exception as exc:
            logger.warning("Post list unavailable, returning empty summary: %s", exc)
            return EngagementSummary(email_contacted=email_contacted)

        total_likes: float | int = 0
        total_engagements: float | int = 0
        total_impressions: float | int = 0
        for fields in posts:
            likes = _count(fields.get("likes"))
            total_likes += likes
            total_engagements += likes + _count(fields.get("comments")) + _count(fields.get("shares"))
            total_impressions += _count(fields.get("impressions"))

        engagement_rate = 0.0
        if total_impressions > 0:
            engagement_rate = total_engagements / total_impressions * 100

        return EngagementSummary(
            total_likes=total_likes,
            total_engagements=total_engagements,
            total_impressions=total_impressions,
            engagement_rate=engagement_rate,
            email_contacted=email_contacted,
            all_posts=[PostSummary.model_validate(fields) for fields in posts],
        )


__all__ = ["EngagementService"]
