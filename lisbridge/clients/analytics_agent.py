"""Client for the external agent that computes post analytics for tags."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List

import httpx

from fastapi import status

from lisbridge.core.config import AgentSettings
from lisbridge.core.errors import FetchError, describe_response
from lisbridge.schemas import PostAnalytics
from lisbridge.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)


class AnalyticsAgentClient:
    """Ask the analytics agent for engagement counters of a batch of posts."""

    def __init__(
        self,
        settings: AgentSettings,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_config: RetryConfig | None = None,
    ) -> None:
        self._settings = settings
        self._timeout = timeout
        self._transport = transport
        self._retry = retry_config or RetryConfig()

    async def fetch_analytics(self, tags: Iterable[str]) -> List[PostAnalytics]:
        """POST the tags to ``/analytics`` and parse the returned records."""
        url = f"{str(self._settings.base_url).rstrip('/')}/analytics"
        tag_list = list(tags)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await request_with_retry(
                    client.post,
                    url,
                    json={"post_urn": tag_list},
                    retry_config=self._retry,
                )
        except httpx.HTTPError as exc:
            raise FetchError(f"Analytics agent unreachable: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            raise FetchError(f"Failed to fetch analytics data: {describe_response(response)}")

        records = _extract_records(response.json())
        logger.info("Analytics agent returned %s records for %s tags", len(records), len(tag_list))
        return [PostAnalytics.model_validate(record) for record in records]


def _extract_records(payload: Any) -> List[dict]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("results", "data", "analytics"):
            value = payload.get(key)
            if isinstance(value, list):
                return value
    raise FetchError("Analytics agent returned an unexpected payload shape.")


__all__ = ["AnalyticsAgentClient"]
