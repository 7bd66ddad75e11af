"""Power BI REST client for report embedding."""

from __future__ import annotations

import logging
from typing import Any, Dict, TYPE_CHECKING

import httpx

from fastapi import status

from lisbridge.core.config import PowerBISettings
from lisbridge.core.errors import FetchError, NotFoundError, describe_response

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from lisbridge.services.token_session import TokenSession

logger = logging.getLogger(__name__)


class PowerBIClient:
    """Mint embed tokens and read report metadata for a workspace."""

    def __init__(
        self,
        session: "TokenSession",
        settings: PowerBISettings,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._session = session
        self._settings = settings
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._settings.api_base_url.rstrip("/"),
            timeout=self._timeout,
            transport=self._transport,
        )

    async def generate_embed_token(self, *, group_id: str, report_id: str) -> Dict[str, Any]:
        """Return ``{"token", "expiration"}`` for viewing one report."""
        token = await self._session.get_access_token()
        body = {
            "accessLevel": self._settings.access_level,
            "lifetimeInMinutes": self._settings.embed_lifetime_minutes,
        }
        try:
            async with self._client() as client:
                response = await client.post(
                    f"/groups/{group_id}/reports/{report_id}/GenerateToken",
                    json=body,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as exc:
            raise FetchError(f"Power BI unreachable: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            logger.error("GenerateToken failed for report %s: %s", report_id, response.status_code)
            raise FetchError(f"Failed to generate embed token: {describe_response(response)}")

        payload = response.json()
        return {"token": payload.get("token"), "expiration": payload.get("expiration")}

    async def get_report(self, *, group_id: str, report_id: str) -> Dict[str, Any]:
        """Fetch report metadata including its embed URL."""
        token = await self._session.get_access_token()
        try:
            async with self._client() as client:
                response = await client.get(
                    f"/groups/{group_id}/reports/{report_id}",
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as exc:
            raise FetchError(f"Power BI unreachable: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            raise NotFoundError(f"Report {report_id} not available: {describe_response(response)}")

        payload = response.json()
        return {
            "id": payload.get("id"),
            "name": payload.get("name"),
            "embedUrl": payload.get("embedUrl"),
        }


__all__ = ["PowerBIClient"]
