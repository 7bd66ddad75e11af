"""
Microsoft identity platform client.

Performs the OAuth2 client-credentials grant used for both Graph and Power BI.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

import httpx

from fastapi import status

from lisbridge.core.config import AzureSettings
from lisbridge.core.errors import AuthError
from lisbridge.models.token import AccessToken

logger = logging.getLogger(__name__)

GRAPH_SCOPE = "https://graph.microsoft.com/.default"
POWERBI_SCOPE = "https://analysis.windows.net/powerbi/api/.default"


class MicrosoftIdentityClient:
    """Acquire application tokens from the tenant-scoped token endpoint."""

    def __init__(
        self,
        settings: AzureSettings,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._timeout = timeout
        self._transport = transport
        self._clock = clock

    @property
    def token_url(self) -> str:
        host = self._settings.authority_host.rstrip("/")
        return f"{host}/{self._settings.tenant_id}/oauth2/v2.0/token"

    async def acquire_token(self, scope: str = GRAPH_SCOPE) -> AccessToken:
        """
        Run the client-credentials grant for ``scope``.

        The provider's ``expires_in`` is a duration, so it is converted into an
        absolute expiry relative to the moment the request was issued.
        """
        payload = {
            "grant_type": "client_credentials",
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "scope": scope,
        }

        acquired_at = self._clock()
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(self.token_url, data=payload)
        except httpx.HTTPError as exc:
            raise AuthError(f"Token endpoint unreachable: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            logger.error("Token request for %s failed with %s", scope, response.status_code)
            raise AuthError(f"Token request failed: {response.status_code} {response.text}")

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise AuthError("Token endpoint returned a non-JSON payload.") from exc
        if not isinstance(token_payload, dict):
            raise AuthError("Token endpoint returned an unexpected payload shape.")

        access_token = token_payload.get("access_token")
        expires_in = token_payload.get("expires_in")
        if not access_token or not expires_in:
            raise AuthError("Incomplete token payload returned from the identity provider.")

        try:
            expires_in_seconds = int(expires_in)
        except (TypeError, ValueError) as exc:
            raise AuthError(f"Invalid expires_in value: {expires_in!r}") from exc

        logger.info("Acquired application token for %s (expires in %ss)", scope, expires_in_seconds)
        return AccessToken.from_expires_in(
            access_token, expires_in_seconds, acquired_at=acquired_at
        )


__all__ = ["GRAPH_SCOPE", "MicrosoftIdentityClient", "POWERBI_SCOPE"]
