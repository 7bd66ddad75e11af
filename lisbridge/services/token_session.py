"""
Process-owned token sessions for application (client-credentials) tokens.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Protocol

from lisbridge.models.token import AccessToken

logger = logging.getLogger(__name__)


class TokenProvider(Protocol):
    async def acquire_token(self, scope: str) -> AccessToken:  # pragma: no cover - protocol
        ...


class TokenSession:
    """Hold the current token for one scope and refresh it when it expires."""

    _REFRESH_WINDOW_SECONDS = 60

    def __init__(
        self,
        provider: TokenProvider,
        scope: str,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._provider = provider
        self._scope = scope
        self._clock = clock
        self._token: Optional[AccessToken] = None

    @property
    def scope(self) -> str:
        return self._scope

    @property
    def token(self) -> Optional[AccessToken]:
        return self._token

    def set_token(self, token: AccessToken) -> None:
        self._token = token

    def needs_refresh(self) -> bool:
        if self._token is None:
            return True
        return self._token.is_expired(
            self._clock(), leeway_seconds=self._REFRESH_WINDOW_SECONDS
        )

    async def refresh_if_expired(self) -> AccessToken:
        """Return a usable token, acquiring a new one when none is valid.

        Concurrent callers that both see an expired token each refresh; the
        last write wins.
        """
        current = self._token
        if current is not None and not self.needs_refresh():
            return current

        logger.debug("Refreshing token for scope %s", self._scope)
        token = await self._provider.acquire_token(self._scope)
        self._token = token
        return token

    async def get_access_token(self) -> str:
        token = await self.refresh_if_expired()
        return token.value


class SharePointSession(TokenSession):
    """Graph token session that also caches resolved site and list identifiers."""

    def __init__(
        self,
        provider: TokenProvider,
        scope: str,
        *,
        site_id: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(provider, scope, clock=clock)
        self.site_id: Optional[str] = site_id or None
        self.list_ids: Dict[str, str] = {}


__all__ = ["SharePointSession", "TokenProvider", "TokenSession"]
