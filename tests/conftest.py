"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from lisbridge.models.token import AccessToken


class StaticTokenProvider:
    """Token provider that hands out a fixed token and records each scope asked for."""

    def __init__(self, value: str = "graph-token", expires_in: int = 3600) -> None:
        self.value = value
        self.expires_in = expires_in
        self.scopes: list[str] = []

    async def acquire_token(self, scope: str) -> AccessToken:
        self.scopes.append(scope)
        return AccessToken.from_expires_in(self.value, self.expires_in)


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def token_provider() -> StaticTokenProvider:
    return StaticTokenProvider()
