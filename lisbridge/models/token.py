"""
Domain models for client-credentials access tokens.
"""

from __future__ import annotations

import time

from pydantic import BaseModel, Field


class AccessToken(BaseModel):
    """An access token with its absolute expiry in epoch seconds."""

    value: str = Field(..., description="Bearer token returned by the identity provider.")
    expires_at: int = Field(
        ..., description="Absolute expiry as seconds since the epoch."
    )

    @classmethod
    def from_expires_in(
        cls, value: str, expires_in: int, *, acquired_at: float | None = None
    ) -> "AccessToken":
        """Build a token from the provider's relative ``expires_in`` duration."""
        start = time.time() if acquired_at is None else acquired_at
        return cls(value=value, expires_at=int(start) + int(expires_in))

    def is_expired(self, now: float | None = None, *, leeway_seconds: int = 0) -> bool:
        current = time.time() if now is None else now
        return current + leeway_seconds >= self.expires_at


__all__ = ["AccessToken"]
