"""
Error taxonomy shared by the SharePoint gateway, external clients and routes.
"""

from __future__ import annotations

from typing import Iterable


class LisBridgeError(Exception):
    """Base class for errors raised while talking to external platforms."""


class AuthError(LisBridgeError):
    """Raised when a token cannot be acquired or is rejected upstream."""


class NotFoundError(LisBridgeError):
    """Raised when a site, list or list item cannot be resolved."""


class FetchError(LisBridgeError):
    """Raised when a read request returns a non-success status."""


class CreateError(LisBridgeError):
    """Raised when a create request does not return 201."""


class UpdateError(LisBridgeError):
    """Raised when a PATCH request does not succeed."""


class ValidationError(LisBridgeError):
    """Raised locally, before any network call, when request fields are missing."""

    def __init__(self, message: str, fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.fields = list(fields)


def describe_response(response) -> str:
    """Render a short status/body description of an upstream response."""
    body = (response.text or "").strip()
    if len(body) > 500:
        body = body[:500] + "..."
    return f"{response.status_code} {body}".strip()


__all__ = [
    "AuthError",
    "CreateError",
    "FetchError",
    "LisBridgeError",
    "NotFoundError",
    "UpdateError",
    "ValidationError",
    "describe_response",
]
