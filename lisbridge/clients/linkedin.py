"""
LinkedIn client for post engagement and comment replies.

LinkedIn exposes post content and statistics through several endpoint
generations whose availability depends on the app's granted products. Lookups
therefore walk an ordered list of strategies and keep the first hit; this is
best-effort and may legitimately find nothing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

import httpx

from lisbridge.core.config import LinkedInSettings
from lisbridge.core.errors import AuthError, LisBridgeError, describe_response
from lisbridge.schemas import PostAnalytics

logger = logging.getLogger(__name__)

_V2_BASE = "https://api.linkedin.com/v2"
_REST_BASE = "https://api.linkedin.com/rest"
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_PAGE_SIZE = 50

FALLBACK_SOURCE = "fallback"


class LinkedInError(LisBridgeError):
    """Raised when a LinkedIn call that has no fallback fails."""


@dataclass(frozen=True, slots=True)
class LookupStrategy:
    """One endpoint variant: how to call it and how to read a hit from it."""

    name: str
    build_request: Callable[[str], Tuple[str, Dict[str, Any]]]
    extract: Callable[[Dict[str, Any]], Any]


def encode_urn(urn: str) -> str:
    """Percent-encode a URN for use as a path segment, parentheses included."""
    return quote(urn, safe="")


def extract_emails(text: str | None) -> List[str]:
    if not text:
        return []
    return _EMAIL_PATTERN.findall(text)


def _urn_id(urn: str) -> str:
    return urn.rsplit(":", 1)[-1]


def _post_strategies() -> Sequence[LookupStrategy]:
    return (
        LookupStrategy(
            name="rest_posts",
            build_request=lambda urn: (f"{_REST_BASE}/posts/{encode_urn(urn)}", {}),
            extract=lambda payload: payload or None,
        ),
        LookupStrategy(
            name="ugc_posts",
            build_request=lambda urn: (
                f"{_V2_BASE}/ugcPosts/{encode_urn('urn:li:ugcPost:' + _urn_id(urn))}",
                {},
            ),
            extract=lambda payload: payload or None,
        ),
        LookupStrategy(
            name="activities",
            build_request=lambda urn: (f"{_V2_BASE}/activities/{encode_urn(urn)}", {}),
            extract=lambda payload: payload or None,
        ),
    )


def _share_statistics_impressions(payload: Dict[str, Any]) -> Optional[int]:
    elements = payload.get("elements") or []
    if not elements:
        return None
    stats = elements[0].get("totalShareStatistics") or {}
    return stats.get("impressionCount")


def _impression_strategies(organization_id: Optional[str]) -> Sequence[LookupStrategy]:
    strategies: List[LookupStrategy] = [
        LookupStrategy(
            name="member_post_analytics",
            build_request=lambda urn: (f"{_V2_BASE}/memberPostAnalytics/{_urn_id(urn)}", {}),
            extract=lambda payload: payload.get("impressions"),
        ),
    ]
    if organization_id:
        strategies.append(
            LookupStrategy(
                name="organization_share_statistics",
                build_request=lambda urn: (
                    f"{_V2_BASE}/organizationalEntityShareStatistics",
                    {
                        "q": "organizationalEntity",
                        "organizationalEntity": f"urn:li:organization:{organization_id}",
                        "shares": urn.replace("activity:", "share:"),
                    },
                ),
                extract=_share_statistics_impressions,
            )
        )
    strategies.append(
        LookupStrategy(
            name="post_statistics",
            build_request=lambda urn: (f"{_V2_BASE}/postStatistics/{_urn_id(urn)}", {}),
            extract=lambda payload: payload.get("impressionCount"),
        )
    )
    return strategies


class LinkedInClient:
    """Read comments, reactions and statistics for organisation posts."""

    def __init__(
        self,
        settings: LinkedInSettings,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        if not self._settings.access_token:
            raise AuthError("LINKEDIN_ACCESS_TOKEN is not configured.")
        return {
            "Authorization": f"Bearer {self._settings.access_token}",
            "LinkedIn-Version": self._settings.api_version,
            "X-Restli-Protocol-Version": "2.0.0",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport, headers=self._headers()
        )

    async def _collect_elements(
        self,
        client: httpx.AsyncClient,
        url: str,
        extra_params: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Follow start/count paging.

        Stops once ``paging.total`` is reached or, when LinkedIn omits the
        total, at the first page shorter than ``_PAGE_SIZE``.
        """
        elements: List[Dict[str, Any]] = []
        start = 0
        while True:
            params = {**(extra_params or {}), "start": start, "count": _PAGE_SIZE}
            try:
                response = await client.get(url, params=params)
            except httpx.HTTPError as exc:
                raise LinkedInError(f"LinkedIn request to {url} failed: {exc}") from exc
            if response.status_code != 200:
                raise LinkedInError(f"LinkedIn returned {describe_response(response)}")

            payload = response.json()
            page = payload.get("elements") or []
            elements.extend(page)
            total = (payload.get("paging") or {}).get("total")
            if not page or len(page) < _PAGE_SIZE:
                return elements
            if total and start + _PAGE_SIZE >= total:
                return elements
            start += _PAGE_SIZE

    async def _first_hit(
        self,
        client: httpx.AsyncClient,
        strategies: Sequence[LookupStrategy],
        urn: str,
    ) -> Optional[Tuple[str, Any]]:
        """Return ``(strategy name, value)`` of the first strategy that yields a value."""
        for index, strategy in enumerate(strategies):
            url, params = strategy.build_request(urn)
            try:
                response = await client.get(url, params=params or None)
            except httpx.HTTPError as exc:
                logger.warning(
                    "LinkedIn %s lookup failed (attempt %d/%d): %s",
                    strategy.name,
                    index + 1,
                    len(strategies),
                    exc,
                )
                continue
            if response.status_code != 200:
                logger.info(
                    "LinkedIn %s lookup returned %s (attempt %d/%d)",
                    strategy.name,
                    response.status_code,
                    index + 1,
                    len(strategies),
                )
                continue
            try:
                payload = response.json()
            except ValueError:
                logger.info("LinkedIn %s lookup returned a non-JSON body", strategy.name)
                continue
            value = strategy.extract(payload) if isinstance(payload, dict) else None
            if value:
                return strategy.name, value
        return None

    async def get_post_comments(self, post_urn: str) -> List[Dict[str, Any]]:
        async with self._client() as client:
            return await self._collect_elements(
                client, f"{_V2_BASE}/socialActions/{encode_urn(post_urn)}/comments"
            )

    async def count_post_reactions(self, post_urn: str) -> int:
        async with self._client() as client:
            reactions = await self._collect_elements(
                client, f"{_REST_BASE}/reactions", extra_params={"root": post_urn}
            )
        return len(reactions)

    async def fetch_post(self, post_urn: str) -> Tuple[str, Dict[str, Any]]:
        """Fetch post content, falling back to a placeholder when every endpoint misses."""
        async with self._client() as client:
            hit = await self._first_hit(client, _post_strategies(), post_urn)
        if hit is not None:
            return hit
        logger.warning("No LinkedIn endpoint returned content for %s", post_urn)
        return FALLBACK_SOURCE, {
            "id": post_urn,
            "text": {"text": f"Post {_urn_id(post_urn)} - content access restricted"},
            "contentSource": FALLBACK_SOURCE,
        }

    async def get_post_impressions(
        self, post_urn: str, organization_id: Optional[str] = None
    ) -> int:
        async with self._client() as client:
            hit = await self._first_hit(
                client, _impression_strategies(organization_id), post_urn
            )
        if hit is None:
            return 0
        _, impressions = hit
        return int(impressions)

    async def get_post_analytics(self, post_urn: str) -> PostAnalytics:
        """Collect likes, comments, commenter e-mails and impressions for one post."""
        comments = await self.get_post_comments(post_urn)
        emails: List[str] = []
        for comment in comments:
            for email in extract_emails((comment.get("message") or {}).get("text")):
                if email not in emails:
                    emails.append(email)

        likes = await self.count_post_reactions(post_urn)
        impressions = 0
        if self._settings.organization_id:
            impressions = await self.get_post_impressions(
                post_urn, self._settings.organization_id
            )

        return PostAnalytics(
            tag=post_urn,
            likes=likes,
            comments=len(comments),
            emails=emails,
            impressions=impressions,
        )

    async def get_person_urn(self) -> str:
        async with self._client() as client:
            try:
                response = await client.get(f"{_V2_BASE}/me")
            except httpx.HTTPError as exc:
                raise LinkedInError(f"LinkedIn profile lookup failed: {exc}") from exc
        if response.status_code != 200:
            raise LinkedInError(f"Failed to get LinkedIn profile id: {describe_response(response)}")
        return f"urn:li:person:{response.json()['id']}"

    async def reply_to_comment(
        self,
        *,
        post_urn: str,
        parent_comment_urn: str,
        text: str,
        actor_urn: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Post a nested reply under ``parent_comment_urn``."""
        actor = actor_urn or self._settings.person_urn or await self.get_person_urn()
        body = {
            "actor": actor,
            "object": post_urn,
            "parentComment": parent_comment_urn,
            "message": {"text": text},
        }
        url = f"{_REST_BASE}/socialActions/{encode_urn(parent_comment_urn)}/comments"
        async with self._client() as client:
            try:
                response = await client.post(url, json=body)
            except httpx.HTTPError as exc:
                raise LinkedInError(f"LinkedIn reply failed: {exc}") from exc

        if response.status_code not in (200, 201):
            raise LinkedInError(f"LinkedIn API error {describe_response(response)}")

        if response.content:
            return response.json()
        return {"id": response.headers.get("x-restli-id"), "parentComment": parent_comment_urn}


__all__ = [
    "FALLBACK_SOURCE",
    "LinkedInClient",
    "LinkedInError",
    "LookupStrategy",
    "encode_urn",
    "extract_emails",
]
