"""
Microsoft Graph wrapper for SharePoint list items.

Resolves site and list identifiers once per process and exposes the list-item
operations the service needs: read, create, find by column and patch.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Awaitable, Callable, Dict, List, Type, TYPE_CHECKING
from urllib.parse import quote

import httpx

from fastapi import status

from lisbridge.core.config import SharePointSettings
from lisbridge.core.errors import (
    AuthError,
    CreateError,
    FetchError,
    LisBridgeError,
    NotFoundError,
    UpdateError,
    ValidationError,
    describe_response,
)
from lisbridge.utils.http import NO_RETRY, RetryConfig, request_with_retry

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from lisbridge.services.token_session import SharePointSession

logger = logging.getLogger(__name__)

_FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def escape_odata_literal(value: Any) -> str:
    """Escape a value for use inside a single-quoted OData string literal."""
    return str(value).replace("'", "''")


def build_equality_filter(field_name: str, field_value: Any) -> str:
    """Build ``fields/<name> eq '<value>'`` with the value escaped."""
    if not _FIELD_NAME_PATTERN.match(field_name or ""):
        raise ValidationError(
            f"Invalid field name for filtering: {field_name!r}", fields=[field_name]
        )
    return f"fields/{field_name} eq '{escape_odata_literal(field_value)}'"


class SharePointListClient:
    """Read and write items in the lists of one SharePoint site."""

    def __init__(
        self,
        session: "SharePointSession",
        settings: SharePointSettings,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_config: RetryConfig | None = None,
    ) -> None:
        self._session = session
        self._settings = settings
        self._timeout = timeout
        self._transport = transport
        self._retry = retry_config or RetryConfig()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._settings.graph_base_url.rstrip("/"),
            timeout=self._timeout,
            transport=self._transport,
        )

    @staticmethod
    def _headers(token: str, **extra: str) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        headers.update(extra)
        return headers

    async def _send(
        self,
        func: Callable[..., Awaitable[httpx.Response]],
        url: str,
        *,
        error_cls: Type[LisBridgeError],
        retry: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            return await request_with_retry(
                func, url, retry_config=self._retry if retry else NO_RETRY, **kwargs
            )
        except httpx.HTTPError as exc:
            raise error_cls(f"Graph request to {url} failed: {exc}") from exc

    # -- resolution -------------------------------------------------------

    async def resolve_site_id(self, token: str, domain: str, site_path: str) -> str:
        """Look up the Graph site id for ``https://<domain>/sites/<site_path>``."""
        url = f"/sites/{domain}:/sites/{site_path.strip('/')}"
        async with self._client() as client:
            response = await self._send(
                client.get, url, error_cls=NotFoundError, headers=self._headers(token)
            )
        return self._resolved_id(response, f"site {domain}/sites/{site_path}")

    async def resolve_list_id(self, token: str, site_id: str, list_name: str) -> str:
        """Look up the Graph list id for a list display name."""
        url = f"/sites/{site_id}/lists/{quote(list_name, safe='')}"
        async with self._client() as client:
            response = await self._send(
                client.get, url, error_cls=NotFoundError, headers=self._headers(token)
            )
        return self._resolved_id(response, f"list {list_name}")

    @staticmethod
    def _resolved_id(response: httpx.Response, label: str) -> str:
        if response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
            raise AuthError(f"Token rejected while resolving {label}: {describe_response(response)}")
        if response.status_code != status.HTTP_200_OK:
            raise NotFoundError(f"Could not resolve {label}: {describe_response(response)}")
        resolved = response.json().get("id")
        if not resolved:
            raise NotFoundError(f"Graph returned no id for {label}.")
        return resolved

    async def ensure_site_id(self) -> str:
        """Return the cached site id, resolving it on first use."""
        if self._session.site_id:
            return self._session.site_id
        if not self._settings.domain or not self._settings.site:
            raise NotFoundError(
                "SharePoint site is not configured; set SITE_ID or "
                "SHAREPOINT_DOMAIN and SHAREPOINT_SITE."
            )
        token = await self._session.get_access_token()
        site_id = await self.resolve_site_id(token, self._settings.domain, self._settings.site)
        self._session.site_id = site_id
        logger.info("Resolved SharePoint site %s -> %s", self._settings.site, site_id)
        return site_id

    async def ensure_list_id(self, list_name: str) -> str:
        """Return the cached list id for ``list_name``, resolving it on first use."""
        cached = self._session.list_ids.get(list_name)
        if cached:
            return cached
        site_id = await self.ensure_site_id()
        token = await self._session.get_access_token()
        list_id = await self.resolve_list_id(token, site_id, list_name)
        self._session.list_ids[list_name] = list_id
        logger.info("Resolved SharePoint list %s -> %s", list_name, list_id)
        return list_id

    # -- items ------------------------------------------------------------

    async def list_items(self, list_name: str) -> List[Dict[str, Any]]:
        """Return every item of ``list_name`` with its ``fields`` expanded."""
        site_id = await self.ensure_site_id()
        token = await self._session.get_access_token()
        url: str | None = f"/sites/{site_id}/lists/{quote(list_name, safe='')}/items"
        params: Dict[str, str] | None = {"expand": "fields"}

        items: List[Dict[str, Any]] = []
        async with self._client() as client:
            while url:
                response = await self._send(
                    client.get,
                    url,
                    error_cls=FetchError,
                    params=params,
                    headers=self._headers(token),
                )
                if response.status_code != status.HTTP_200_OK:
                    raise FetchError(
                        f"Failed to fetch items of {list_name}: {describe_response(response)}"
                    )
                payload = response.json()
                items.extend(payload.get("value", []))
                # nextLink already carries the query string
                url = payload.get("@odata.nextLink")
                params = None
        return items

    async def create_item(self, list_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Create a list item. Never retried: a repeated POST creates a duplicate."""
        site_id = await self.ensure_site_id()
        token = await self._session.get_access_token()
        url = f"/sites/{site_id}/lists/{list_id}/items"
        async with self._client() as client:
            response = await self._send(
                client.post,
                url,
                error_cls=CreateError,
                retry=False,
                json={"fields": fields},
                headers=self._headers(token, **{"Content-Type": "application/json"}),
            )
        if response.status_code != status.HTTP_201_CREATED:
            raise CreateError(f"Failed to create list item: {describe_response(response)}")
        return response.json()

    async def find_item_by_field(
        self, list_id: str, field_name: str, field_value: Any
    ) -> Dict[str, Any]:
        """Return the first item whose column ``field_name`` equals ``field_value``."""
        filter_expression = build_equality_filter(field_name, field_value)
        site_id = await self.ensure_site_id()
        token = await self._session.get_access_token()
        url = f"/sites/{site_id}/lists/{list_id}/items"
        async with self._client() as client:
            response = await self._send(
                client.get,
                url,
                error_cls=FetchError,
                params={"$filter": filter_expression, "expand": "fields"},
                headers=self._headers(
                    token, Prefer="HonorNonIndexedQueriesWarningMayFailRandomly"
                ),
            )
        if response.status_code != status.HTTP_200_OK:
            raise FetchError(
                f"Failed to query items by {field_name}: {describe_response(response)}"
            )
        matches = response.json().get("value", [])
        if not matches:
            raise NotFoundError(f"No item found with {field_name} = {field_value}")
        return matches[0]

    async def update_item_fields(
        self, list_id: str, item_id: str, fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        """PATCH the column values of one item and return the updated fields."""
        site_id = await self.ensure_site_id()
        token = await self._session.get_access_token()
        url = f"/sites/{site_id}/lists/{list_id}/items/{item_id}/fields"
        async with self._client() as client:
            response = await self._send(
                client.patch,
                url,
                error_cls=UpdateError,
                json=fields,
                headers=self._headers(token, **{"Content-Type": "application/json"}),
            )
        if response.status_code != status.HTTP_200_OK:
            raise UpdateError(
                f"Failed to update item {item_id}: {describe_response(response)}"
            )
        return response.json()

    async def update_item_by_field(
        self,
        list_id: str,
        field_name: str,
        field_value: Any,
        fields: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Find an item by column value, then patch it.

        The two calls are not atomic and no ETag is sent: a concurrent edit or
        delete between them is not detected. A failed lookup aborts before any
        write is attempted.
        """
        item = await self.find_item_by_field(list_id, field_name, field_value)
        item_id = item.get("id")
        if not item_id:
            raise NotFoundError(f"Item matching {field_name} = {field_value} has no id.")
        try:
            return await self.update_item_fields(list_id, item_id, fields)
        except UpdateError as exc:
            raise UpdateError(
                f"Failed to update item with {field_name} {field_value}: {exc}"
            ) from exc

    async def update_post_by_tag(
        self, list_id: str, tag: str, fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Patch the item whose ``tag`` column equals ``tag``."""
        return await self.update_item_by_field(list_id, "tag", tag, fields)


__all__ = [
    "SharePointListClient",
    "build_equality_filter",
    "escape_odata_literal",
]
