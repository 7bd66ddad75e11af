"""
Workflows over the Prompt, Post and Leads SharePoint lists.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from lisbridge.clients.analytics_agent import AnalyticsAgentClient
from lisbridge.clients.sharepoint_lists import SharePointListClient
from lisbridge.core.config import SharePointSettings
from lisbridge.core.errors import ValidationError
from lisbridge.schemas import (
    LEAD_REQUIRED_FIELDS,
    PAIRED_POST_REQUIRED_FIELDS,
    PAIRED_PROMPT_REQUIRED_FIELDS,
    POST_METRIC_FIELDS,
    POST_REQUIRED_FIELDS,
    PROMPT_REQUIRED_FIELDS,
    LeadItem,
    PostItem,
    PromptItem,
    to_fields,
)

logger = logging.getLogger(__name__)


def missing_fields(payload: Mapping[str, Any] | None, required: Iterable[str]) -> List[str]:
    """Return the required keys that are absent or ``None``.

    Empty strings, ``False`` and ``0`` count as present so boolean flags can be sent.
    """
    if not isinstance(payload, Mapping):
        payload = {}
    missing = []
    for key in required:
        value = payload.get(key)
        if value is None:
            missing.append(key)
    return missing


def _require(payload: Mapping[str, Any] | None, required: Iterable[str], label: str) -> None:
    missing = missing_fields(payload, required)
    if missing:
        raise ValidationError(f"Missing required {label} fields: {', '.join(missing)}", missing)


def _settled_counts(outcomes: Sequence[Any]) -> Dict[str, int]:
    failures = sum(1 for outcome in outcomes if isinstance(outcome, BaseException))
    return {"successCount": len(outcomes) - failures, "failureCount": failures}


class SharePointItemService:
    """Validate payloads and drive the list gateway for save, sync and lead flows."""

    def __init__(
        self,
        lists: SharePointListClient,
        settings: SharePointSettings,
        agent: AnalyticsAgentClient,
    ) -> None:
        self._lists = lists
        self._settings = settings
        self._agent = agent

    async def get_items(self, list_name: str) -> List[Dict[str, Any]]:
        """Return the ``fields`` map of every item in ``list_name``."""
        items = await self._lists.list_items(list_name)
        return [item.get("fields", {}) for item in items]

    async def save_prompt(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        _require(payload, PROMPT_REQUIRED_FIELDS, "prompt")
        item = PromptItem.model_validate(payload)
        list_id = await self._lists.ensure_list_id(self._settings.prompt_list)
        return await self._lists.create_item(list_id, to_fields(item))

    async def save_post(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        _require(payload, POST_REQUIRED_FIELDS, "post")
        item = PostItem.model_validate(payload)
        list_id = await self._lists.ensure_list_id(self._settings.post_list)
        return await self._lists.create_item(list_id, to_fields(item))

    async def save_prompts_bulk(self, items: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Create many prompts at once.

        Every item is validated before anything is written, so one bad item
        rejects the whole batch. Creation itself is settled: each item's
        outcome is reported and failures do not stop the others.
        """
        if not items:
            raise ValidationError("Request body must contain a non-empty array of items")

        prompts: List[PromptItem] = []
        for index, payload in enumerate(items):
            missing = missing_fields(payload, PROMPT_REQUIRED_FIELDS)
            if missing:
                raise ValidationError(
                    f"Item at index {index} missing required fields: {', '.join(missing)}",
                    missing,
                )
            prompts.append(PromptItem.model_validate(payload))

        list_id = await self._lists.ensure_list_id(self._settings.prompt_list)
        outcomes = await asyncio.gather(
            *(self._lists.create_item(list_id, to_fields(prompt)) for prompt in prompts),
            return_exceptions=True,
        )

        results: List[Dict[str, Any]] = []
        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Bulk prompt item %d failed: %s", index, outcome)
                results.append({"index": index, "success": False, "error": str(outcome)})
            else:
                results.append({"index": index, "success": True, "data": outcome})
        return {"results": results, **_settled_counts(outcomes)}

    async def save_prompt_and_post(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Create the Prompt and Post items for one tag; either failure fails the call."""
        tag = payload.get("tag")
        if not isinstance(tag, str) or not tag.strip():
            raise ValidationError("Missing or invalid 'tag' field.", ["tag"])
        prompt = payload.get("prompt")
        post = payload.get("post")
        _require(prompt, PAIRED_PROMPT_REQUIRED_FIELDS, "prompt")
        _require(post, PAIRED_POST_REQUIRED_FIELDS, "post")

        prompt_item = PromptItem.model_validate({**prompt, "tag": tag})
        post_item = PostItem.model_validate({**post, "tag": tag})

        prompt_list_id, post_list_id = await asyncio.gather(
            self._lists.ensure_list_id(self._settings.prompt_list),
            self._lists.ensure_list_id(self._settings.post_list),
        )
        prompt_created, post_created = await asyncio.gather(
            self._lists.create_item(prompt_list_id, to_fields(prompt_item)),
            self._lists.create_item(post_list_id, to_fields(post_item)),
        )
        return {
            "tag": tag,
            "prompt": _prompt_view(prompt_created),
            "post": _post_view(post_created),
        }

    async def save_lead(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Store a lead unless its e-mail is already in the Leads list."""
        _require(payload, LEAD_REQUIRED_FIELDS, "lead")
        lead = LeadItem.model_validate(payload)

        try:
            existing = await self.get_items(self._settings.leads_list)
        except Exception as exc:
            logger.warning("Could not read %s list, skipping duplicate check: %s",
                           self._settings.leads_list, exc)
            existing = []
        if any(fields.get("email") == lead.email for fields in existing):
            raise ValidationError("Email already exists", ["email"])

        list_id = await self._lists.ensure_list_id(self._settings.leads_list)
        return await self._lists.create_item(list_id, to_fields(lead))

    async def sync_post_metrics(self) -> Dict[str, int]:
        """
        Pull fresh engagement counters for every post and write them back.

        Reading the Post list and calling the agent propagate errors. The
        per-post updates are settled: a failed update is counted, not raised.
        """
        posts = await self.get_items(self._settings.post_list)
        tags = [fields["tag"] for fields in posts if fields.get("tag")]
        if not tags:
            logger.info("No tagged posts to sync")
            return {"successCount": 0, "failureCount": 0}

        records = await self._agent.fetch_analytics(tags)
        list_id = await self._lists.ensure_list_id(self._settings.post_list)
        outcomes = await asyncio.gather(
            *(
                self._lists.update_post_by_tag(
                    list_id,
                    record.tag,
                    record.model_dump(include=set(POST_METRIC_FIELDS)),
                )
                for record in records
            ),
            return_exceptions=True,
        )
        for record, outcome in zip(records, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Failed to sync metrics for %s: %s", record.tag, outcome)

        counts = _settled_counts(outcomes)
        logger.info(
            "Post metrics synced: %s succeeded, %s failed",
            counts["successCount"],
            counts["failureCount"],
        )
        return counts


def _prompt_view(created: Mapping[str, Any]) -> Dict[str, Any]:
    fields = created.get("fields") or {}
    return {
        "id": created.get("id"),
        "tag": fields.get("tag"),
        "prompt": fields.get("prompt"),
        "isApproved": fields.get("isApproved"),
        "isPosted": fields.get("isPosted"),
        "scheduledAt": fields.get("scheduledAt"),
        "promptCreatedAt": fields.get("promptCreatedAt"),
        "createdAt": fields.get("Created"),
        "webUrl": created.get("webUrl"),
    }


def _post_view(created: Mapping[str, Any]) -> Dict[str, Any]:
    fields = created.get("fields") or {}
    return {
        "id": created.get("id"),
        "tag": fields.get("tag"),
        "platform": fields.get("platform"),
        "content": fields.get("content"),
        "visual": fields.get("visual"),
        "postUrl": fields.get("postUrl"),
        "isApproved": fields.get("isApproved"),
        "postedAt": fields.get("postedAt"),
        "createdAt": fields.get("Created"),
        "webUrl": created.get("webUrl"),
        "likes": fields.get("likes"),
        "comments": fields.get("comments"),
        "impressions": fields.get("impressions"),
    }


__all__ = ["SharePointItemService", "missing_fields"]
