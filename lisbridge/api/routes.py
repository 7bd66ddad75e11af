"""
FastAPI routes for the SharePoint, Power BI, dashboard and LinkedIn surfaces.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Dict

import pydantic
from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse

from lisbridge.clients.linkedin import LinkedInError
from lisbridge.core.errors import LisBridgeError, NotFoundError, ValidationError
from lisbridge.dependencies import (
    get_engagement_service,
    get_linkedin_client,
    get_powerbi_client,
    get_sharepoint_item_service,
)
from lisbridge.schemas import (
    CommentReplyRequest,
    EmbedTokenResponse,
    EngagementSummary,
    PostAnalytics,
    PostLookupResult,
    ReportEmbedInfo,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _sp_error(status: HTTPStatus, message: str, error: Any = None) -> JSONResponse:
    body: Dict[str, Any] = {"status": int(status), "success": False, "message": message}
    if error is not None:
        body["error"] = error
    return JSONResponse(status_code=status, content=body)


def _sp_failure(exc: Exception, message: str) -> JSONResponse:
    """Map a workflow exception onto the SharePoint error envelope."""
    if isinstance(exc, ValidationError):
        return _sp_error(HTTPStatus.BAD_REQUEST, str(exc), exc.fields or None)
    if isinstance(exc, pydantic.ValidationError):
        details = exc.errors(include_url=False, include_context=False, include_input=False)
        return _sp_error(HTTPStatus.BAD_REQUEST, "Invalid request body", details)
    logger.error("%s: %s", message, exc)
    return _sp_error(HTTPStatus.INTERNAL_SERVER_ERROR, message, str(exc))


def _created(message: str, data: Any, **extra: Any) -> JSONResponse:
    body = {
        "status": int(HTTPStatus.CREATED),
        "success": True,
        "message": message,
        "data": data,
        **extra,
    }
    return JSONResponse(status_code=HTTPStatus.CREATED, content=body)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


# -- Power BI ---------------------------------------------------------------


@router.post("/powerbi/embed-token", response_model=EmbedTokenResponse)
async def create_embed_token(
    powerbi: Annotated[Any, Depends(get_powerbi_client)],
    payload: Any = Body(default=None),
) -> Any:
    """Mint a view-only embed token for one report."""
    payload = payload if isinstance(payload, dict) else {}
    group_id = payload.get("groupId")
    report_id = payload.get("reportId")
    if not group_id or not report_id:
        return JSONResponse(
            status_code=HTTPStatus.BAD_REQUEST,
            content={"error": "groupId and reportId are required"},
        )

    try:
        embed = await powerbi.generate_embed_token(group_id=group_id, report_id=report_id)
    except LisBridgeError as exc:
        logger.error("Embed token generation failed for report %s: %s", report_id, exc)
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content={"error": "Failed to generate embed token"},
        )
    return EmbedTokenResponse(embedToken=embed["token"], expiration=embed["expiration"])


@router.get(
    "/powerbi/groups/{group_id}/reports/{report_id}", response_model=ReportEmbedInfo
)
async def get_report_embed_info(
    group_id: str,
    report_id: str,
    powerbi: Annotated[Any, Depends(get_powerbi_client)],
) -> Any:
    try:
        report = await powerbi.get_report(group_id=group_id, report_id=report_id)
    except NotFoundError as exc:
        return JSONResponse(status_code=HTTPStatus.NOT_FOUND, content={"error": str(exc)})
    except LisBridgeError as exc:
        logger.error("Report lookup failed for %s: %s", report_id, exc)
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content={"error": "Failed to fetch report"},
        )
    return ReportEmbedInfo.model_validate(report)


# -- SharePoint -------------------------------------------------------------


@router.get("/sp/health", status_code=HTTPStatus.OK)
async def sharepoint_health() -> dict:
    return {"status": int(HTTPStatus.OK), "success": True, "message": "SharePoint routes are up"}


@router.get("/sp/items/{list_name}")
async def list_sharepoint_items(
    list_name: str,
    service: Annotated[Any, Depends(get_sharepoint_item_service)],
) -> Any:
    """Return the fields of every item in a list."""
    try:
        items = await service.get_items(list_name)
    except LisBridgeError as exc:
        return _sp_failure(exc, f"Failed to fetch items from {list_name}")
    return {"status": int(HTTPStatus.OK), "success": True, "data": items}


@router.get("/sp/sync/post")
async def sync_post_metrics(
    service: Annotated[Any, Depends(get_sharepoint_item_service)],
) -> Any:
    """Refresh likes, comments, shares and impressions of every post."""
    try:
        counts = await service.sync_post_metrics()
    except LisBridgeError as exc:
        return _sp_failure(exc, "Failed to sync post metrics")
    return {"status": int(HTTPStatus.OK), "success": True, **counts}


@router.post("/sp/save/prompt")
async def save_prompt(
    service: Annotated[Any, Depends(get_sharepoint_item_service)],
    payload: Any = Body(default=None),
) -> Any:
    try:
        created = await service.save_prompt(payload)
    except (LisBridgeError, pydantic.ValidationError) as exc:
        return _sp_failure(exc, "Failed to save prompt")
    return _created("Prompt saved successfully", created)


@router.post("/sp/save/prompt/bulk")
async def save_prompts_bulk(
    service: Annotated[Any, Depends(get_sharepoint_item_service)],
    payload: Any = Body(default=None),
) -> Any:
    """Create many prompts; per-item outcomes are reported in ``results``."""
    if not isinstance(payload, list) or not payload:
        return _sp_error(HTTPStatus.BAD_REQUEST, "Request body must contain an array of items")
    try:
        outcome = await service.save_prompts_bulk(payload)
    except (LisBridgeError, pydantic.ValidationError) as exc:
        return _sp_failure(exc, "Bulk item creation failed")
    return JSONResponse(
        status_code=HTTPStatus.CREATED,
        content={
            "status": int(HTTPStatus.CREATED),
            "success": True,
            "message": "Bulk items processed",
            **outcome,
        },
    )


@router.post("/sp/save/post")
async def save_post(
    service: Annotated[Any, Depends(get_sharepoint_item_service)],
    payload: Any = Body(default=None),
) -> Any:
    try:
        created = await service.save_post(payload)
    except (LisBridgeError, pydantic.ValidationError) as exc:
        return _sp_failure(exc, "Failed to save post")
    return _created("Post saved successfully", created)


@router.post("/sp/save/lead")
async def save_lead(
    service: Annotated[Any, Depends(get_sharepoint_item_service)],
    payload: Any = Body(default=None),
) -> Any:
    try:
        created = await service.save_lead(payload)
    except (LisBridgeError, pydantic.ValidationError) as exc:
        return _sp_failure(exc, "Failed to save lead")
    return _created("Lead saved successfully", created)


@router.post("/sp/save")
async def save_prompt_and_post(
    service: Annotated[Any, Depends(get_sharepoint_item_service)],
    payload: Any = Body(default=None),
) -> Any:
    """Create the Prompt and Post items for one tag."""
    if not isinstance(payload, dict):
        return _sp_error(HTTPStatus.BAD_REQUEST, "Request body must be a JSON object")
    try:
        view = await service.save_prompt_and_post(payload)
    except (LisBridgeError, pydantic.ValidationError) as exc:
        return _sp_failure(exc, "Failed to create prompt and post")
    return _created("Prompt and Post created successfully.", view, tag=view["tag"])


# -- Dashboard --------------------------------------------------------------


@router.get("/dashboard/metrics", response_model=EngagementSummary)
async def dashboard_metrics(
    engagement: Annotated[Any, Depends(get_engagement_service)],
) -> EngagementSummary:
    return await engagement.compute_engagement_summary()


# -- LinkedIn ---------------------------------------------------------------


def _linkedin_failure(exc: LisBridgeError) -> JSONResponse:
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    if isinstance(exc, LinkedInError):
        status = HTTPStatus.BAD_GATEWAY
    logger.error("LinkedIn request failed: %s", exc)
    return JSONResponse(status_code=status, content={"error": str(exc)})


@router.get("/linkedin/analytics", response_model=PostAnalytics)
async def linkedin_post_analytics(
    linkedin: Annotated[Any, Depends(get_linkedin_client)],
    post_urn: str = Query(..., alias="postUrn", description="Activity URN of the post."),
) -> Any:
    try:
        return await linkedin.get_post_analytics(post_urn)
    except LisBridgeError as exc:
        return _linkedin_failure(exc)


@router.get("/linkedin/posts", response_model=PostLookupResult)
async def linkedin_post_content(
    linkedin: Annotated[Any, Depends(get_linkedin_client)],
    post_urn: str = Query(..., alias="postUrn", description="Activity URN of the post."),
) -> Any:
    """Fetch post content through whichever LinkedIn endpoint answers first."""
    try:
        source, post = await linkedin.fetch_post(post_urn)
    except LisBridgeError as exc:
        return _linkedin_failure(exc)
    return PostLookupResult(source=source, post=post)


@router.post("/linkedin/comments/reply", status_code=HTTPStatus.CREATED)
async def linkedin_reply_to_comment(
    reply: CommentReplyRequest,
    linkedin: Annotated[Any, Depends(get_linkedin_client)],
) -> Any:
    try:
        return await linkedin.reply_to_comment(
            post_urn=reply.postUrn,
            parent_comment_urn=reply.parentCommentUrn,
            text=reply.replyText,
            actor_urn=reply.actorUrn,
        )
    except LisBridgeError as exc:
        return _linkedin_failure(exc)


__all__ = ["router"]
