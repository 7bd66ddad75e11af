"""Schemas for LinkedIn post lookups and comment replies."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class CommentReplyRequest(BaseModel):
    """Payload for replying to a comment on a LinkedIn post."""

    postUrn: str = Field(..., description="Activity URN of the post being discussed.")
    parentCommentUrn: str = Field(
        ...,
        description="URN of the comment being replied to, e.g. urn:li:comment:(<post>,<id>).",
    )
    replyText: str = Field(..., min_length=1)
    actorUrn: Optional[str] = Field(
        None, description="Person URN to reply as; defaults to the configured actor."
    )


class PostLookupResult(BaseModel):
    """Post payload together with the strategy that produced it."""

    source: str = Field(..., description="Name of the lookup strategy that succeeded.")
    post: Dict[str, Any] = Field(default_factory=dict)


__all__ = ["CommentReplyRequest", "PostLookupResult"]
