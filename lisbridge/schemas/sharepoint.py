"""
Pydantic models for the SharePoint-backed Prompt, Post and Leads lists.

Column names follow the SharePoint list schema (camelCase) so the models can
be dumped straight into a Graph ``fields`` map.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

PROMPT_REQUIRED_FIELDS = ("tag", "prompt", "scheduledAt", "promptCreatedAt")
POST_REQUIRED_FIELDS = ("tag", "platform", "postUrl")
LEAD_REQUIRED_FIELDS = ("email", "tag")

# Required inside the combined {tag, prompt, post} payload.
PAIRED_PROMPT_REQUIRED_FIELDS = ("prompt", "isApproved", "scheduledAt", "promptCreatedAt")
PAIRED_POST_REQUIRED_FIELDS = ("platform", "postedAt", "content", "isApproved", "postUrl")

POST_METRIC_FIELDS = ("likes", "comments", "shares", "impressions")


class PromptItem(BaseModel):
    """A generation prompt scheduled for publishing."""

    model_config = ConfigDict(extra="ignore")

    tag: str = Field(..., description="Correlation key shared with the Post item.")
    prompt: str = Field(..., description="Prompt text used to generate the post.")
    isPosted: Optional[bool] = Field(None, description="Whether the post went out.")
    isApproved: Optional[bool] = Field(None, description="Human approval flag.")
    scheduledAt: str = Field(..., description="Planned publishing time.")
    promptCreatedAt: str = Field(..., description="When the prompt was authored.")


class PostItem(BaseModel):
    """A published (or publishable) social post and its engagement counters."""

    model_config = ConfigDict(extra="ignore")

    tag: str = Field(..., description="Correlation key shared with the Prompt item.")
    platform: str = Field(..., description="Target platform, e.g. LinkedIn.")
    postedAt: Optional[str] = None
    content: Optional[str] = None
    visual: Optional[str] = Field(None, description="URL of the attached visual.")
    postUrl: str = Field(..., description="Platform URL or URN of the post.")
    isApproved: Optional[bool] = None
    likes: Optional[int] = None
    comments: Optional[int] = None
    shares: Optional[int] = None
    impressions: Optional[int] = None


class LeadItem(BaseModel):
    """An e-mail address collected from post comments."""

    model_config = ConfigDict(extra="ignore")

    email: str
    tag: str


def to_fields(item: BaseModel) -> Dict[str, Any]:
    """Dump a list model into a Graph ``fields`` map, skipping unset columns."""
    return item.model_dump(exclude_none=True)


__all__ = [
    "LEAD_REQUIRED_FIELDS",
    "LeadItem",
    "PAIRED_POST_REQUIRED_FIELDS",
    "PAIRED_PROMPT_REQUIRED_FIELDS",
    "POST_METRIC_FIELDS",
    "POST_REQUIRED_FIELDS",
    "PROMPT_REQUIRED_FIELDS",
    "PostItem",
    "PromptItem",
    "to_fields",
]
