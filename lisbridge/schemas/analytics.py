"""
Pydantic models for engagement analytics and dashboard summaries.
"""

from typing import Any, List, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class PostAnalytics(BaseModel):
    """Engagement counters for one post, keyed by its tag."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    tag: str = Field(
        ...,
        validation_alias=AliasChoices("tag", "post_urn", "postUrn"),
        description="Tag (or post URN) identifying the post.",
    )
    likes: int = 0
    comments: int = 0
    shares: int = 0
    impressions: int = 0
    emails: List[str] = Field(
        default_factory=list, description="E-mail addresses found in comments."
    )

    @field_validator("likes", "comments", "shares", "impressions", mode="before")
    @classmethod
    def _missing_counts_as_zero(cls, value: Any) -> Any:
        return value or 0

    @field_validator("emails", mode="before")
    @classmethod
    def _missing_emails(cls, value: Any) -> Any:
        return value or []


class PostSummary(BaseModel):
    """
    Post columns surfaced on the dashboard.

    Column values are passed through as SharePoint returns them; hyperlink
    columns arrive as objects and counters may be text.
    """

    model_config = ConfigDict(extra="ignore")

    tag: Any = None
    platform: Any = None
    likes: Any = None
    comments: Any = None
    shares: Any = None
    impressions: Any = None
    postUrl: Any = None
    postedAt: Any = None
    content: Any = None
    visual: Any = None
    isApproved: Any = None


class EngagementSummary(BaseModel):
    """Aggregate engagement metrics for the dashboard."""

    total_likes: Union[int, float] = 0
    total_engagements: Union[int, float] = 0
    total_impressions: Union[int, float] = 0
    engagement_rate: float = Field(
        0.0, description="Engagements per impression, as a percentage."
    )
    email_contacted: int = Field(0, description="Number of items in the Leads list.")
    all_posts: List[PostSummary] = Field(default_factory=list)


__all__ = ["EngagementSummary", "PostAnalytics", "PostSummary"]
