"""Public schema exports."""

from .analytics import EngagementSummary, PostAnalytics, PostSummary
from .linkedin import CommentReplyRequest, PostLookupResult
from .powerbi import EmbedTokenResponse, ReportEmbedInfo
from .sharepoint import (
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

__all__ = [
    "CommentReplyRequest",
    "EmbedTokenResponse",
    "EngagementSummary",
    "LEAD_REQUIRED_FIELDS",
    "LeadItem",
    "PAIRED_POST_REQUIRED_FIELDS",
    "PAIRED_PROMPT_REQUIRED_FIELDS",
    "POST_METRIC_FIELDS",
    "POST_REQUIRED_FIELDS",
    "PROMPT_REQUIRED_FIELDS",
    "PostAnalytics",
    "PostItem",
    "PostLookupResult",
    "PostSummary",
    "PromptItem",
    "ReportEmbedInfo",
    "to_fields",
]
