"""Service layer exports."""

from .engagement import EngagementService
from .sharepoint_items import SharePointItemService
from .token_session import SharePointSession, TokenSession

__all__ = [
    "EngagementService",
    "SharePointItemService",
    "SharePointSession",
    "TokenSession",
]
