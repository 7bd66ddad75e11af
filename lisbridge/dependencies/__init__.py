"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_analytics_agent_client,
    get_engagement_service,
    get_graph_session,
    get_identity_client,
    get_linkedin_client,
    get_powerbi_client,
    get_powerbi_session,
    get_sharepoint_item_service,
    get_sharepoint_list_client,
)

__all__ = [
    "get_analytics_agent_client",
    "get_engagement_service",
    "get_graph_session",
    "get_identity_client",
    "get_linkedin_client",
    "get_powerbi_client",
    "get_powerbi_session",
    "get_sharepoint_item_service",
    "get_sharepoint_list_client",
]
