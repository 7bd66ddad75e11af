"""
Factory functions to provide shared clients, token sessions and services as
FastAPI dependencies.

Each factory is cached so that token sessions (and the site/list ids they
carry) live for the whole process.
"""

from functools import lru_cache

from lisbridge.clients import (
    GRAPH_SCOPE,
    POWERBI_SCOPE,
    AnalyticsAgentClient,
    LinkedInClient,
    MicrosoftIdentityClient,
    PowerBIClient,
    SharePointListClient,
)
from lisbridge.core.config import get_settings
from lisbridge.services import (
    EngagementService,
    SharePointItemService,
    SharePointSession,
    TokenSession,
)
from lisbridge.utils.http import RetryConfig


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


def _retry_config() -> RetryConfig:
    settings = _settings()
    return RetryConfig(
        attempts=settings.http_retry_attempts,
        backoff_seconds=settings.http_retry_backoff_seconds,
    )


@lru_cache()
def get_identity_client() -> MicrosoftIdentityClient:
    """Provide the client-credentials token client."""
    settings = _settings()
    return MicrosoftIdentityClient(settings.azure, timeout=settings.http_timeout_seconds)


@lru_cache()
def get_graph_session() -> SharePointSession:
    """Provide the Graph token session, seeded with SITE_ID when configured."""
    settings = _settings()
    return SharePointSession(
        get_identity_client(),
        GRAPH_SCOPE,
        site_id=settings.sharepoint.site_id,
    )


@lru_cache()
def get_powerbi_session() -> TokenSession:
    return TokenSession(get_identity_client(), POWERBI_SCOPE)


@lru_cache()
def get_sharepoint_list_client() -> SharePointListClient:
    """Provide the SharePoint list-item gateway."""
    settings = _settings()
    return SharePointListClient(
        get_graph_session(),
        settings.sharepoint,
        timeout=settings.http_timeout_seconds,
        retry_config=_retry_config(),
    )


@lru_cache()
def get_powerbi_client() -> PowerBIClient:
    settings = _settings()
    return PowerBIClient(
        get_powerbi_session(), settings.powerbi, timeout=settings.http_timeout_seconds
    )


@lru_cache()
def get_analytics_agent_client() -> AnalyticsAgentClient:
    """Provide the analytics agent client."""
    settings = _settings()
    return AnalyticsAgentClient(settings.agent, retry_config=_retry_config())


@lru_cache()
def get_linkedin_client() -> LinkedInClient:
    settings = _settings()
    return LinkedInClient(settings.linkedin, timeout=settings.http_timeout_seconds)


@lru_cache()
def get_sharepoint_item_service() -> SharePointItemService:
    """Provide the save, sync and lead workflows."""
    settings = _settings()
    return SharePointItemService(
        get_sharepoint_list_client(),
        settings.sharepoint,
        get_analytics_agent_client(),
    )


@lru_cache()
def get_engagement_service() -> EngagementService:
    """Provide the dashboard aggregator."""
    settings = _settings()
    return EngagementService(get_sharepoint_list_client(), settings.sharepoint)
