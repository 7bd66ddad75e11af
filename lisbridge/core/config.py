"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the SharePoint gateway and
the operational scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file into the process env."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class AzureSettings(BaseSettings):
    """Client-credentials registration used for Graph and Power BI tokens."""

    model_config = SettingsConfigDict(populate_by_name=True)

    tenant_id: str = Field(..., validation_alias="TENANT_ID")
    client_id: str = Field(..., validation_alias="CLIENT_ID")
    client_secret: str = Field(..., validation_alias="CLIENT_SECRET")
    authority_host: str = Field(
        "https://login.microsoftonline.com",
        validation_alias="AZURE_AUTHORITY_HOST",
    )


class SharePointSettings(BaseSettings):
    """Site and list naming for the SharePoint lists backing the service."""

    model_config = SettingsConfigDict(populate_by_name=True)

    domain: Optional[str] = Field(
        None,
        validation_alias="SHAREPOINT_DOMAIN",
        description="Tenant host name, e.g. contoso.sharepoint.com.",
    )
    site: Optional[str] = Field(
        None,
        validation_alias="SHAREPOINT_SITE",
        description="Site path segment below /sites/.",
    )
    site_id: Optional[str] = Field(
        None,
        validation_alias="SITE_ID",
        description="Pre-resolved Graph site identifier; skips site lookup.",
    )
    prompt_list: str = Field("Prompt", validation_alias="PROMPT_LIST_NAME")
    post_list: str = Field("Post", validation_alias="POST_LIST_NAME")
    leads_list: str = Field("Leads", validation_alias="LEADS_LIST_NAME")
    graph_base_url: str = Field(
        "https://graph.microsoft.com/v1.0", validation_alias="GRAPH_BASE_URL"
    )


class PowerBISettings(BaseSettings):
    """Power BI REST API configuration."""

    model_config = SettingsConfigDict(populate_by_name=True)

    api_base_url: str = Field(
        "https://api.powerbi.com/v1.0/myorg", validation_alias="POWERBI_API_BASE_URL"
    )
    access_level: str = Field("View", validation_alias="POWERBI_ACCESS_LEVEL")
    embed_lifetime_minutes: int = Field(
        10, validation_alias="POWERBI_EMBED_LIFETIME_MINUTES"
    )


class LinkedInSettings(BaseSettings):
    """LinkedIn organisation credentials used for engagement lookups."""

    model_config = SettingsConfigDict(populate_by_name=True)

    access_token: Optional[str] = Field(None, validation_alias="LINKEDIN_ACCESS_TOKEN")
    organization_id: Optional[str] = Field(None, validation_alias="LINKEDIN_ORG_ID")
    person_urn: Optional[str] = Field(
        None,
        validation_alias="LINKEDIN_PERSON_URN",
        description="Actor URN used when replying to comments.",
    )
    api_version: str = Field("202401", validation_alias="LINKEDIN_API_VERSION")


class AgentSettings(BaseSettings):
    """External analytics agent that computes post metrics for a set of tags."""

    model_config = SettingsConfigDict(populate_by_name=True)

    base_url: str = Field("http://127.0.0.1:8000", validation_alias="AGENT_URL")


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    port: int = Field(5000, validation_alias="PORT")
    http_timeout_seconds: float = Field(10.0, validation_alias="HTTP_TIMEOUT_SECONDS")
    http_retry_attempts: int = Field(3, validation_alias="HTTP_RETRY_ATTEMPTS")
    http_retry_backoff_seconds: float = Field(
        1.0, validation_alias="HTTP_RETRY_BACKOFF_SECONDS"
    )
    cors_allow_origins: str = Field(
        "*",
        validation_alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated list of allowed origins.",
    )
    azure: AzureSettings = Field(default_factory=AzureSettings)
    sharepoint: SharePointSettings = Field(default_factory=SharePointSettings)
    powerbi: PowerBISettings = Field(default_factory=PowerBISettings)
    linkedin: LinkedInSettings = Field(default_factory=LinkedInSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)

    @property
    def allowed_origins(self) -> list[str]:
        """Split the configured origins into a list for the CORS middleware."""
        return [
            origin.strip()
            for origin in self.cors_allow_origins.split(",")
            if origin.strip()
        ]


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AgentSettings",
    "AppSettings",
    "AzureSettings",
    "LinkedInSettings",
    "PowerBISettings",
    "SharePointSettings",
    "get_settings",
]
