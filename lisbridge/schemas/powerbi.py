"""Schemas for Power BI embedding."""

from typing import Optional

from pydantic import BaseModel, Field


class EmbedTokenResponse(BaseModel):
    """Embed token handed to the dashboard front-end."""

    embedToken: Optional[str] = Field(None, description="Power BI embed token.")
    expiration: Optional[str] = Field(None, description="UTC expiry of the token.")


class ReportEmbedInfo(BaseModel):
    """Report metadata needed to render an embedded report."""

    id: Optional[str] = None
    name: Optional[str] = None
    embedUrl: Optional[str] = None


__all__ = ["EmbedTokenResponse", "ReportEmbedInfo"]
