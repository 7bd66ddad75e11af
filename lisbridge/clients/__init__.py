"""Expose constructed client wrappers."""

from .analytics_agent import AnalyticsAgentClient
from .linkedin import LinkedInClient, LinkedInError
from .microsoft_identity import GRAPH_SCOPE, POWERBI_SCOPE, MicrosoftIdentityClient
from .powerbi import PowerBIClient
from .sharepoint_lists import SharePointListClient

__all__ = [
    "AnalyticsAgentClient",
    "GRAPH_SCOPE",
    "LinkedInClient",
    "LinkedInError",
    "MicrosoftIdentityClient",
    "POWERBI_SCOPE",
    "PowerBIClient",
    "SharePointListClient",
]
