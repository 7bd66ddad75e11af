"""SharePoint, Power BI and LinkedIn integration service."""

__version__ = "0.1.0"
