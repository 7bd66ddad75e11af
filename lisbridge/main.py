"""
FastAPI application entrypoint for the SharePoint and Power BI bridge.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lisbridge import __version__
from lisbridge.api.routes import router as api_router
from lisbridge.core.config import get_settings
from lisbridge.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="LisBridge",
        version=__version__,
        description="REST API over SharePoint lists, Power BI embedding and LinkedIn engagement.",
    )
    origins = settings.allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # browsers reject credentialed requests against a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn on the configured port."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)


__all__ = ["app", "create_app", "run"]
