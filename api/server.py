"""FastAPI server for the SAP Customer Portal Gateway.

Main entry point for the API server.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.errors import register_exception_handlers
from api.routes import (
    health,
    auth,
    dashboard,
    financial,
    profile,
    diagnostics,
)
from connectors.sap.sap_service import SapService
from core import __version__
from core.config import Settings, get_settings
from core.observability.logging import configure_logging, get_logger, with_correlation

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings: Settings = app.state.settings

    # Startup
    configure_logging(
        level=getattr(logging, settings.log_level, logging.INFO),
        json_format=settings.log_json,
    )
    owns_service = app.state.sap_service is None
    if owns_service:
        app.state.sap_service = SapService.from_config(settings.sap)
    logger.info(
        f"SAP Portal Gateway starting up (transport={settings.sap.transport}, "
        f"test endpoints={'on' if settings.enable_test_endpoints else 'off'})"
    )

    yield

    # Shutdown
    logger.info("SAP Portal Gateway shutting down...")
    if owns_service:
        await app.state.sap_service.close()
        app.state.sap_service = None


def create_app(
    settings: Optional[Settings] = None,
    sap_service: Optional[SapService] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Gateway settings; loaded from the environment when omitted
        sap_service: Pre-built SAP service (tests); built at startup when omitted
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="SAP Customer Portal Gateway",
        description="REST/JSON API for the customer portal, backed by SAP function modules over SOAP",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.sap_service = sap_service

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        with with_correlation(request_id=request_id, route=request.url.path):
            response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    register_exception_handlers(app)

    # Include routers
    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(auth.router, prefix="/api", tags=["Authentication"])
    app.include_router(dashboard.router, prefix="/api", tags=["Dashboard"])
    app.include_router(financial.router, prefix="/api", tags=["Financial"])
    app.include_router(profile.router, prefix="/api", tags=["Profile"])
    app.include_router(diagnostics.metrics_router, prefix="/api", tags=["Diagnostics"])
    if settings.enable_test_endpoints:
        app.include_router(diagnostics.router, prefix="/api", tags=["Diagnostics"])

    return app


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run("api.server:create_app", factory=True, host=settings.host, port=settings.port, reload=True)
