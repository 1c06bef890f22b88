"""Liveness and readiness. Neither endpoint calls SAP."""

from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.dependencies import get_settings
from core import __version__
from core.config import Settings


router = APIRouter()


class HealthResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: str
    version: str
    services: Dict[str, str]


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(
        message="Customer Portal Middleware is running",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        services={
            "api": "up",
            "sap_transport": settings.sap.transport,
        },
    )


@router.get("/ready")
async def readiness_check(request: Request):
    """503 until the lifespan has wired the SAP service."""
    if getattr(request.app.state, "sap_service", None) is None:
        return JSONResponse(status_code=503, content={"status": "starting"})
    return {"status": "ready"}
