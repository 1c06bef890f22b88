"""Diagnostic endpoints.

router (mounted only with ENABLE_TEST_ENDPOINTS):
- GET  /api/test                 - configuration check, no credentials
- POST /api/test/generate-token  - mint a token for any user/role
- GET  /api/test/protected       - any authenticated user
- GET  /api/test/admin           - Admin only
- GET  /api/test/user            - User or Admin
- GET  /api/test/soap            - SAP transport configuration

metrics_router (always mounted):
- GET  /api/metrics              - SAP call metrics, Admin only
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import create_access_token, get_current_user, get_settings, require_role
from core.config import Settings
from core.observability.metrics import get_metrics
from models.api_responses import TokenRequest, TokenResponse, UserEchoResponse, UserInfo


router = APIRouter(prefix="/test")
metrics_router = APIRouter()


@router.get("")
async def api_test(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    return {
        "success": True,
        "message": "API is working correctly",
        "sapConfig": {
            "baseUrl": settings.sap.base_url,
            "client": settings.sap.client,
            "userConfigured": bool(settings.sap.username),
        },
    }


@router.post("/generate-token", response_model=TokenResponse)
async def generate_token(
    body: TokenRequest,
    settings: Settings = Depends(get_settings),
) -> TokenResponse:
    if not body.username or not body.role or not body.user_id:
        raise HTTPException(status_code=400, detail="username, role, and userId are required")

    token = create_access_token(settings.auth, body.user_id, body.username, body.role)
    return TokenResponse(token=token, message="Test token generated successfully")


@router.get("/protected", response_model=UserEchoResponse)
async def protected(user: UserInfo = Depends(get_current_user)) -> UserEchoResponse:
    return UserEchoResponse(user=user, message="You have access to this protected route")


@router.get("/admin", response_model=UserEchoResponse)
async def admin_only(user: UserInfo = Depends(require_role(["Admin"]))) -> UserEchoResponse:
    return UserEchoResponse(user=user, message="You have admin access")


@router.get("/user", response_model=UserEchoResponse)
async def user_or_admin(user: UserInfo = Depends(require_role(["User", "Admin"]))) -> UserEchoResponse:
    return UserEchoResponse(user=user, message="You have user or admin access")


@router.get("/soap")
async def soap_config(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    return {
        "success": True,
        "message": "SOAP client service is loaded",
        "config": {
            "baseUrl": settings.sap.base_url,
            "client": settings.sap.client,
            "transport": settings.sap.transport,
            "timeoutSeconds": settings.sap.timeout_seconds,
        },
        "note": "To test actual SOAP call, use POST /api/auth/login with credentials",
    }


@metrics_router.get("/metrics")
async def sap_metrics(user: UserInfo = Depends(require_role(["Admin"]))) -> Dict[str, Any]:
    return {"success": True, "metrics": get_metrics().get_summary()}
