"""Authentication Routes.

Implements:
- POST /api/auth/login - Validate credentials against SAP, issue a JWT
- POST /api/auth/register - Customer self-registration in SAP
- POST /api/auth/logout - Stateless; the client drops its token

Passwords are passed to SAP only and never logged.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import create_access_token, get_sap_service, get_settings
from connectors.sap.sap_errors import SapError
from connectors.sap.sap_service import SapService
from core.config import Settings
from core.observability.logging import get_logger
from models.api_responses import (
    ApiResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/auth")


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    settings: Settings = Depends(get_settings),
    sap: SapService = Depends(get_sap_service),
) -> LoginResponse:
    """Validate credentials with SAP and return a portal token."""
    if not body.username or not body.password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    logger.info(f"Login attempt for user: {body.username}")

    try:
        result = await sap.validate_login(body.username, body.password)
    except SapError as e:
        logger.error(f"Login failed at SAP: {e}")
        raise HTTPException(
            status_code=500,
            detail="Authentication service temporarily unavailable. Please try again later.",
        )

    if not result.success:
        logger.info(f"Login rejected for user: {body.username}")
        raise HTTPException(status_code=401, detail=result.message or "Invalid credentials")

    user = UserInfo(
        USER_ID=result.user_id or body.username,
        username=body.username,
        role=result.role or "User",
    )
    token = create_access_token(settings.auth, user.user_id, user.username, user.role)

    logger.info(f"Login successful for user: {body.username}")
    return LoginResponse(token=token, user=user, message="Login successful")


@router.post("/register", response_model=RegisterResponse)
async def register(
    body: RegisterRequest,
    sap: SapService = Depends(get_sap_service),
) -> RegisterResponse:
    """Register a new portal customer in SAP."""
    if not body.username or not body.password or not body.email or not body.name:
        raise HTTPException(status_code=400, detail="Username, password, email, and name are required")

    logger.info(f"Registration attempt for user: {body.username}")

    try:
        result = await sap.register_customer(
            body.username,
            body.password,
            body.email,
            body.name,
            body.customer_number or "",
        )
    except SapError as e:
        logger.error(f"Registration failed at SAP: {e}")
        raise HTTPException(
            status_code=500,
            detail="Registration service temporarily unavailable. Please try again later.",
        )

    if not result.success:
        logger.info(f"Registration rejected for user: {body.username}")
        raise HTTPException(status_code=400, detail=result.message or "Registration failed")

    return RegisterResponse(
        user_id=result.user_id,
        message="Registration successful. You can now log in.",
    )


@router.post("/logout", response_model=ApiResponse)
async def logout() -> ApiResponse:
    """Tokens are stateless; logging out is dropping the token client-side."""
    return ApiResponse(message="Logged out successfully")
