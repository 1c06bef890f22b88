"""FastAPI dependencies: settings, SAP service, JWT authentication and roles.

Tokens are HS256 JWTs carrying USER_ID, username and role. Missing and
invalid tokens both answer 401; a valid token with the wrong role answers 403.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from connectors.sap.sap_service import SapService
from core.config import AuthSettings, Settings
from core.observability.logging import get_correlation_context, get_logger, set_correlation_context
from models.api_responses import UserInfo

logger = get_logger(__name__)

# auto_error=False: a missing header must give 401 with our message, not 403
security = HTTPBearer(auto_error=False)

TOKEN_REQUIRED = "Unauthorized access. Token is required."
TOKEN_INVALID = "Invalid or expired token."
NOT_AUTHENTICATED = "Unauthorized access. User not authenticated."
FORBIDDEN = "Forbidden. You do not have permission to access this resource."


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_sap_service(request: Request) -> SapService:
    """SAP service shared by all requests."""
    return request.app.state.sap_service


def create_access_token(auth: AuthSettings, user_id: str, username: str, role: str = "User") -> str:
    """Issue a signed portal token."""
    now = datetime.now(timezone.utc)
    payload = {
        "USER_ID": user_id,
        "username": username,
        "role": role,
        "iat": now,
        "exp": now + timedelta(hours=auth.jwt_expiry_hours),
    }
    return jwt.encode(payload, auth.jwt_secret, algorithm=auth.jwt_algorithm)


def decode_access_token(auth: AuthSettings, token: str) -> UserInfo:
    """Verify a portal token.

    Raises:
        jwt.InvalidTokenError: Bad signature, expired, or malformed payload
    """
    payload = jwt.decode(token, auth.jwt_secret, algorithms=[auth.jwt_algorithm])
    user_id = payload.get("USER_ID")
    if user_id is None or user_id == "":
        raise jwt.InvalidTokenError("Token has no USER_ID")
    return UserInfo(
        USER_ID=str(user_id),
        username=str(payload.get("username") or ""),
        role=str(payload.get("role") or "User"),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> UserInfo:
    """
    Authenticate the request's bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=TOKEN_REQUIRED)

    try:
        user = decode_access_token(settings.auth, credentials.credentials)
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=TOKEN_INVALID)
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected invalid token: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=TOKEN_INVALID)

    set_correlation_context(get_correlation_context().merge(user_id=user.user_id))
    return user


def require_role(allowed_roles: Sequence[str]):
    """
    Dependency factory allowing only the given roles.

    Usage:
        @router.get("/admin", dependencies=[Depends(require_role(["Admin"]))])
    """
    allowed = tuple(allowed_roles)

    async def check_role(user: Optional[UserInfo] = Depends(get_current_user)) -> UserInfo:
        if user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=NOT_AUTHENTICATED)
        if user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN)
        return user

    return check_role
