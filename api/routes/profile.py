"""Customer profile endpoints."""

import re

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_current_user, get_sap_service
from api.errors import sap_unavailable
from connectors.sap.sap_errors import SapError
from connectors.sap.sap_service import SapService
from core.observability.logging import get_logger
from models.api_responses import ProfileResponse, ProfileUpdateRequest, UserInfo

logger = get_logger(__name__)

router = APIRouter()

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_MIN_LENGTH = 10
PHONE_MAX_LENGTH = 20


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    user: UserInfo = Depends(get_current_user),
    sap: SapService = Depends(get_sap_service),
) -> ProfileResponse:
    try:
        profile = await sap.get_profile(user.user_id)
    except SapError as e:
        raise sap_unavailable(e, "Failed to fetch profile from SAP. Please try again later.")

    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found for this customer.")

    return ProfileResponse(profile=profile, message="Profile retrieved successfully.")


@router.put("/profile", status_code=501)
async def update_profile(
    body: ProfileUpdateRequest,
    user: UserInfo = Depends(get_current_user),
):
    """Validate a profile change. SAP has no update function module yet."""
    if body.email and not EMAIL_PATTERN.match(body.email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    if body.phone and not PHONE_MIN_LENGTH <= len(body.phone) <= PHONE_MAX_LENGTH:
        raise HTTPException(status_code=400, detail="Phone number must be between 10 and 20 characters")

    logger.info("Profile update requested but not supported by SAP")
    raise HTTPException(
        status_code=501,
        detail="Profile update is not yet implemented. This feature is coming soon.",
    )
