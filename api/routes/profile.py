"""Profile route for the signed-in client"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from api.dependencies import get_db, get_optional_user
from api.responses import ErrorResponse, error_envelope
from app.exceptions import UnauthorizedError
from domain.schemas.auth_schemas import AuthUser
from services.profile_service import ProfileService

router = APIRouter(prefix="/profile", tags=["Profile"])
logger = logging.getLogger("nutricoach.api.profile")

PROFILE_FETCH_FAILED_MESSAGE = "Failed to fetch user profile"


@router.get("", responses={500: {"model": ErrorResponse}})
def get_profile(
    db: Session = Depends(get_db),
    current_user: Optional[AuthUser] = Depends(get_optional_user),
):
    """
    Return the caller's profile as-is (``null`` before onboarding).

    Any failure while fetching, including a caller without valid
    credentials, yields 500 with a fixed message; the cause is only logged.
    """
    try:
        if current_user is None:
            raise UnauthorizedError("User not authenticated")
        profile = ProfileService.get_user_profile(db, current_user)
    except Exception:
        logger.exception(
            "Error fetching user profile for %s",
            current_user.uid if current_user else "anonymous",
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope(PROFILE_FETCH_FAILED_MESSAGE),
        )
    return JSONResponse(content=profile)
