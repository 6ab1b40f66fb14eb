from typing import Optional
from sqlalchemy.orm import Session
import logging

from domain.mappers import ProfileMapper
from domain.schemas.auth_schemas import AuthUser
from repositories import ProfileRepository

logger = logging.getLogger("nutricoach.profile")


class ProfileService:
    """Business logic for client profiles"""

    @staticmethod
    def get_user_profile(db: Session, user: AuthUser) -> Optional[dict]:
        """
        Fetch the profile of the acting user.

        The user is passed in explicitly by the route (resolved from the
        request's credentials), never looked up from ambient state.
        Returns None when the user has not completed onboarding yet.
        """
        profile = ProfileRepository(db).get_by_user(user.uid)

        if profile is None:
            logger.warning(f"profile_not_found user_id={user.uid}")
            return None

        logger.info(f"profile_fetched user_id={user.uid}")
        return ProfileMapper.to_dict(profile)
