"""
Profile Repository - Data access layer for client profiles
"""

from typing import Optional
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import UserProfile


class ProfileRepository(BaseRepository[UserProfile]):
    """Repository for profile data access"""

    def __init__(self, db: Session):
        super().__init__(db, UserProfile)

    def get_by_user(self, user_id: str) -> Optional[UserProfile]:
        """Get profile by identity-provider uid"""
        return self.db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
