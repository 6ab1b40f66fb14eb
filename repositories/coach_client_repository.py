"""
Coach-Client Repository - Data access layer for coaching relationships
"""

from typing import Optional
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import CoachClient


class CoachClientRepository(BaseRepository[CoachClient]):
    """Repository for coach-client links"""

    def __init__(self, db: Session):
        super().__init__(db, CoachClient)

    def get_by_user(self, user_id: str) -> Optional[CoachClient]:
        """Get the coaching link of a client"""
        return (
            self.db.query(CoachClient).filter(CoachClient.client_id == user_id).first()
        )

    def is_active_coach(self, coach_id: str, client_id: str) -> bool:
        """True when ``coach_id`` holds an accepted link to ``client_id``"""
        link = self.get_by_user(client_id)
        return (
            link is not None
            and link.coach_id == coach_id
            and link.status == CoachClient.STATUS_ACCEPTED
        )
