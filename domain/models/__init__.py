"""
Domain models package - SQLAlchemy ORM models.
"""

from domain.models.database import (
    Base,
    engine,
    SessionLocal,
    init_database,
    get_db_session,
)
from domain.models.coach_client import CoachClient
from domain.models.meal_plan import MealPlan
from domain.models.profile import UserProfile

__all__ = [
    # Database
    "Base",
    "engine",
    "SessionLocal",
    "init_database",
    "get_db_session",
    # Models
    "CoachClient",
    "MealPlan",
    "UserProfile",
]
