"""
Repositories package - Data access layer.
"""

from repositories.base import BaseRepository
from repositories.coach_client_repository import CoachClientRepository
from repositories.meal_plan_repository import MealPlanRepository
from repositories.profile_repository import ProfileRepository

__all__ = [
    "BaseRepository",
    "CoachClientRepository",
    "MealPlanRepository",
    "ProfileRepository",
]
