"""
Domain mappers package.
Transforms ORM models into response payloads.
"""

from domain.mappers.meal_plan_mapper import MealPlanMapper
from domain.mappers.profile_mapper import ProfileMapper

__all__ = ["MealPlanMapper", "ProfileMapper"]
