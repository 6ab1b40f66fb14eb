"""API routes package"""

from . import health, meal_plan, profile, meal_optimization

__all__ = ["health", "meal_plan", "profile", "meal_optimization"]
