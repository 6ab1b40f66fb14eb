"""
Meal plan mappers.
Converts ORM rows into JSON-ready dictionaries for response envelopes.
"""

from domain.models import MealPlan
from domain.schemas.meal_plan_schemas import MealPlanResponse


class MealPlanMapper:
    """Mapper for meal plan transformations."""

    @staticmethod
    def to_dict(plan: MealPlan) -> dict:
        """
        Convert a MealPlan ORM row into a JSON-serializable dict.

        Args:
            plan: MealPlan ORM instance

        Returns:
            Plain dict with ISO-formatted timestamps
        """
        return MealPlanResponse.model_validate(plan).model_dump(mode="json")
