"""
Meal Plan Repository - Data access layer for meal plan operations
"""

from typing import Any, Mapping, Optional
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import MealPlan


class MealPlanRepository(BaseRepository[MealPlan]):
    """Repository for meal plan data access"""

    def __init__(self, db: Session):
        super().__init__(db, MealPlan)

    def get_by_user(self, user_id: str) -> Optional[MealPlan]:
        """Get the meal plan owned by a user"""
        return self.db.query(MealPlan).filter(MealPlan.user_id == user_id).first()

    def apply_changes(self, plan: MealPlan, changes: Mapping[str, Any]) -> MealPlan:
        """Overwrite editable columns and commit"""
        for field, value in changes.items():
            setattr(plan, field, value)
        return self.update(plan)

    def upsert_ai_plan(self, user_id: str, ai_plan: Any) -> MealPlan:
        """Set the AI plan, creating the user's row when it does not exist yet"""
        plan = self.get_by_user(user_id)
        if plan is None:
            return self.create(MealPlan(user_id=user_id, ai_plan=ai_plan))
        plan.ai_plan = ai_plan
        return self.update(plan)
