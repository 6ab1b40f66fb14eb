from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

INVALID_MEAL_PLAN_MESSAGE = "Invalid meal plan data"
INVALID_AI_PLAN_MESSAGE = "Invalid AI plan data"


def _coerce_user_id(v: Any) -> Optional[str]:
    if v is None or v == "":
        return None
    return str(v)


class MealPlanEditRequest(BaseModel):
    """Body of the meal-plan edit route: ``{"mealPlan": {...}, "userId": "..."}``"""

    model_config = ConfigDict(populate_by_name=True)

    meal_plan: Dict[str, Any] = Field(alias="mealPlan")
    user_id: Optional[str] = Field(default=None, alias="userId")

    @field_validator("meal_plan")
    @classmethod
    def require_meal_data(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        if not v.get("meal_data"):
            raise ValueError("meal_data is required")
        return v

    _user_id = field_validator("user_id", mode="before")(_coerce_user_id)


class AiPlanEditRequest(BaseModel):
    """Body of the AI-plan upsert route: ``{"aiPlan": {...}, "userId": "..."}``"""

    model_config = ConfigDict(populate_by_name=True)

    ai_plan: Dict[str, Any] = Field(alias="aiPlan")
    user_id: Optional[str] = Field(default=None, alias="userId")

    @field_validator("ai_plan")
    @classmethod
    def require_content(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        if not v:
            raise ValueError("aiPlan must not be empty")
        return v

    _user_id = field_validator("user_id", mode="before")(_coerce_user_id)


class MealPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    meal_data: Optional[Any] = None
    ai_plan: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
