from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProfileResponse(BaseModel):
    """Client profile as returned to the dashboard"""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    height_cm: Optional[float] = None
    current_weight: Optional[float] = None
    goal_weight: Optional[float] = None
    activity_level: Optional[str] = None
    diet_goal: Optional[str] = None
    preferred_diet: Optional[str] = None
    allergies: List[str] = Field(default_factory=list)
    preferred_cuisines: List[str] = Field(default_factory=list)
    dispreferred_cuisines: List[str] = Field(default_factory=list)
    medical_conditions: List[str] = Field(default_factory=list)
    onboarding_complete: bool = False
    subscription_status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator(
        "allergies",
        "preferred_cuisines",
        "dispreferred_cuisines",
        "medical_conditions",
        mode="before",
    )
    @classmethod
    def null_list_as_empty(cls, v):
        return v or []

    @field_validator("onboarding_complete", mode="before")
    @classmethod
    def null_flag_as_false(cls, v):
        return bool(v)
