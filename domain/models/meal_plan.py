"""
Meal plan model: one row per user holding the editable weekly plan and the
last AI-generated plan.
"""

from sqlalchemy import Column, Integer, Text, TIMESTAMP, JSON
from sqlalchemy.sql import func

from domain.models.database import Base


class MealPlan(Base):
    """Per-user meal plan"""

    __tablename__ = "meal_plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Text, unique=True, nullable=False, index=True)
    meal_data = Column(JSON)  # weekly plan edited from the dashboard
    ai_plan = Column(JSON)  # output of the plan generator
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Columns a client may overwrite through an edit payload
    EDITABLE_FIELDS = ("meal_data", "ai_plan")
