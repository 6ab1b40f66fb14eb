"""
Client profile model (onboarding answers, body metrics and food preferences).
"""

from sqlalchemy import Column, Text, TIMESTAMP, Integer, Numeric, Boolean, JSON
from sqlalchemy.sql import func

from domain.models.database import Base


class UserProfile(Base):
    """Profile of a coaching client, keyed by identity-provider uid"""

    __tablename__ = "profile"

    user_id = Column(Text, primary_key=True)
    email = Column(Text)
    name = Column(Text)
    age = Column(Integer)
    gender = Column(Text)
    height_cm = Column(Numeric)
    current_weight = Column(Numeric)
    goal_weight = Column(Numeric)
    activity_level = Column(Text)
    diet_goal = Column(Text)
    preferred_diet = Column(Text)

    # JSON lists
    allergies = Column(JSON, default=list)
    preferred_cuisines = Column(JSON, default=list)
    dispreferred_cuisines = Column(JSON, default=list)
    medical_conditions = Column(JSON, default=list)

    onboarding_complete = Column(Boolean, default=False)
    subscription_status = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )
