"""
Shared test fixtures and utilities for the NutriCoach test suite.

This module contains the test client, factories for identities, tokens and
database rows, a scripted optimization upstream, and a database session
fixture backed by in-memory SQLite.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Generator

import anyio
import httpx
import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from tenacity import wait_none

from app.config import settings
from app.optimization_config import MealOptimizationConfig
from domain.models import Base, engine, SessionLocal, CoachClient, MealPlan, UserProfile
from domain.schemas.auth_schemas import AuthUser
from main import app
from services.optimization_metrics import OptimizationMetrics
from services.optimization_service import MealOptimizationClient

client = TestClient(app)

TEST_AUDIENCE = "authenticated"
BASE_URL = "https://optimizer.test"


# Realistic default users
REALISTIC_USERS = {
    "client": {"display_name": "Sarah Martinez", "email_prefix": "sarah.martinez"},
    "coach": {"display_name": "Michael Chen", "email_prefix": "coach.chen"},
}


def make_auth_user(uid=None, profile_type="client", email=None) -> AuthUser:
    """
    Create an identity record as the identity provider would report it.

    Example:
        >>> user = make_auth_user()
        >>> user.display_name
        'Sarah Martinez'
    """
    profile = REALISTIC_USERS.get(profile_type, REALISTIC_USERS["client"])
    uid = uid or str(uuid.uuid4())
    return AuthUser(
        uid=uid,
        email=email or f"{profile['email_prefix']}-{uid[:8]}@example.com",
        email_verified=True,
        display_name=profile["display_name"],
    )


def make_token(user: AuthUser, expires_in: timedelta = timedelta(hours=1), secret=None, audience=TEST_AUDIENCE) -> str:
    """Sign an access token the way the managed auth backend does (HS256)"""
    now = datetime.now(timezone.utc)
    claims = {
        "sub": user.uid,
        "email": user.email,
        "aud": audience,
        "iat": now,
        "exp": now + expires_in,
        "role": "authenticated",
        "user_metadata": {
            "full_name": user.display_name,
            "email_verified": user.email_verified,
        },
    }
    return jwt.encode(claims, secret or settings.supabase_jwt_secret, algorithm="HS256")


def auth_headers(user: AuthUser) -> dict:
    return {"Authorization": f"Bearer {make_token(user)}"}


def sample_week(meal: str = "lunch") -> list:
    """A small weekly plan: two days with one meal each"""
    return [
        {
            "day_of_week": "Monday",
            "meals": [
                {
                    "meal_name": meal,
                    "ingredients": [
                        {"name": "Chicken breast", "quantity": 150, "unit": "g"},
                        {"name": "Brown rice", "quantity": 80, "unit": "g"},
                    ],
                    "total_calories": 520,
                }
            ],
        },
        {
            "day_of_week": "Tuesday",
            "meals": [
                {
                    "meal_name": meal,
                    "ingredients": [{"name": "Lentil soup", "quantity": 300, "unit": "ml"}],
                    "total_calories": 410,
                }
            ],
        },
    ]


def sample_ai_plan() -> dict:
    return {
        "weeklyMealPlan": [{"day": "Monday", "meals": []}],
        "weeklySummary": {"totalCalories": 14000, "totalProtein": 900},
    }


def seed_meal_plan(db: Session, user_id: str, meal_data=None, ai_plan=None) -> MealPlan:
    plan = MealPlan(user_id=user_id, meal_data=meal_data or sample_week(), ai_plan=ai_plan)
    db.add(plan)
    db.commit()
    db.refresh(plan)
    return plan


def seed_coach_client(db: Session, coach_id: str, client_id: str, status=CoachClient.STATUS_ACCEPTED) -> CoachClient:
    link = CoachClient(coach_id=coach_id, client_id=client_id, status=status)
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


def seed_profile(db: Session, user_id: str, **overrides) -> UserProfile:
    values = dict(
        user_id=user_id,
        email="sarah.martinez@example.com",
        name="Sarah Martinez",
        age=34,
        gender="female",
        height_cm=168,
        current_weight=72.5,
        goal_weight=65,
        activity_level="moderate",
        diet_goal="fat_loss",
        allergies=["peanuts"],
        preferred_cuisines=["persian", "mediterranean"],
        onboarding_complete=True,
    )
    values.update(overrides)
    profile = UserProfile(**values)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


# =============================================================================
# OPTIMIZATION UPSTREAM
# =============================================================================


class Upstream:
    """Scripted upstream: replies in order, repeating the last one"""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies[min(len(self.requests), len(self.replies)) - 1]
        if isinstance(reply, Exception):
            raise reply
        # fresh response per call; the client consumes the stream
        return httpx.Response(reply.status_code, content=reply.content, headers=reply.headers)


def make_client(upstream, retry_attempts: int = 3, metrics: OptimizationMetrics = None) -> MealOptimizationClient:
    """Client talking to a MockTransport, retrying without waiting"""
    config = MealOptimizationConfig(api_base_url=BASE_URL, retry_attempts=retry_attempts)
    return MealOptimizationClient(
        config=config,
        transport=httpx.MockTransport(upstream),
        retry_wait=wait_none(),
        metrics=metrics,
    )


def run(coro_fn, *args):
    return anyio.run(coro_fn, *args)


# =============================================================================
# DATABASE SESSION FIXTURE
# =============================================================================


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """
    Database session on a fresh schema.

    The engine is in-memory SQLite with a single shared connection, so rows
    committed here are visible to the sessions routes open through get_db.
    The schema is dropped after each test to avoid test pollution.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)
