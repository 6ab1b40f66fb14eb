"""
Meal plan route tests.

Covers the edit proxy contract (400 / 200 envelope / 500 envelope), the
acting-user resolution, and the current-plan and AI-plan routes against the
in-memory database.
"""

import pytest

from test_fixtures import (
    client,
    db_session,
    make_auth_user,
    auth_headers,
    sample_week,
    sample_ai_plan,
    seed_coach_client,
    seed_meal_plan,
)
from app.exceptions import ConflictError, NotFoundError
from domain.models import CoachClient, MealPlan
from services.meal_plan_service import MealPlanService

EDIT_URL = "/api/meal-plan/edit"
AI_PLAN_URL = "/api/meal-plan/ai-plan"


@pytest.fixture
def caller():
    return make_auth_user(uid="u1")


# =============================================================================
# INPUT VALIDATION
# =============================================================================


@pytest.mark.parametrize(
    "body",
    [
        {"mealPlan": {}, "userId": "u1"},
        {"userId": "u1"},
        {"mealPlan": None, "userId": "u1"},
        {"mealPlan": {"meal_data": None}, "userId": "u1"},
        {"mealPlan": {"meal_data": []}, "userId": "u1"},
        {"mealPlan": {"meal_data": ""}, "userId": "u1"},
        {"mealPlan": "not-an-object", "userId": "u1"},
    ],
)
def test_edit_rejects_missing_or_empty_meal_data(monkeypatch, body):
    calls = []
    monkeypatch.setattr(
        MealPlanService, "edit_meal_plan", lambda *args: calls.append(args)
    )

    r = client.post(EDIT_URL, json=body)

    assert r.status_code == 400
    assert r.json() == {"error": "Invalid meal plan data"}
    assert calls == []


# =============================================================================
# DELEGATION
# =============================================================================


def test_edit_success_returns_envelope(monkeypatch, caller):
    received = {}

    def fake_edit(db, meal_plan, user_id):
        received["meal_plan"] = meal_plan
        received["user_id"] = user_id
        return {"id": 42}

    monkeypatch.setattr(MealPlanService, "edit_meal_plan", fake_edit)

    r = client.post(
        EDIT_URL,
        json={"mealPlan": {"meal_data": [{"meal": "lunch"}]}, "userId": "u1"},
        headers=auth_headers(caller),
    )

    assert r.status_code == 200
    assert r.json() == {"success": True, "data": {"id": 42}}
    assert received == {"meal_plan": {"meal_data": [{"meal": "lunch"}]}, "user_id": "u1"}


def test_edit_failure_exposes_message_and_details(monkeypatch, caller):
    def failing_edit(db, meal_plan, user_id):
        raise NotFoundError("No meal plan found to update for this user")

    monkeypatch.setattr(MealPlanService, "edit_meal_plan", failing_edit)

    r = client.post(
        EDIT_URL,
        json={"mealPlan": {"meal_data": [1]}, "userId": "u1"},
        headers=auth_headers(caller),
    )

    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "No meal plan found to update for this user"
    assert isinstance(body["details"], str)
    assert "No meal plan found to update for this user" in body["details"]


def test_edit_failure_without_message_uses_fallback(monkeypatch, caller):
    def failing_edit(db, meal_plan, user_id):
        raise RuntimeError()

    monkeypatch.setattr(MealPlanService, "edit_meal_plan", failing_edit)

    r = client.post(
        EDIT_URL, json={"mealPlan": {"meal_data": [1]}}, headers=auth_headers(caller)
    )

    assert r.status_code == 500
    assert r.json() == {"error": "Failed to update meal plan", "details": "RuntimeError"}


def test_edit_conflict_is_reported_as_server_error(monkeypatch, caller):
    def conflicting_edit(db, meal_plan, user_id):
        raise ConflictError("Meal plan update conflict - please try again")

    monkeypatch.setattr(MealPlanService, "edit_meal_plan", conflicting_edit)

    r = client.post(
        EDIT_URL, json={"mealPlan": {"meal_data": [1]}}, headers=auth_headers(caller)
    )

    assert r.status_code == 500
    assert r.json()["error"] == "Meal plan update conflict - please try again"


def test_edit_malformed_json_is_server_error():
    r = client.post(
        EDIT_URL, content="{not json", headers={"Content-Type": "application/json"}
    )

    assert r.status_code == 500
    assert "error" in r.json()
    assert "details" in r.json()


# =============================================================================
# ACTING USER
# =============================================================================


def test_edit_falls_back_to_authenticated_user(monkeypatch):
    user = make_auth_user()
    seen = []
    monkeypatch.setattr(
        MealPlanService,
        "edit_meal_plan",
        lambda db, meal_plan, user_id: seen.append(user_id) or {"user_id": user_id},
    )

    r = client.post(
        EDIT_URL, json={"mealPlan": {"meal_data": [1]}}, headers=auth_headers(user)
    )

    assert r.status_code == 200
    assert seen == [user.uid]


def test_edit_anonymous_without_user_id_fails():
    r = client.post(EDIT_URL, json={"mealPlan": {"meal_data": [1]}})

    assert r.status_code == 500
    assert r.json()["error"] == "User not authenticated"


def test_edit_anonymous_cannot_target_a_user(db_session):
    plan = seed_meal_plan(db_session, "user-123")
    original = plan.meal_data

    r = client.post(
        EDIT_URL,
        json={"mealPlan": {"meal_data": sample_week(meal="dinner")}, "userId": "user-123"},
    )

    assert r.status_code == 500
    assert r.json() == {
        "error": "User not authenticated",
        "details": "UnauthorizedError: User not authenticated",
    }
    db_session.expire_all()
    assert db_session.get(MealPlan, plan.id).meal_data == original


def test_edit_other_users_plan_is_refused(db_session):
    victim = seed_meal_plan(db_session, "user-123")
    original = victim.meal_data
    intruder = make_auth_user(uid="user-999")

    r = client.post(
        EDIT_URL,
        json={"mealPlan": {"meal_data": sample_week(meal="dinner")}, "userId": "user-123"},
        headers=auth_headers(intruder),
    )

    assert r.status_code == 500
    assert r.json()["error"] == "Not allowed to edit this user's meal plan"
    assert r.json()["details"].startswith("ForbiddenError")
    db_session.expire_all()
    assert db_session.get(MealPlan, victim.id).meal_data == original


def test_edit_pending_coach_link_is_refused(db_session):
    seed_meal_plan(db_session, "client-7")
    coach = make_auth_user(uid="coach-1", profile_type="coach")
    seed_coach_client(db_session, coach.uid, "client-7", status=CoachClient.STATUS_PENDING)

    r = client.post(
        EDIT_URL,
        json={"mealPlan": {"meal_data": sample_week()}, "userId": "client-7"},
        headers=auth_headers(coach),
    )

    assert r.status_code == 500
    assert r.json()["error"] == "Not allowed to edit this user's meal plan"


def test_coach_edits_client_plan(db_session):
    plan = seed_meal_plan(db_session, "client-7")
    coach = make_auth_user(uid="coach-1", profile_type="coach")
    seed_coach_client(db_session, coach.uid, "client-7")
    new_week = sample_week(meal="dinner")

    r = client.post(
        EDIT_URL,
        json={"mealPlan": {"meal_data": new_week}, "userId": "client-7"},
        headers=auth_headers(coach),
    )

    assert r.status_code == 200
    assert r.json()["data"]["user_id"] == "client-7"
    db_session.expire_all()
    assert db_session.get(MealPlan, plan.id).meal_data == new_week


# =============================================================================
# AGAINST THE DATABASE
# =============================================================================


def test_edit_updates_stored_plan(db_session):
    plan = seed_meal_plan(db_session, "user-123")
    owner = make_auth_user(uid="user-123")
    new_week = sample_week(meal="dinner")

    r = client.post(
        EDIT_URL,
        json={
            "mealPlan": {"meal_data": new_week, "id": plan.id, "user_id": "user-123"},
            "userId": "user-123",
        },
        headers=auth_headers(owner),
    )

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"]["user_id"] == "user-123"
    assert body["data"]["meal_data"] == new_week

    db_session.expire_all()
    assert db_session.get(MealPlan, plan.id).meal_data == new_week


def test_edit_unknown_user_reports_missing_plan(db_session):
    newcomer = make_auth_user(uid="nobody")

    r = client.post(
        EDIT_URL,
        json={"mealPlan": {"meal_data": sample_week()}},
        headers=auth_headers(newcomer),
    )

    assert r.status_code == 500
    assert r.json()["error"] == "No meal plan found to update for this user"
    assert r.json()["details"].startswith("NotFoundError")


def test_current_plan_requires_authentication():
    r = client.get("/api/meal-plan/current")

    assert r.status_code == 401
    assert r.json()["error"] == "Missing authorization token"


def test_current_plan_returns_row(db_session):
    user = make_auth_user()
    seed_meal_plan(db_session, user.uid)

    r = client.get("/api/meal-plan/current", headers=auth_headers(user))

    assert r.status_code == 200
    assert r.json()["user_id"] == user.uid
    assert r.json()["meal_data"] == sample_week()


def test_current_plan_missing_is_404(db_session):
    user = make_auth_user()

    r = client.get("/api/meal-plan/current", headers=auth_headers(user))

    assert r.status_code == 404
    assert r.json()["error"] == "No meal plan found for this user"


# =============================================================================
# AI PLAN
# =============================================================================


def test_ai_plan_upsert_creates_row(db_session):
    user = make_auth_user()

    r = client.post(
        AI_PLAN_URL,
        json={"aiPlan": sample_ai_plan()},
        headers=auth_headers(user),
    )

    assert r.status_code == 200
    assert r.json() == {"success": True, "data": sample_ai_plan()}

    r2 = client.get(AI_PLAN_URL, headers=auth_headers(user))
    assert r2.status_code == 200
    assert r2.json()["weeklySummary"]["totalCalories"] == 14000


def test_ai_plan_upsert_rejects_missing_plan():
    r = client.post(AI_PLAN_URL, json={"userId": "u1"})

    assert r.status_code == 400
    assert r.json() == {"error": "Invalid AI plan data"}


def test_ai_plan_anonymous_cannot_target_a_user(db_session):
    r = client.post(AI_PLAN_URL, json={"aiPlan": sample_ai_plan(), "userId": "user-123"})

    assert r.status_code == 500
    assert r.json()["error"] == "User not authenticated"
    assert db_session.query(MealPlan).filter(MealPlan.user_id == "user-123").first() is None


def test_ai_plan_for_other_user_is_refused(db_session):
    seed_meal_plan(db_session, "user-123", ai_plan={"weeklyMealPlan": [], "weeklySummary": {}})
    intruder = make_auth_user(uid="user-999")

    r = client.post(
        AI_PLAN_URL,
        json={"aiPlan": sample_ai_plan(), "userId": "user-123"},
        headers=auth_headers(intruder),
    )

    assert r.status_code == 500
    assert r.json()["error"] == "Not allowed to edit this user's meal plan"
    db_session.expire_all()
    stored = db_session.query(MealPlan).filter(MealPlan.user_id == "user-123").one()
    assert stored.ai_plan == {"weeklyMealPlan": [], "weeklySummary": {}}


# =============================================================================
# API DOCUMENTATION
# =============================================================================


def test_write_routes_document_envelopes():
    schema = client.get("/api/openapi.json").json()

    assert "SuccessEnvelope" in schema["components"]["schemas"]
    assert "ErrorResponse" in schema["components"]["schemas"]
    edit = schema["paths"][EDIT_URL]["post"]["responses"]
    assert edit["200"]["content"]["application/json"]["schema"]["$ref"].endswith("/SuccessEnvelope")
    assert edit["500"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
