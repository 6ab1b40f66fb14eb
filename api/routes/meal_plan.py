"""Meal plan routes: dashboard edits, current plan and AI plan storage"""

from typing import Optional
import logging

import anyio
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from api.dependencies import get_current_user, get_db, get_optional_user
from api.responses import (
    ErrorResponse,
    SuccessEnvelope,
    error_envelope,
    failure_details,
    failure_message,
    success_envelope,
)
from domain.schemas.auth_schemas import AuthUser
from domain.schemas.meal_plan_schemas import (
    INVALID_AI_PLAN_MESSAGE,
    INVALID_MEAL_PLAN_MESSAGE,
    AiPlanEditRequest,
    MealPlanEditRequest,
)
from services.meal_plan_service import MealPlanService

router = APIRouter(prefix="/meal-plan", tags=["Meal Plans"])
logger = logging.getLogger("nutricoach.api.meal_plan")

EDIT_FAILED_MESSAGE = "Failed to update meal plan"
AI_PLAN_FAILED_MESSAGE = "Failed to update AI-generated plan"

WRITE_RESPONSES = {
    200: {"model": SuccessEnvelope},
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post("/edit", responses=WRITE_RESPONSES)
async def edit_meal_plan(
    request: Request,
    db: Session = Depends(get_db),
    current_user: Optional[AuthUser] = Depends(get_optional_user),
):
    """
    Replace the meal data of a user's plan.

    The caller edits their own plan; a coach may name one of their clients
    in ``userId``.

    Body: ``{"mealPlan": {"meal_data": ...}, "userId": "..."}``

    - 400 ``{"error": "Invalid meal plan data"}`` when ``meal_data`` is missing or empty
    - 200 ``{"success": true, "data": <updated plan>}`` on success
    - 500 ``{"error": <message>, "details": <diagnostic>}`` when the update fails
    """
    try:
        body = await request.json()
        try:
            payload = MealPlanEditRequest.model_validate(body)
        except ValidationError as e:
            logger.warning("Rejected meal plan edit: %s", e.errors())
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=error_envelope(INVALID_MEAL_PLAN_MESSAGE),
            )

        user_id = await anyio.to_thread.run_sync(
            MealPlanService.resolve_acting_user, db, current_user, payload.user_id
        )
        result = await anyio.to_thread.run_sync(
            MealPlanService.edit_meal_plan, db, payload.meal_plan, user_id
        )
        return JSONResponse(content=success_envelope(result))
    except Exception as e:
        logger.exception("API error editing meal plan")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope(
                failure_message(e, EDIT_FAILED_MESSAGE), details=failure_details(e)
            ),
        )


@router.get("/current")
def get_current_meal_plan(
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """The caller's meal plan row (404 when none exists yet)"""
    return MealPlanService.get_meal_plan(db, current_user.uid)


@router.get("/ai-plan")
def get_ai_plan(
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    """The caller's validated AI-generated plan"""
    return MealPlanService.load_meal_plan(db, current_user.uid)


@router.post("/ai-plan", responses=WRITE_RESPONSES)
async def save_ai_plan(
    request: Request,
    db: Session = Depends(get_db),
    current_user: Optional[AuthUser] = Depends(get_optional_user),
):
    """
    Create or replace the AI-generated plan.

    Body: ``{"aiPlan": {...}, "userId": "..."}``; same envelopes as the edit route.
    """
    try:
        body = await request.json()
        try:
            payload = AiPlanEditRequest.model_validate(body)
        except ValidationError as e:
            logger.warning("Rejected AI plan upsert: %s", e.errors())
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=error_envelope(INVALID_AI_PLAN_MESSAGE),
            )

        user_id = await anyio.to_thread.run_sync(
            MealPlanService.resolve_acting_user, db, current_user, payload.user_id
        )
        result = await anyio.to_thread.run_sync(
            MealPlanService.edit_ai_plan, db, payload.ai_plan, user_id
        )
        return JSONResponse(content=success_envelope(result))
    except Exception as e:
        logger.exception("API error saving AI plan")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope(
                failure_message(e, AI_PLAN_FAILED_MESSAGE), details=failure_details(e)
            ),
        )
