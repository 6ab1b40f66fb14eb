from typing import Any, Mapping, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import json
import logging

from domain.models import MealPlan
from domain.mappers import MealPlanMapper
from domain.schemas.auth_schemas import AuthUser
from repositories import CoachClientRepository, MealPlanRepository
from app.exceptions import (
    ConflictError,
    DataServiceError,
    ForbiddenError,
    NotFoundError,
    ServiceValidationError,
    UnauthorizedError,
)

logger = logging.getLogger("nutricoach.meal_plan")


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise UnauthorizedError("User not authenticated")
    return user_id


class MealPlanService:
    """Business logic for reading and editing a user's meal plan"""

    @staticmethod
    def resolve_acting_user(
        db: Session, caller: Optional[AuthUser], requested_user_id: Optional[str]
    ) -> str:
        """
        Decide whose plan a write targets.

        The caller edits their own plan unless ``requested_user_id`` names a
        client the caller coaches through an accepted link.

        Raises:
            UnauthorizedError: no authenticated caller
            ForbiddenError: the caller may not write the requested user's plan
        """
        if caller is None:
            raise UnauthorizedError("User not authenticated")
        if not requested_user_id or requested_user_id == caller.uid:
            return caller.uid

        if CoachClientRepository(db).is_active_coach(caller.uid, requested_user_id):
            logger.info(
                f"meal_plan_coach_write coach_id={caller.uid} client_id={requested_user_id}"
            )
            return requested_user_id

        logger.warning(
            f"meal_plan_write_forbidden caller={caller.uid} target={requested_user_id}"
        )
        raise ForbiddenError("Not allowed to edit this user's meal plan")

    @staticmethod
    def edit_meal_plan(
        db: Session, meal_plan: Mapping[str, Any], user_id: Optional[str]
    ) -> dict:
        """
        Overwrite the editable columns of the user's existing meal plan.

        Keys of ``meal_plan`` that are not editable columns (``id``,
        ``user_id``, timestamps echoed back by the dashboard) are ignored.

        Returns:
            The updated row as a dict.

        Raises:
            UnauthorizedError: no user id could be resolved
            NotFoundError: the user has no meal plan yet
            ConflictError: the update violated a constraint
            DataServiceError: any other database failure
        """
        target_user_id = _require_user(user_id)
        changes = {
            field: meal_plan[field]
            for field in MealPlan.EDITABLE_FIELDS
            if field in meal_plan
        }
        ignored = sorted(set(meal_plan) - set(changes))
        if ignored:
            logger.debug(f"meal_plan_update_ignored_fields fields={ignored}")

        repo = MealPlanRepository(db)
        try:
            plan = repo.get_by_user(target_user_id)
            if plan is None:
                raise NotFoundError("No meal plan found to update for this user")
            plan = repo.apply_changes(plan, changes)
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"meal_plan_update_conflict user_id={target_user_id}: {e}")
            raise ConflictError("Meal plan update conflict - please try again")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"meal_plan_update_failed user_id={target_user_id}: {e}")
            raise DataServiceError(f"Failed to update meal plan: {e}")

        logger.info(
            f"meal_plan_updated user_id={target_user_id} fields={sorted(changes)}"
        )
        return MealPlanMapper.to_dict(plan)

    @staticmethod
    def edit_ai_plan(
        db: Session, ai_plan: Mapping[str, Any], user_id: Optional[str]
    ) -> Any:
        """Create or replace the AI-generated plan; returns the stored plan"""
        target_user_id = _require_user(user_id)
        repo = MealPlanRepository(db)
        try:
            plan = repo.upsert_ai_plan(target_user_id, dict(ai_plan))
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"ai_plan_upsert_failed user_id={target_user_id}: {e}")
            raise DataServiceError(f"Failed to update AI-generated plan: {e}")

        logger.info(f"ai_plan_upserted user_id={target_user_id}")
        return plan.ai_plan

    @staticmethod
    def get_meal_plan(db: Session, user_id: Optional[str]) -> dict:
        """Fetch the user's meal plan row"""
        target_user_id = _require_user(user_id)
        plan = MealPlanRepository(db).get_by_user(target_user_id)
        if plan is None:
            logger.warning(f"meal_plan_not_found user_id={target_user_id}")
            raise NotFoundError("No meal plan found for this user")
        return MealPlanMapper.to_dict(plan)

    @staticmethod
    def load_meal_plan(db: Session, user_id: Optional[str]) -> dict:
        """
        Load and validate the stored AI plan.

        The plan may have been stored as a JSON string by older clients, so
        both strings and objects are accepted. A usable plan must contain
        ``weeklyMealPlan`` and ``weeklySummary``.
        """
        target_user_id = _require_user(user_id)
        plan = MealPlanRepository(db).get_by_user(target_user_id)
        if plan is None:
            raise NotFoundError("No meal plan found for this user")
        if not plan.ai_plan:
            raise NotFoundError("No AI plan data found")

        raw = plan.ai_plan
        try:
            parsed = json.loads(raw) if isinstance(raw, str) else raw
        except ValueError:
            logger.error(f"ai_plan_unparseable user_id={target_user_id}")
            raise ServiceValidationError("Invalid meal plan data format")

        if (
            not isinstance(parsed, dict)
            or "weeklyMealPlan" not in parsed
            or "weeklySummary" not in parsed
        ):
            logger.error(f"ai_plan_invalid_structure user_id={target_user_id}")
            raise ServiceValidationError("Invalid meal plan data format")

        return parsed
