"""
Domain schemas package - Pydantic models for validation.
"""

from domain.schemas.auth_schemas import AuthUser
from domain.schemas.meal_plan_schemas import (
    INVALID_MEAL_PLAN_MESSAGE,
    INVALID_AI_PLAN_MESSAGE,
    MealPlanEditRequest,
    AiPlanEditRequest,
    MealPlanResponse,
)
from domain.schemas.profile_schemas import ProfileResponse
from domain.schemas.optimization_schemas import (
    RAGIngredient,
    RAGSuggestion,
    RAGResponse,
    TargetMacros,
    MealOptimizationRequest,
    SingleMealOptimizationRequest,
    ProxyForwardRequest,
    BatchOptimizationRequest,
    MetricRecordRequest,
)

__all__ = [
    "AuthUser",
    "INVALID_MEAL_PLAN_MESSAGE",
    "INVALID_AI_PLAN_MESSAGE",
    "MealPlanEditRequest",
    "AiPlanEditRequest",
    "MealPlanResponse",
    "ProfileResponse",
    "RAGIngredient",
    "RAGSuggestion",
    "RAGResponse",
    "TargetMacros",
    "MealOptimizationRequest",
    "SingleMealOptimizationRequest",
    "ProxyForwardRequest",
    "BatchOptimizationRequest",
    "MetricRecordRequest",
]
