"""Services package - Business logic layer"""

from services.meal_plan_service import MealPlanService
from services.profile_service import ProfileService
from services.auth_state import AuthState, AuthStateSynchronizer, SessionSynchronizer
from services.optimization_metrics import OptimizationMetrics
from services.optimization_service import MealOptimizationClient

__all__ = [
    "MealPlanService",
    "ProfileService",
    "AuthState",
    "AuthStateSynchronizer",
    "SessionSynchronizer",
    "MealOptimizationClient",
    "OptimizationMetrics",
]
