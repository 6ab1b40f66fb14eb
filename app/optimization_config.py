"""
Static configuration for the external meal-optimization API.

Pure data: nothing here performs network calls. The client in
services.optimization_service reads these values.
"""

from typing import Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.config import settings

Level = Literal["low", "moderate", "high"]


class UserPreferences(BaseModel):
    """Dietary preferences sent along with every optimization request"""

    model_config = ConfigDict(frozen=True)

    dietary_restrictions: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    preferred_cuisines: List[str] = Field(default_factory=lambda: ["persian"])
    calorie_preference: Level = "moderate"
    protein_preference: Level = "high"
    carb_preference: Level = "moderate"
    fat_preference: Level = "moderate"


def _default_endpoints() -> Dict[str, str]:
    return {
        "optimize": "/optimize",
        "optimize_single_meal": "/optimize-meal",
        "test_connection": "/health",
        "health": "/health",
    }


class MealOptimizationConfig(BaseModel):
    """Base URL, endpoint paths, timeout and retry budget of the optimization API"""

    model_config = ConfigDict(frozen=True)

    api_base_url: str
    endpoints: Dict[str, str] = Field(default_factory=_default_endpoints)
    timeout_ms: int = Field(default=30000, ge=1)
    retry_attempts: int = Field(default=3, ge=1)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def endpoint(self, name: str) -> str:
        """Path registered under a logical endpoint name"""
        try:
            return self.endpoints[name]
        except KeyError:
            raise KeyError(f"Unknown optimization endpoint '{name}'") from None


MEAL_OPTIMIZATION_CONFIG = MealOptimizationConfig(
    api_base_url=settings.optimization_api_base_url,
    timeout_ms=settings.optimization_timeout_ms,
    retry_attempts=settings.optimization_retry_attempts,
)

DEFAULT_USER_PREFERENCES = UserPreferences()
