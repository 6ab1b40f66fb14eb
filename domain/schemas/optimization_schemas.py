"""
Request models for the external meal-optimization service.

Responses from the service are passed back to clients as-is, so only the
outbound payloads are modelled here.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, StrictBool, field_validator

from app.optimization_config import DEFAULT_USER_PREFERENCES, UserPreferences


class RAGIngredient(BaseModel):
    name: str
    amount: Union[str, float] = 0
    unit: str = "g"
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    macrosString: Optional[str] = None


class RAGSuggestion(BaseModel):
    mealTitle: Optional[str] = None
    description: Optional[str] = None
    ingredients: List[RAGIngredient] = Field(default_factory=list)
    totalCalories: Optional[float] = None
    totalProtein: Optional[float] = None
    totalCarbs: Optional[float] = None
    totalFat: Optional[float] = None
    instructions: Optional[str] = None


class RAGResponse(BaseModel):
    suggestions: List[RAGSuggestion] = Field(default_factory=list)
    success: bool = True
    message: Optional[str] = None


class TargetMacros(BaseModel):
    calories: float = Field(gt=0)
    protein: float = Field(gt=0)
    carbohydrates: float = Field(gt=0)
    fat: float = Field(gt=0)


class MealOptimizationRequest(BaseModel):
    """Full-day optimization request"""

    rag_response: RAGResponse
    target_macros: TargetMacros
    user_preferences: UserPreferences = Field(
        default_factory=lambda: DEFAULT_USER_PREFERENCES
    )
    user_id: str

    @field_validator("user_preferences", mode="before")
    @classmethod
    def default_preferences(cls, v):
        # Explicit null from the client means "use the defaults"
        return DEFAULT_USER_PREFERENCES if v is None else v


class SingleMealOptimizationRequest(MealOptimizationRequest):
    """Optimization of one meal (breakfast, lunch, dinner, snack)"""

    meal_type: str


class ProxyForwardRequest(BaseModel):
    """Body of the generic optimization proxy: ``{"endpoint": "/path", "data": {...}}``"""

    endpoint: Optional[str] = None
    data: Any = None


# ------------------ Batch optimization ------------------

MAX_BATCH_MEALS = 10
DEFAULT_MAX_QUANTITY = 500
DEFAULT_MEAL_TYPE = "Lunch"
ANONYMOUS_BATCH_USER = "anonymous"


class BatchIngredient(BaseModel):
    name: str = Field(min_length=1)
    protein_per_100g: float
    carbs_per_100g: float
    fat_per_100g: float
    calories_per_100g: float
    quantity_needed: float
    max_quantity: float = DEFAULT_MAX_QUANTITY

    @field_validator("max_quantity", mode="before")
    @classmethod
    def default_max_quantity(cls, v):
        return v or DEFAULT_MAX_QUANTITY


class BatchTargetMacros(BaseModel):
    calories: float = Field(gt=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)


class BatchUserPreferences(BaseModel):
    diet_type: str = "balanced"
    allergies: List[str] = Field(default_factory=list)
    preferences: List[str] = Field(default_factory=list)


class BatchMeal(BaseModel):
    """One meal of a batch, optimized independently of the others"""

    meal_id: str = Field(min_length=1)
    ingredients: List[BatchIngredient]
    target_macros: BatchTargetMacros
    user_preferences: BatchUserPreferences = Field(default_factory=BatchUserPreferences)
    meal_type: str = DEFAULT_MEAL_TYPE

    @field_validator("user_preferences", mode="before")
    @classmethod
    def default_preferences(cls, v):
        return BatchUserPreferences() if v is None else v

    @field_validator("meal_type", mode="before")
    @classmethod
    def default_meal_type(cls, v):
        return v or DEFAULT_MEAL_TYPE

    def to_payload(self, user_id: str) -> dict:
        """Body sent to the single-meal endpoint"""
        return {
            "rag_response": {
                "ingredients": [i.model_dump(mode="json") for i in self.ingredients]
            },
            "target_macros": self.target_macros.model_dump(mode="json"),
            "user_preferences": self.user_preferences.model_dump(mode="json"),
            "user_id": user_id,
            "meal_type": self.meal_type,
        }


class BatchOptimizationRequest(BaseModel):
    """Up to ``MAX_BATCH_MEALS`` meals optimized in one call"""

    meals: List[BatchMeal] = Field(min_length=1, max_length=MAX_BATCH_MEALS)
    user_id: Optional[str] = None
    batch_id: Optional[str] = None
    parallel_processing: bool = False


class MetricRecordRequest(BaseModel):
    """Outcome of one optimization reported by a client"""

    request_id: str = Field(min_length=1)
    success: StrictBool
    duration: float = Field(default=0, ge=0)
    method_used: Optional[str] = None
    endpoint_used: Optional[str] = None
    target_achievement: Optional[dict] = None
