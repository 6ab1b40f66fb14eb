"""Meal optimization routes: pass-through proxy, typed optimization calls, batch and metrics"""

from datetime import datetime, timezone
from typing import Any, Optional
import logging

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from api.dependencies import get_optimization_client, get_optimization_metrics
from api.responses import error_envelope
from app.exceptions import OptimizationServiceError
from domain.schemas.optimization_schemas import (
    MAX_BATCH_MEALS,
    BatchOptimizationRequest,
    MealOptimizationRequest,
    MetricRecordRequest,
    ProxyForwardRequest,
    SingleMealOptimizationRequest,
)
from services.optimization_metrics import OptimizationMetrics
from services.optimization_service import MealOptimizationClient

router = APIRouter(prefix="/meal-optimization", tags=["Meal Optimization"])
logger = logging.getLogger("nutricoach.api.meal_optimization")

ENDPOINT_REQUIRED_MESSAGE = "Endpoint is required"
INVALID_MEALS_MESSAGE = "Missing or invalid meals array"
BATCH_TOO_LARGE_MESSAGE = f"Maximum {MAX_BATCH_MEALS} meals allowed per batch request"
METRIC_FIELDS_MESSAGE = "Missing required fields: request_id and success"


async def _forward(client: MealOptimizationClient, method: str, endpoint: Optional[str], data: Any = None) -> JSONResponse:
    if not endpoint:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_envelope(ENDPOINT_REQUIRED_MESSAGE),
        )
    try:
        result = await client.forward(method, endpoint, data)
    except OptimizationServiceError as e:
        return JSONResponse(
            status_code=e.status_code or status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope(e.message),
        )
    return JSONResponse(content=result)


@router.post("")
async def proxy_post(
    request: Request,
    client: MealOptimizationClient = Depends(get_optimization_client),
):
    """Forward ``{"endpoint": "/path", "data": {...}}`` to the optimization service"""
    try:
        body = await request.json()
        try:
            payload = ProxyForwardRequest.model_validate(body if isinstance(body, dict) else {})
        except ValidationError:
            payload = ProxyForwardRequest()
        return await _forward(client, "POST", payload.endpoint, payload.data)
    except Exception as e:
        logger.exception("Meal optimization proxy error")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope(str(e) or "Internal server error"),
        )


@router.get("")
async def proxy_get(
    endpoint: Optional[str] = Query(None, description="Upstream path, e.g. /health"),
    client: MealOptimizationClient = Depends(get_optimization_client),
):
    """Forward a GET to the optimization service"""
    try:
        return await _forward(client, "GET", endpoint)
    except Exception as e:
        logger.exception("Meal optimization proxy GET error")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope(str(e) or "Internal server error"),
        )


@router.post("/optimize")
async def optimize_meal_plan(
    body: MealOptimizationRequest,
    client: MealOptimizationClient = Depends(get_optimization_client),
):
    """Optimize a full day; missing user preferences fall back to the defaults"""
    logger.info("Optimizing meal plan for user %s", body.user_id)
    try:
        return await client.optimize_meal_plan(body)
    except OptimizationServiceError as e:
        return JSONResponse(
            status_code=e.status_code or status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={**error_envelope(e.message), "status": "error"},
        )


@router.post("/single-meal")
async def optimize_single_meal(
    body: SingleMealOptimizationRequest,
    client: MealOptimizationClient = Depends(get_optimization_client),
):
    """Optimize one meal of the day"""
    logger.info("Optimizing %s for user %s", body.meal_type, body.user_id)
    try:
        return await client.optimize_single_meal(body)
    except OptimizationServiceError as e:
        return JSONResponse(
            status_code=e.status_code or status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={**error_envelope(e.message), "status": "error"},
        )


@router.get("/health")
async def optimization_health(
    client: MealOptimizationClient = Depends(get_optimization_client),
):
    """Upstream health; never fails, reports ``status: error`` instead"""
    return await client.get_health()


@router.post("/test")
async def optimization_test_connection(
    client: MealOptimizationClient = Depends(get_optimization_client),
):
    """Connectivity check against the upstream test endpoint"""
    return await client.test_connection()


# ------------------ Batch ------------------


def _error(status_code: int, message: str, details: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={**error_envelope(message, details=details), "status": "error"},
    )


def _batch_rejection(body: Any, error: ValidationError) -> JSONResponse:
    """400 naming the first offending meal of a batch"""
    first = error.errors()[0]
    loc = first["loc"]
    if len(loc) < 2 or loc[0] != "meals":
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid batch request", first["msg"])

    meal = body["meals"][loc[1]]
    meal_id = meal.get("meal_id") if isinstance(meal, dict) else None
    if len(loc) > 3 and loc[2] == "ingredients":
        return _error(
            status.HTTP_400_BAD_REQUEST,
            f"Invalid ingredient data in meal {meal_id}",
            first["msg"],
        )
    if len(loc) > 3 and loc[2] == "target_macros":
        return _error(
            status.HTTP_400_BAD_REQUEST,
            f"Invalid target macros for meal {meal_id}",
            "Calories must be positive and protein, carbs and fat non-negative",
        )
    return _error(
        status.HTTP_400_BAD_REQUEST,
        f"Invalid meal data for meal_id: {meal_id}",
        "Each meal must have meal_id, ingredients, and target_macros",
    )


@router.post("/batch")
async def optimize_batch(
    request: Request,
    client: MealOptimizationClient = Depends(get_optimization_client),
):
    """
    Optimize up to ten meals in one call.

    - 400 ``{"error", "status": "error"}`` when the batch or one of its meals is invalid
    - 200 batch summary; meals that failed upstream are reported per meal
    """
    try:
        body = await request.json()
        meals = body.get("meals") if isinstance(body, dict) else None
        if not isinstance(meals, list) or not meals:
            return _error(status.HTTP_400_BAD_REQUEST, INVALID_MEALS_MESSAGE)
        if len(meals) > MAX_BATCH_MEALS:
            return _error(status.HTTP_400_BAD_REQUEST, BATCH_TOO_LARGE_MESSAGE)

        try:
            payload = BatchOptimizationRequest.model_validate(body)
        except ValidationError as e:
            logger.warning("Rejected batch optimization: %s", e.errors())
            return _batch_rejection(body, e)

        return await client.optimize_batch(payload)
    except Exception as e:
        logger.exception("Batch meal optimization error")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or "Internal server error"
        )


@router.get("/batch")
def batch_info():
    """Describe the batch endpoint"""
    return {
        "message": "Batch Meal Optimization API is operational",
        "status": "success",
        "service_info": {
            "max_batch_size": MAX_BATCH_MEALS,
            "supported_features": [
                "Sequential processing",
                "Parallel processing",
                "Per-meal error reporting",
            ],
        },
    }


# ------------------ Metrics ------------------


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _distribution(counts: dict, total: int) -> list:
    return [
        {"name": name, "count": count, "percentage": count / total * 100}
        for name, count in counts.items()
    ]


@router.get("/metrics")
def optimization_metrics(
    hours: int = Query(24, ge=1, description="Look-back window of the summary"),
    date: Optional[str] = Query(None, description="UTC day (YYYY-MM-DD) to list raw records for"),
    detailed: bool = Query(False, description="Add method and endpoint breakdowns"),
    metrics: OptimizationMetrics = Depends(get_optimization_metrics),
):
    """Performance of optimization requests served by this process"""
    if date:
        records = metrics.detailed(date)
        return {"date": date, "metrics": records, "count": len(records), "status": "success"}

    summary = metrics.performance_summary(hours)
    response = {
        "status": "success",
        "time_period": f"{hours} hours",
        "timestamp": _now(),
        "performance_summary": summary,
        "system_health": metrics.system_health(),
    }
    if detailed:
        total = summary["total_optimizations"]
        response["detailed_breakdown"] = {
            "method_performance": _distribution(summary["method_distribution"], total),
            "endpoint_performance": _distribution(summary["endpoint_distribution"], total),
            "macro_achievement_breakdown": summary["macro_achievement_rates"],
        }
    return response


@router.post("/metrics")
async def record_optimization_metric(
    request: Request,
    metrics: OptimizationMetrics = Depends(get_optimization_metrics),
):
    """Record the outcome of an optimization run by a client"""
    try:
        body = await request.json()
        try:
            payload = MetricRecordRequest.model_validate(body)
        except ValidationError as e:
            logger.warning("Rejected optimization metric: %s", e.errors())
            return _error(status.HTTP_400_BAD_REQUEST, METRIC_FIELDS_MESSAGE)

        metrics.record(
            payload.request_id,
            payload.success,
            duration=payload.duration,
            method_used=payload.method_used,
            endpoint_used=payload.endpoint_used,
            target_achievement=payload.target_achievement,
        )
        return {
            "status": "success",
            "message": "Metric recorded successfully",
            "request_id": payload.request_id,
            "timestamp": _now(),
        }
    except Exception as e:
        logger.exception("Optimization metric error")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or "Internal server error"
        )
