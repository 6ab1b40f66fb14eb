"""Client for the external meal-optimization API.

Timeout and retry budget come from ``MEAL_OPTIMIZATION_CONFIG``:
- every request is bounded by ``timeout_ms``;
- ``optimize_meal_plan`` / ``optimize_single_meal`` retry transport errors and
  5xx responses up to ``retry_attempts`` times with exponential backoff
  (1s, 2s, 4s... capped at 5s);
- ``forward`` (used by the pass-through proxy route) sends exactly once;
- ``optimize_batch`` runs one single-meal optimization per meal and reports
  failures per meal instead of raising.
"""

from typing import Any, Awaitable, Callable, List, Optional
import logging
import time
import uuid

import anyio
import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from app.exceptions import OptimizationServiceError, ServiceValidationError
from app.optimization_config import MEAL_OPTIMIZATION_CONFIG, MealOptimizationConfig
from domain.schemas.optimization_schemas import (
    ANONYMOUS_BATCH_USER,
    BatchMeal,
    BatchOptimizationRequest,
    MealOptimizationRequest,
    SingleMealOptimizationRequest,
)
from services.optimization_metrics import (
    MACROS,
    UNKNOWN,
    OptimizationMetrics,
    get_optimization_metrics,
)

logger = logging.getLogger("nutricoach.optimization")


def _is_retryable(exc: BaseException) -> bool:
    """Transport failures (no status) and upstream 5xx are worth another try"""
    if not isinstance(exc, OptimizationServiceError):
        return False
    return exc.status_code is None or exc.status_code >= 500


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _method_of(result: Any) -> str:
    """Solver reported under ``optimization_result.method``"""
    if isinstance(result, dict) and isinstance(result.get("optimization_result"), dict):
        return result["optimization_result"].get("method") or UNKNOWN
    return UNKNOWN


def _achievement_of(result: Any) -> dict:
    if isinstance(result, dict) and isinstance(result.get("target_achievement"), dict):
        return result["target_achievement"]
    return {}


def summarize_batch(
    batch_id: str,
    results: List[dict],
    total_processing_time: int,
    parallel_processing: bool = False,
) -> dict:
    """Batch response: counts, per-meal results and an aggregate summary"""
    succeeded = [r for r in results if r["success"]]
    total = len(results)
    methods: List[str] = []
    achieved = {f"{macro}_achieved": 0 for macro in MACROS}
    for r in succeeded:
        method = _method_of(r["result"])
        if method not in methods:
            methods.append(method)
        achievement = _achievement_of(r["result"])
        for macro in MACROS:
            if achievement.get(macro):
                achieved[f"{macro}_achieved"] += 1

    return {
        "batch_id": batch_id,
        "total_meals": total,
        "successful_optimizations": len(succeeded),
        "failed_optimizations": total - len(succeeded),
        "success_rate": len(succeeded) / total * 100 if total else 0,
        "total_processing_time": total_processing_time,
        "results": results,
        "summary": {
            "overall_success": bool(succeeded),
            "average_computation_time": (
                sum(r["processing_time"] for r in succeeded) / len(succeeded)
                if succeeded
                else 0
            ),
            "methods_used": methods,
            "target_achievement_summary": achieved,
        },
        "status": "success",
        "optimization_metadata": {
            "batch_processing": True,
            "parallel_processing": parallel_processing,
        },
    }


class MealOptimizationClient:
    """
    Async HTTP client for the meal-optimization service.

    Example:
        >>> async with MealOptimizationClient() as client:
        ...     health = await client.get_health()
    """

    def __init__(
        self,
        config: MealOptimizationConfig = MEAL_OPTIMIZATION_CONFIG,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_wait: Optional[wait_base] = None,
        metrics: Optional[OptimizationMetrics] = None,
    ):
        self.config = config
        self._metrics = metrics
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, max=5)
        self._client = httpx.AsyncClient(
            base_url=config.api_base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "MealOptimizationClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    # ------------------ Raw forwarding ------------------

    async def forward(self, method: str, endpoint: Optional[str], data: Any = None) -> Any:
        """
        Send one request to ``endpoint`` and return the decoded JSON body.

        Raises:
            ServiceValidationError: no endpoint given
            OptimizationServiceError: transport failure (``status_code`` None)
                or non-2xx upstream response (``status_code`` set)
        """
        if not endpoint:
            raise ServiceValidationError("Endpoint is required")

        method = method.upper()
        logger.info(
            "optimization_request method=%s endpoint=%s data=%s",
            method,
            endpoint,
            "present" if data is not None else "none",
        )

        try:
            if method == "GET":
                response = await self._client.get(endpoint)
            else:
                response = await self._client.request(method, endpoint, json=data)
        except httpx.TimeoutException as e:
            logger.warning("optimization_timeout endpoint=%s", endpoint)
            raise OptimizationServiceError("Request timed out. Please try again.") from e
        except httpx.HTTPError as e:
            logger.warning("optimization_transport_error endpoint=%s error=%s", endpoint, e)
            raise OptimizationServiceError(str(e) or e.__class__.__name__) from e

        logger.info(
            "optimization_response endpoint=%s status=%d", endpoint, response.status_code
        )

        if response.is_error:
            logger.error(
                "optimization_upstream_error endpoint=%s status=%d body=%s",
                endpoint,
                response.status_code,
                response.text,
            )
            raise OptimizationServiceError(
                f"API request failed: {response.status_code} "
                f"{response.reason_phrase} - {response.text}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise OptimizationServiceError(
                "Optimization service returned invalid JSON",
                status_code=response.status_code,
            ) from e

    async def _with_retry(self, call: Callable[[], Awaitable[Any]]) -> Any:
        result = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.config.retry_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info(
                        "optimization_retry attempt=%d/%d",
                        attempt.retry_state.attempt_number,
                        self.config.retry_attempts,
                    )
                result = await call()
        return result

    # ------------------ Typed operations ------------------

    async def optimize_meal_plan(self, request: MealOptimizationRequest) -> Any:
        """Optimize a full day of meals"""
        return await self._optimize("optimize", request.model_dump(mode="json"))

    async def optimize_single_meal(self, request: SingleMealOptimizationRequest) -> Any:
        """Optimize one meal towards its target macros"""
        return await self._optimize("optimize_single_meal", request.model_dump(mode="json"))

    async def optimize_batch(self, request: BatchOptimizationRequest) -> dict:
        """
        Optimize every meal of a batch through the single-meal endpoint.

        Meals run one after another, or concurrently when
        ``parallel_processing`` is set; results keep the request order either
        way. A failing meal is reported in its result entry and never aborts
        the batch.
        """
        batch_id = request.batch_id or f"batch_{int(time.time() * 1000)}"
        user_id = request.user_id or ANONYMOUS_BATCH_USER
        results: List[Optional[dict]] = [None] * len(request.meals)
        started = time.perf_counter()

        async def run_meal(index: int, meal: BatchMeal) -> None:
            results[index] = await self._optimize_batch_meal(meal, user_id)

        logger.info(
            "optimization_batch batch_id=%s meals=%d parallel=%s",
            batch_id,
            len(request.meals),
            request.parallel_processing,
        )
        if request.parallel_processing:
            async with anyio.create_task_group() as tg:
                for index, meal in enumerate(request.meals):
                    tg.start_soon(run_meal, index, meal)
        else:
            for index, meal in enumerate(request.meals):
                await run_meal(index, meal)

        summary = summarize_batch(
            batch_id, results, _elapsed_ms(started), request.parallel_processing
        )
        logger.info(
            "optimization_batch_done batch_id=%s succeeded=%d/%d",
            batch_id,
            summary["successful_optimizations"],
            summary["total_meals"],
        )
        return summary

    async def _optimize_batch_meal(self, meal: BatchMeal, user_id: str) -> dict:
        started = time.perf_counter()
        try:
            result = await self._optimize("optimize_single_meal", meal.to_payload(user_id))
        except OptimizationServiceError as e:
            logger.warning(
                "optimization_batch_meal_failed meal_id=%s error=%s", meal.meal_id, e
            )
            return {
                "meal_id": meal.meal_id,
                "success": False,
                "result": None,
                "error": e.message,
                "processing_time": _elapsed_ms(started),
            }
        return {
            "meal_id": meal.meal_id,
            "success": True,
            "result": result,
            "error": None,
            "processing_time": _elapsed_ms(started),
        }

    async def _optimize(self, endpoint_name: str, payload: dict) -> Any:
        endpoint = self.config.endpoint(endpoint_name)
        started = time.perf_counter()
        try:
            result = await self._with_retry(lambda: self.forward("POST", endpoint, payload))
        except OptimizationServiceError as e:
            self._record(endpoint, started, success=False)
            logger.warning("optimization_unavailable endpoint=%s error=%s", endpoint, e)
            raise OptimizationServiceError(
                f"External API unavailable: {e.message}. Please try again later.",
                status_code=e.status_code,
            ) from e
        self._record(endpoint, started, success=True, result=result)
        return result

    def _record(self, endpoint: str, started: float, success: bool, result: Any = None) -> None:
        if self._metrics is None:
            return
        self._metrics.record(
            request_id=uuid.uuid4().hex,
            success=success,
            duration=_elapsed_ms(started),
            method_used=_method_of(result),
            endpoint_used=endpoint,
            target_achievement=_achievement_of(result),
        )

    async def test_connection(self) -> dict:
        try:
            return await self.forward("POST", self.config.endpoint("test_connection"))
        except OptimizationServiceError:
            return {"status": "error", "message": "External API unavailable"}

    async def get_health(self) -> dict:
        try:
            return await self.forward("GET", self.config.endpoint("health"))
        except OptimizationServiceError:
            return {"status": "error", "message": "External API health check failed"}


_client: Optional[MealOptimizationClient] = None


def get_optimization_client() -> MealOptimizationClient:
    """Shared client, created lazily (FastAPI dependency)."""
    global _client
    if _client is None or _client.closed:
        _client = MealOptimizationClient(metrics=get_optimization_metrics())
    return _client


async def close_optimization_client() -> None:
    global _client
    if _client is not None:
        try:
            await _client.aclose()
            logger.info("Optimization client closed")
        finally:
            _client = None
