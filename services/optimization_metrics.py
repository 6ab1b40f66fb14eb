"""In-memory record of optimization requests.

Records are bucketed by UTC date and kept for ``RETENTION_DAYS``. Nothing is
persisted; a restart starts from an empty store.
"""

from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Any, Callable, Dict, List, Mapping, Optional
import logging

logger = logging.getLogger("nutricoach.optimization.metrics")

MACROS = ("calories", "protein", "carbs", "fat")

UNKNOWN = "Unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _percent(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


class OptimizationMetrics:
    """
    Thread-safe store of per-request optimization outcomes.

    Example:
        >>> metrics = OptimizationMetrics()
        >>> _ = metrics.record("req-1", success=True, duration=812)
        >>> metrics.performance_summary()["total_optimizations"]
        1
    """

    RETENTION_DAYS = 30
    RECENT_ACTIVITY = 10
    MIN_HEALTHY_SUCCESS_RATE = 80.0
    MAX_HEALTHY_AVG_DURATION_MS = 30000

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or _utcnow
        self._by_date: Dict[str, List[dict]] = {}
        self._lock = Lock()

    def record(
        self,
        request_id: str,
        success: bool,
        duration: float = 0,
        method_used: Optional[str] = None,
        endpoint_used: Optional[str] = None,
        target_achievement: Optional[Mapping[str, Any]] = None,
    ) -> dict:
        """Store one outcome; ``duration`` is in milliseconds"""
        now = self._clock()
        metric = {
            "timestamp": now.isoformat(),
            "request_id": request_id,
            "duration": duration,
            "success": success,
            "method_used": method_used or UNKNOWN,
            "endpoint_used": endpoint_used or UNKNOWN,
            "target_achievement": dict(target_achievement or {}),
        }
        with self._lock:
            self._by_date.setdefault(now.date().isoformat(), []).append(metric)
            self._drop_expired(now)
        logger.debug(
            "optimization_metric request_id=%s success=%s duration=%s",
            request_id,
            success,
            duration,
        )
        return metric

    def _drop_expired(self, now: datetime) -> None:
        cutoff = (now - timedelta(days=self.RETENTION_DAYS)).date().isoformat()
        for day in [d for d in self._by_date if d < cutoff]:
            del self._by_date[day]

    def detailed(self, date: str) -> List[dict]:
        """All records of one UTC day (``YYYY-MM-DD``)"""
        with self._lock:
            return list(self._by_date.get(date, []))

    def _since(self, cutoff: datetime) -> List[dict]:
        with self._lock:
            metrics = [m for day in self._by_date.values() for m in day]
        return [m for m in metrics if datetime.fromisoformat(m["timestamp"]) > cutoff]

    def performance_summary(self, hours: float = 24) -> dict:
        """Aggregates over the records of the last ``hours`` hours"""
        metrics = self._since(self._clock() - timedelta(hours=hours))
        total = len(metrics)
        if not total:
            return {
                "total_optimizations": 0,
                "success_rate": 0,
                "avg_duration": 0,
                "min_duration": 0,
                "max_duration": 0,
                "method_distribution": {},
                "endpoint_distribution": {},
                "macro_achievement_rates": {},
                "recent_activity": [],
            }

        durations = [m["duration"] for m in metrics]
        methods: Dict[str, int] = {}
        endpoints: Dict[str, int] = {}
        for m in metrics:
            methods[m["method_used"]] = methods.get(m["method_used"], 0) + 1
            endpoints[m["endpoint_used"]] = endpoints.get(m["endpoint_used"], 0) + 1

        recent = sorted(metrics, key=lambda m: m["timestamp"], reverse=True)
        return {
            "total_optimizations": total,
            "success_rate": _percent(sum(1 for m in metrics if m["success"]), total),
            "avg_duration": sum(durations) / total,
            "min_duration": min(durations),
            "max_duration": max(durations),
            "method_distribution": methods,
            "endpoint_distribution": endpoints,
            "macro_achievement_rates": {
                macro: _percent(
                    sum(1 for m in metrics if m["target_achievement"].get(macro)), total
                )
                for macro in MACROS
            },
            "recent_activity": [
                {
                    "timestamp": m["timestamp"],
                    "success": m["success"],
                    "method": m["method_used"],
                    "endpoint": m["endpoint_used"],
                    "duration": m["duration"],
                }
                for m in recent[: self.RECENT_ACTIVITY]
            ],
        }

    def system_health(self) -> dict:
        """``healthy`` unless the last hour shows failures or slow responses"""
        summary = self.performance_summary(hours=1)
        issues = []
        if summary["total_optimizations"]:
            if summary["success_rate"] < self.MIN_HEALTHY_SUCCESS_RATE:
                issues.append(f"Low success rate: {summary['success_rate']:.1f}%")
            if summary["avg_duration"] > self.MAX_HEALTHY_AVG_DURATION_MS:
                issues.append(
                    f"High average response time: {summary['avg_duration'] / 1000:.1f}s"
                )
        recent = summary["recent_activity"]
        return {
            "status": "warning" if issues else "healthy",
            "issues": issues,
            "last_optimization": recent[0]["timestamp"] if recent else "No recent activity",
        }

    def reset(self) -> None:
        with self._lock:
            self._by_date.clear()


_metrics = OptimizationMetrics()


def get_optimization_metrics() -> OptimizationMetrics:
    """Process-wide metrics store (FastAPI dependency)."""
    return _metrics
