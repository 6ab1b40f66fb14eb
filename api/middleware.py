"""
Consolidated middleware and exception handlers for the NutriCoach API
"""

import time
import logging
from uuid import uuid4
from decimal import Decimal

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from api.responses import error_envelope
from app.exceptions import NutriCoachError

logger = logging.getLogger("nutricoach.middleware")


# ============================================================================
# Helper Functions
# ============================================================================


def make_serializable(obj):
    """Convert objects to JSON-serializable format"""
    if isinstance(obj, Decimal):
        return float(obj)
    elif isinstance(obj, dict):
        return {k: make_serializable(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [make_serializable(item) for item in obj]
    elif isinstance(obj, BaseException):
        return str(obj)
    return obj


# ============================================================================
# Request Logging Middleware
# ============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with an id and its processing time"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        logger.info(
            "request_started id=%s method=%s path=%s client=%s",
            request_id,
            request.method,
            request.url.path,
            request.client.host if request.client else None,
        )

        start_time = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.error(
                "request_failed id=%s method=%s path=%s elapsed=%.4fs",
                request_id,
                request.method,
                request.url.path,
                time.perf_counter() - start_time,
                exc_info=True,
            )
            raise

        process_time = time.perf_counter() - start_time
        logger.info(
            "request_completed id=%s method=%s path=%s status=%d elapsed=%.4fs",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            process_time,
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response


# ============================================================================
# Error Handlers
# ============================================================================


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors"""
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

    return JSONResponse(
        status_code=422,
        content=error_envelope(
            "Request validation failed", details=make_serializable(exc.errors())
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions"""
    logger.warning(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def nutricoach_exception_handler(request: Request, exc: NutriCoachError):
    """Handle domain errors raised by services, adapters and dependencies"""
    if exc.http_status >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc}")
    else:
        logger.warning(f"{exc.__class__.__name__} on {request.url.path}: {exc}")

    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors"""
    logger.exception(f"Unexpected error on {request.url.path}: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope("An unexpected error occurred"),
    )
