"""
Standardized API response envelopes.

Success: ``{"success": true, "data": ...}``
Failure: ``{"error": "<message>", "details": ...}`` (``details`` optional)
"""

from typing import Any, Optional
from pydantic import BaseModel, Field
from datetime import datetime


class SuccessEnvelope(BaseModel):
    """Wrapper returned by write routes"""

    success: bool = Field(True, description="Always true for successful writes")
    data: Any = Field(None, description="Result of the delegated operation")


class ErrorResponse(BaseModel):
    """Standardized error response"""

    error: str = Field(..., description="Human-readable error message")
    details: Optional[Any] = Field(None, description="Diagnostic information")


class HealthResponse(BaseModel):
    """Health check response"""

    status: str = Field(..., description="Service status")
    service: str = Field(..., description="Service name")
    version: Optional[str] = Field(None, description="Service version")
    timestamp: datetime = Field(
        default_factory=datetime.utcnow, description="Check timestamp"
    )


def success_envelope(data: Any = None) -> dict:
    """Create a standardized success envelope"""
    return {"success": True, "data": data}


def error_envelope(message: str, details: Any = None) -> dict:
    """Create a standardized error envelope; ``details`` is omitted when None"""
    payload: dict = {"error": message}
    if details is not None:
        payload["details"] = details
    return payload


def failure_message(exc: BaseException, fallback: str) -> str:
    """Best-effort human-readable message of a failure"""
    message = getattr(exc, "message", None) or str(exc)
    return message if isinstance(message, str) and message else fallback


def failure_details(exc: BaseException) -> str:
    """String form of a failure, e.g. ``NotFoundError: No meal plan found``"""
    text = str(exc)
    name = exc.__class__.__name__
    return f"{name}: {text}" if text else name
