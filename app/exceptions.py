from typing import Any, Mapping, Optional


class NutriCoachError(Exception):
    """Base class for errors raised by the service and data layers.

    Attributes:
        message: human-readable message
        details: optional mapping with extra context (field errors, upstream info)
        code: optional machine-readable error code
        http_status: suggested HTTP status code for handlers
    """

    http_status = 500
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None, details: Optional[Mapping[str, Any]] = None, code: Optional[str] = None):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"error": self.message}
        if self.code:
            payload["code"] = self.code
        if self.details:
            payload["details"] = dict(self.details)
        return payload

    def __str__(self) -> str:
        return self.message


class ServiceValidationError(NutriCoachError):
    """Raised when input data is invalid or a precondition for a service call is not met."""

    http_status = 400
    default_message = "Invalid input"


class UnauthorizedError(NutriCoachError):
    """Raised when authentication fails or no acting user can be resolved."""

    http_status = 401
    default_message = "Unauthorized"


class ForbiddenError(NutriCoachError):
    """Raised when an authenticated user acts on data they do not own."""

    http_status = 403
    default_message = "Forbidden"


class NotFoundError(NutriCoachError):
    """Raised when a requested resource was not found."""

    http_status = 404
    default_message = "Not found"


class ConflictError(NutriCoachError):
    """Raised when a write collides with concurrent data (e.g., unique constraint)."""

    http_status = 409
    default_message = "Conflict"


class DataServiceError(NutriCoachError):
    """Raised when the managed database rejects an operation."""

    http_status = 500
    default_message = "Data service error"


class OptimizationServiceError(NutriCoachError):
    """Raised when the external meal-optimization API fails.

    ``status_code`` carries the upstream HTTP status when there was one, so
    proxy routes can pass it through unchanged.
    """

    http_status = 502
    default_message = "External API unavailable"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, details: Optional[Mapping[str, Any]] = None, code: Optional[str] = None):
        super().__init__(message, details=details, code=code)
        self.status_code = status_code
        if status_code is not None:
            self.http_status = status_code
