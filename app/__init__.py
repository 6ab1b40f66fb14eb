"""
App package - Application configuration and core utilities.
Contains settings, exceptions, and the optimization API configuration.
"""

from app.config import settings
from app.exceptions import (
    NutriCoachError,
    ServiceValidationError,
    UnauthorizedError,
    NotFoundError,
    ConflictError,
    DataServiceError,
    OptimizationServiceError,
)

__all__ = [
    "settings",
    "NutriCoachError",
    "ServiceValidationError",
    "UnauthorizedError",
    "NotFoundError",
    "ConflictError",
    "DataServiceError",
    "OptimizationServiceError",
]
