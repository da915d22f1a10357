"""
Shared module - model base class and service exceptions.
"""

from plastic_clever.modules.shared.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ServiceError,
    StageLockedError,
    ValidationFailedError,
)
from plastic_clever.modules.shared.models import BaseModel, pg_enum

__all__ = [
    "BaseModel",
    "pg_enum",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "ServiceError",
    "StageLockedError",
    "ValidationFailedError",
]
