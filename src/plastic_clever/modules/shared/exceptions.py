"""
Service Exceptions

Services raise these; the application-level handlers in main.py turn them
into ``{"error": code, "message": msg}`` JSON responses with the matching
status code.
"""

from typing import Any


class ServiceError(Exception):
    """Base exception for service-layer errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 400,
        errors: list[dict[str, Any]] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.errors = errors
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class NotFoundError(ServiceError):
    """Raised when a resource does not exist (or is hidden from the caller)."""

    def __init__(self, resource: str = "Resource", resource_id: str | None = None):
        message = f"{resource} {resource_id} not found" if resource_id else f"{resource} not found"
        super().__init__(
            message=message,
            error_code=f"{resource.upper().replace(' ', '_')}_NOT_FOUND",
            status_code=404,
        )


class ForbiddenError(ServiceError):
    """Raised when the caller lacks the capability or membership required."""

    def __init__(self, message: str = "Access denied", error_code: str = "FORBIDDEN"):
        super().__init__(message=message, error_code=error_code, status_code=403)


class StageLockedError(ForbiddenError):
    """Raised when evidence is submitted to a stage the school has not unlocked."""

    def __init__(self):
        super().__init__(
            message="Cannot submit evidence to locked stage. Complete the previous stage first.",
            error_code="STAGE_LOCKED",
        )


class ConflictError(ServiceError):
    """Raised when an operation conflicts with the current state of a resource."""

    def __init__(self, message: str, error_code: str = "CONFLICT", status_code: int = 409):
        super().__init__(message=message, error_code=error_code, status_code=status_code)


class ValidationFailedError(ServiceError):
    """Raised for business-rule validation failures (HTTP 400)."""

    def __init__(
        self,
        message: str,
        error_code: str = "VALIDATION_ERROR",
        errors: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message=message, error_code=error_code, status_code=400, errors=errors)
