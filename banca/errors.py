"""Custom exceptions for centralized error handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class AppError(Exception):
    """Base application error."""

    code: str
    message: str
    status_code: int
    details: Any | None = None


class NotFoundError(AppError):
    """Resource not found."""

    def __init__(self, message: str = "Not found", details: Any | None = None) -> None:
        super().__init__(code="not_found", message=message, status_code=404, details=details)


class ValidationError(AppError):
    """Input validation error."""

    def __init__(
        self,
        message: str = "Validation error",
        details: Any | None = None,
        code: str = "validation_error",
    ) -> None:
        super().__init__(code=code, message=message, status_code=400, details=details)


class ConflictError(AppError):
    """Conflict (e.g., unique constraint)."""

    def __init__(self, message: str = "Conflict", details: Any | None = None) -> None:
        super().__init__(code="conflict", message=message, status_code=409, details=details)


class InvalidPositionRange(ValidationError):
    """Prize position range is reversed or outside the modality's legal range."""

    def __init__(self, message: str = "Invalid position range", details: Any | None = None) -> None:
        super().__init__(message=message, details=details, code="invalid_position_range")


class InvalidGroupCount(ValidationError):
    """Group bet carries a number of groups different from the modality's arity."""

    def __init__(self, message: str = "Invalid group count", details: Any | None = None) -> None:
        super().__init__(message=message, details=details, code="invalid_group_count")


class InvalidNumber(ValidationError):
    """Pick is not a digit string of the modality's length (or a valid group)."""

    def __init__(self, message: str = "Invalid number", details: Any | None = None) -> None:
        super().__init__(message=message, details=details, code="invalid_number")


class InfrastructureError(AppError):
    """Storage or locking failure. The outcome is unknown; callers may retry with backoff."""

    def __init__(
        self,
        message: str = "Exposure check unavailable, retry later",
        details: Any | None = None,
    ) -> None:
        merged = {"retryable": True}
        if isinstance(details, dict):
            merged.update(details)
        elif details is not None:
            merged["reason"] = details
        super().__init__(code="infrastructure_error", message=message, status_code=503, details=merged)
