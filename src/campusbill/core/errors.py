"""Custom exceptions and error response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standardized error response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(None, description="Additional context")


class AppError(Exception):
    """Base exception for all app-level errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> ErrorDetail:
        """Convert to API response schema."""
        return ErrorDetail(
            code=self.code,
            message=self.message,
            details=self.details if self.details else None,
        )


# Session and identity


class NoActiveSessionError(AppError):
    """Raised when an operation needs a logged-in user and there is none."""

    def __init__(self, message: str = "No user is currently logged in"):
        super().__init__(
            code="NO_ACTIVE_SESSION",
            message=message,
            status_code=401,
        )


class UserNotFoundError(AppError):
    """Raised when a user id is not in the user store."""

    def __init__(self, user_id: str):
        super().__init__(
            code="USER_NOT_FOUND",
            message=f"User {user_id} doesn't exist in the system",
            status_code=404,
            details={"user_id": user_id},
        )


class RecordNotFoundError(AppError):
    """Raised when a user has no student record."""

    def __init__(self, user_id: str):
        super().__init__(
            code="RECORD_NOT_FOUND",
            message=f"No student record exists for user {user_id}",
            status_code=404,
            details={"user_id": user_id},
        )


class PermissionDeniedError(AppError):
    """Raised when the session user lacks permission."""

    def __init__(self, message: str = "Permission denied", details: Optional[dict] = None):
        super().__init__(
            code="PERMISSION_DENIED",
            message=message,
            status_code=403,
            details=details,
        )


# Bulk loading


class SourceNotFoundError(AppError):
    """Raised when a named data source can't be resolved to a file."""

    def __init__(self, source: str):
        super().__init__(
            code="SOURCE_NOT_FOUND",
            message=f"Source {source} doesn't exist",
            status_code=404,
            details={"source": source},
        )


class MalformedSourceError(AppError):
    """Raised when a data source can't be parsed into a list of records."""

    def __init__(self, source: str, reason: str):
        super().__init__(
            code="MALFORMED_SOURCE",
            message=f"Source {source} can't be parsed",
            status_code=422,
            details={"source": source, "reason": reason},
        )


class InvalidUserError(AppError):
    """Raised when a user row fails field validation."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="INVALID_USER",
            message=message,
            status_code=422,
            details=details,
        )


class InvalidRecordError(AppError):
    """Raised when a student record fails validation."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="INVALID_RECORD",
            message=message,
            status_code=422,
            details=details,
        )


class DuplicateUserError(AppError):
    """Raised when a user id collides within a batch or with the store."""

    def __init__(self, user_id: str):
        super().__init__(
            code="DUPLICATE_USER",
            message=f"User with ID {user_id} already exists",
            status_code=409,
            details={"user_id": user_id},
        )


class DuplicateRecordError(AppError):
    """Raised when a student record collides within a batch or with the store."""

    def __init__(self, user_id: str):
        super().__init__(
            code="DUPLICATE_RECORD",
            message=f"Student record for {user_id} already exists",
            status_code=409,
            details={"user_id": user_id},
        )


# Billing


class InvalidPaymentError(AppError):
    """Raised when a payment amount or note is rejected."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="INVALID_PAYMENT",
            message=message,
            status_code=422,
            details=details,
        )


class InvalidDateRangeError(AppError):
    """Raised when a charge window starts after it ends."""

    def __init__(self, start: str, end: str):
        super().__init__(
            code="INVALID_DATE_RANGE",
            message=f"Start date {start} is after end date {end}",
            status_code=422,
            details={"start": start, "end": end},
        )


class StoreIOError(AppError):
    """Raised on database operation failures. Never retried here."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="IO_FAILURE",
            message=message,
            status_code=500,
            details=details,
        )


class StoreConflictError(StoreIOError):
    """Raised when a write collides with a row another writer committed first."""
