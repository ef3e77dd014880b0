# backend/picadero/core/exceptions.py
"""
Domain-specific exceptions for the Picadero academy backend.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class BookingRejection(ValidationException):
    """
    Raised by a validation step when a lesson request must be refused.

    The ``reason`` is one of ``RejectionReason`` and is what callers match on;
    the message is human readable and may change.
    """

    def __init__(
        self,
        reason: str,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        code = str(getattr(reason, "value", reason))
        super().__init__(message=message, code=code, details=details or {})
        self.reason = code
        self.status_code = rejection_status(code)


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


_NOT_FOUND_REASONS = {
    "USER_NOT_FOUND",
    "HORSE_NOT_FOUND",
    "LESSON_NOT_FOUND",
    "INVOICE_NOT_FOUND",
    "PROOF_NOT_FOUND",
    "PLAN_NOT_FOUND",
    "TEACHER_NOT_FOUND",
}
_CONFLICT_REASONS = {
    "TEACHER_UNAVAILABLE",
    "HORSE_UNAVAILABLE",
    "SELF_CONFLICT",
    "COOWNER_CONFLICT",
    "DAILY_CAP_REACHED",
}
_FORBIDDEN_REASONS = {"USER_BLOCKED", "ROLE_NOT_ALLOWED", "PENDING_APPROVAL"}


def rejection_status(reason: str) -> int:
    """Map a rejection reason code to the HTTP status the API layer should use."""
    reason = getattr(reason, "value", reason)
    if reason in _NOT_FOUND_REASONS:
        return status.HTTP_404_NOT_FOUND
    if reason in _CONFLICT_REASONS:
        return status.HTTP_409_CONFLICT
    if reason in _FORBIDDEN_REASONS:
        return status.HTTP_403_FORBIDDEN
    if reason == "STORE_ERROR":
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if reason in {"INVALID_TIME_RANGE", "INVALID_MONTH"}:
        return status.HTTP_400_BAD_REQUEST
    return HTTP_422_UNPROCESSABLE
