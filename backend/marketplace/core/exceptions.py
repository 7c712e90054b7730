# backend/marketplace/core/exceptions.py
"""
Domain-specific exceptions for the vendor marketplace.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Booking rejections carry field-level errors under ``details["errors"]``
so callers can render them next to the offending input.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)

EVENT_DATE_UNAVAILABLE_MESSAGE = "is not available for this vendor"
EVENT_DATE_CONFLICT_MESSAGE = "conflicts with another booking"


@dataclass(frozen=True)
class FieldError:
    """A rejection reason tied to one input field."""

    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


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

    @property
    def field_errors(self) -> List[Dict[str, str]]:
        """Field-level errors attached to this exception, if any."""
        return list(self.details.get("errors", []))

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


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when an actor lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class BookingConflictException(ConflictException):
    """Raised when a booking overlaps a blocking booking for the same vendor."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged: Dict[str, Any] = {
            "errors": [FieldError("event_date", EVENT_DATE_CONFLICT_MESSAGE).to_dict()]
        }
        merged.update(details or {})
        super().__init__(
            message=message or "This time slot conflicts with an existing booking",
            code="BOOKING_CONFLICT",
            details=merged,
        )


class VendorUnavailableException(BusinessRuleException):
    """Raised when the requested window is not covered by any open availability window."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged: Dict[str, Any] = {
            "errors": [FieldError("event_date", EVENT_DATE_UNAVAILABLE_MESSAGE).to_dict()]
        }
        merged.update(details or {})
        super().__init__(
            message=message or "The vendor is not available at the requested time",
            code="VENDOR_UNAVAILABLE",
            details=merged,
        )


class BookingLockTimeoutException(ConflictException):
    """Raised when another booking attempt holds the vendor's day lock for too long."""

    def __init__(self, vendor_id: str, day: str, waited_seconds: float):
        super().__init__(
            message="Another booking for this vendor and date is in progress. Please retry.",
            code="BOOKING_LOCK_TIMEOUT",
            details={"vendor_id": vendor_id, "date": day, "waited_seconds": waited_seconds},
        )


class InvalidStatusTransitionException(BusinessRuleException):
    """Raised when a booking status change is not allowed by the lifecycle."""

    def __init__(self, booking_id: str, current: str, requested: str):
        super().__init__(
            message=f"Booking {booking_id} cannot move from {current} to {requested}",
            code="INVALID_STATUS_TRANSITION",
            details={"booking_id": booking_id, "current": current, "requested": requested},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
