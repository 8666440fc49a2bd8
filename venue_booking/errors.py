"""Exception hierarchy mapped to HTTP status codes.

Hierarchy:
    AppException (500)
    ├── ValidationException (400)
    ├── InvalidStateException (400)
    ├── ResourceNotFoundException (404)
    └── BookingConflictException (409)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from venue_booking.domain.models import ConflictResult


class AppException(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500
    error_type = "ApplicationError"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error_type, "detail": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationException(AppException):
    status_code = 400
    error_type = "ValidationError"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, details={"field": field} if field else None)


class InvalidStateException(AppException):
    """Raised for a status transition the booking's current status forbids."""

    status_code = 400
    error_type = "InvalidState"


class ResourceNotFoundException(AppException):
    status_code = 404
    error_type = "NotFound"

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class BookingConflictException(AppException):
    """The requested slot collides with an existing booking or its buffer."""

    status_code = 409
    error_type = "BookingConflict"

    def __init__(self, conflict: ConflictResult, suggested_times: list[datetime]) -> None:
        super().__init__(
            conflict.message or "Booking conflicts with existing bookings",
            details={
                "conflict_type": conflict.conflict_type.value,
                "conflicting_booking_id": conflict.conflicting_booking_id,
                "suggested_times": [t.isoformat() for t in suggested_times],
            },
        )
        self.conflict = conflict
        self.suggested_times = suggested_times
