"""Domain models for the venue booking system."""

from __future__ import annotations

import datetime as dt
import re
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

try:
    from enum import StrEnum
except ImportError:  # pragma: no cover - fallback for older Python runtimes

    class StrEnum(str, Enum):
        pass


_TIME_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


class BookingStatus(StrEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


# Statuses that occupy the calendar and take part in conflict checks
ACTIVE_STATUSES = frozenset(
    {BookingStatus.PENDING, BookingStatus.APPROVED, BookingStatus.COMPLETED}
)


class BookingType(StrEnum):
    CAFE = "CAFE"
    SENSORY_ROOM = "SENSORY_ROOM"
    PLAYGROUND = "PLAYGROUND"
    PARTY = "PARTY"
    EVENT = "EVENT"


class ConflictType(StrEnum):
    NONE = "NONE"
    OVERLAP = "OVERLAP"
    BUFFER_BEFORE = "BUFFER_BEFORE"
    BUFFER_AFTER = "BUFFER_AFTER"


class AuditAction(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    COMPLETE = "COMPLETE"
    DELETE = "DELETE"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _check_time(value: str) -> str:
    if not _TIME_RE.match(value):
        raise ValueError("Invalid time format (HH:MM)")
    return value


TimeOfDay = Annotated[str, AfterValidator(_check_time)]


# ---------------------------------------------------------------------------
# Scheduling value types
# ---------------------------------------------------------------------------


class TimeInterval(BaseModel):
    """A booked span of time: a start plus a whole number of minutes."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    duration_minutes: int = Field(ge=1)

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration_minutes)


class ExistingBooking(BaseModel):
    """A booking already on the calendar for the day being checked."""

    model_config = ConfigDict(frozen=True)

    id: str
    interval: TimeInterval
    title: str | None = None


class CandidateRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    interval: TimeInterval
    exclude_id: str | None = None


class ConflictResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_conflict: bool = False
    conflict_type: ConflictType = ConflictType.NONE
    conflicting_booking_id: str | None = None
    message: str = ""


class BookingWindow(BaseModel):
    """A booking's own bounds together with the buffer it blocks around itself."""

    model_config = ConfigDict(frozen=True)

    booking_start: datetime
    booking_end: datetime
    window_start: datetime
    window_end: datetime
    total_minutes: int


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Booking(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str = Field(min_length=3)
    type: BookingType
    date: dt.date
    time: TimeOfDay
    duration_minutes: int | None = Field(default=None, ge=1)
    guest_count: int = Field(ge=1, le=100)
    phone: str = Field(min_length=10)
    email: str
    special_requests: str | None = None
    status: BookingStatus = BookingStatus.PENDING
    admin_notes: str | None = None
    rejection_reason: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class AuditEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    action: AuditAction
    entity: str
    entity_id: str
    changes: dict = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)


class Notification(BaseModel):
    id: str = Field(default_factory=_new_id)
    recipient: str
    kind: str
    title: str
    message: str
    booking_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    read: bool = False


class Setting(BaseModel):
    key: str
    value: dict = Field(default_factory=dict)
    category: str = "general"
    updated_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class ConflictCheckRequest(BaseModel):
    date: dt.date
    time: TimeOfDay
    duration_minutes: int | None = Field(default=None, ge=1)
    exclude_booking_id: str | None = None


class ConflictCheckResponse(BaseModel):
    conflict: ConflictResult
    suggested_times: list[datetime] = Field(default_factory=list)
    buffer_minutes: int
    within_business_hours: bool = True


class CreateBookingRequest(BaseModel):
    title: str = Field(min_length=3)
    type: BookingType
    date: dt.date
    time: TimeOfDay
    duration_minutes: int | None = Field(default=None, ge=1)
    guest_count: int = Field(ge=1, le=100)
    phone: str = Field(min_length=10)
    email: str
    special_requests: str | None = None

    @field_validator("email")
    @classmethod
    def _email_shape(cls, value: str) -> str:
        if "@" not in value or value.startswith("@") or value.endswith("@"):
            raise ValueError("Invalid email address")
        return value


class UpdateBookingRequest(BaseModel):
    title: str | None = Field(default=None, min_length=3)
    type: BookingType | None = None
    date: dt.date | None = None
    time: TimeOfDay | None = None
    duration_minutes: int | None = Field(default=None, ge=1)
    guest_count: int | None = Field(default=None, ge=1, le=100)
    phone: str | None = Field(default=None, min_length=10)
    email: str | None = None
    special_requests: str | None = None
    admin_notes: str | None = None

    # Omitted fields are left as they are; an explicit null is rejected
    @field_validator("title", "type", "date", "time", "guest_count", "phone", "email")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be cleared")
        return value

    @field_validator("email")
    @classmethod
    def _email_shape(cls, value: str) -> str:
        if "@" not in value or value.startswith("@") or value.endswith("@"):
            raise ValueError("Invalid email address")
        return value


class ApproveBookingRequest(BaseModel):
    admin_notes: str | None = None


class RejectBookingRequest(BaseModel):
    reason: str = Field(min_length=10)


class BookingListResponse(BaseModel):
    bookings: list[Booking]
    total: int


class DaySchedule(BaseModel):
    date: dt.date
    bookings: list[ExistingBooking]
    buffer_minutes: int
    windows: list[BookingWindow] = Field(default_factory=list)


class Availability(BaseModel):
    date: dt.date
    duration_minutes: int
    buffer_minutes: int
    slots: list[datetime]


class NextSlot(BaseModel):
    requested: datetime
    next_available: datetime | None
    buffer_minutes: int


class BufferTimeRequest(BaseModel):
    minutes: int


class BufferTimeResponse(BaseModel):
    minutes: int
