"""Domain events emitted during the booking lifecycle."""

from __future__ import annotations

from pydantic import BaseModel, Field

from venue_booking.domain.models import BookingStatus


class BookingCreated(BaseModel):
    """Fired when a new Booking is persisted."""

    booking_id: str


class BookingUpdated(BaseModel):
    """Fired after an admin edits a booking's details."""

    booking_id: str
    changes: dict = Field(default_factory=dict)


class BookingStatusChanged(BaseModel):
    """Fired on approve / reject / cancel / complete."""

    booking_id: str
    previous: BookingStatus
    current: BookingStatus
    note: str | None = None


class BookingDeleted(BaseModel):
    booking_id: str
    title: str


class BufferTimeChanged(BaseModel):
    """Fired when the scheduling buffer setting is written."""

    previous_minutes: int
    minutes: int
