"""Turn stored bookings into the same-day snapshot the conflict engine reads."""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable
from datetime import datetime

from venue_booking.config import settings
from venue_booking.domain.models import Booking, ExistingBooking, TimeInterval
from venue_booking.errors import ValidationException


def combine_date_time(day: dt.date, time_of_day: str) -> datetime:
    """Join a calendar date and an ``HH:MM`` string into one datetime."""
    try:
        hours, minutes = (int(part) for part in time_of_day.split(":"))
        return datetime.combine(day, dt.time(hour=hours, minute=minutes))
    except (AttributeError, TypeError, ValueError) as exc:
        raise ValidationException(
            f"Invalid time {time_of_day!r}, expected HH:MM", field="time"
        ) from exc


def booking_interval(booking: Booking) -> TimeInterval:
    # Bookings recorded before durations were captured fall back to the default
    return TimeInterval(
        start=combine_date_time(booking.date, booking.time),
        duration_minutes=booking.duration_minutes or settings.DEFAULT_BOOKING_DURATION,
    )


def to_existing_booking(booking: Booking) -> ExistingBooking:
    return ExistingBooking(
        id=booking.id, interval=booking_interval(booking), title=booking.title
    )


def day_snapshot(bookings: Iterable[Booking], day: dt.date) -> list[ExistingBooking]:
    """Active bookings on *day*, ordered by start time."""
    snapshot = [
        to_existing_booking(b) for b in bookings if b.date == day and b.is_active
    ]
    return sorted(snapshot, key=lambda b: b.interval.start)
