"""Service for proposing conflict-free alternatives to a requested slot.

Searches never look backward: a slot earlier than the one requested is not
actionable for the requester. The horizon is the rest of the requested
calendar day, and a suggested slot must also finish by midnight so it never
reaches into a day the snapshot of existing bookings does not cover.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterator, Sequence
from datetime import datetime, timedelta

from dateutil.rrule import MINUTELY, rrule

from venue_booking.config import settings
from venue_booking.domain.models import (
    BookingWindow,
    CandidateRequest,
    ExistingBooking,
    TimeInterval,
)
from venue_booking.services.conflicts import check_conflict

logger = logging.getLogger(__name__)


def end_of_day(moment: datetime) -> datetime:
    """Midnight that closes *moment*'s calendar day, in the same timezone."""
    next_day = moment.date() + timedelta(days=1)
    return datetime.combine(next_day, dt.time.min, tzinfo=moment.tzinfo)


def _steps(start: datetime, last_start: datetime, step_minutes: int) -> Iterator[datetime]:
    # Empty when last_start precedes start
    return iter(rrule(MINUTELY, interval=step_minutes, dtstart=start, until=last_start))


def suggest_alternative_times(
    candidate: CandidateRequest,
    existing: Sequence[ExistingBooking],
    buffer_minutes: int,
    count: int = 3,
    step_minutes: int | None = None,
) -> list[datetime]:
    """Return up to *count* conflict-free start times at or after the candidate.

    Trial starts advance from ``candidate.interval.start`` in fixed steps
    (15 minutes unless configured otherwise). Each trial keeps the
    candidate's duration and ``exclude_id`` and is re-checked against the
    same bookings and buffer. Fewer than *count* results, or none, simply
    means the horizon ran out.
    """
    if count < 1:
        raise ValueError(f"count must be at least 1, got {count}")
    step = settings.SUGGESTION_STEP_MINUTES if step_minutes is None else step_minutes
    if step < 1:
        raise ValueError(f"step_minutes must be at least 1, got {step}")

    start = candidate.interval.start
    duration = candidate.interval.duration_minutes
    last_start = end_of_day(start) - timedelta(minutes=duration)

    suggestions: list[datetime] = []
    for trial_start in _steps(start, last_start, step):
        # rrule drops sub-second precision from dtstart
        if trial_start < start:
            continue
        trial = CandidateRequest(
            interval=TimeInterval(start=trial_start, duration_minutes=duration),
            exclude_id=candidate.exclude_id,
        )
        if not check_conflict(trial, existing, buffer_minutes).has_conflict:
            suggestions.append(trial_start)
            if len(suggestions) == count:
                break

    logger.debug(
        "Found %d of %d alternatives for %s",
        len(suggestions),
        count,
        start.isoformat(),
    )
    return suggestions


def next_available_slot(
    candidate: CandidateRequest,
    existing: Sequence[ExistingBooking],
    buffer_minutes: int,
) -> datetime | None:
    """Earliest conflict-free start at or after the candidate, if any remains today."""
    found = suggest_alternative_times(candidate, existing, buffer_minutes, count=1)
    return found[0] if found else None


def available_slots(
    day: dt.date,
    existing: Sequence[ExistingBooking],
    buffer_minutes: int,
    duration_minutes: int | None = None,
    opening_hour: int | None = None,
    closing_hour: int | None = None,
    step_minutes: int | None = None,
) -> list[datetime]:
    """List every conflict-free start on *day* whose slot fits inside business hours."""
    duration = (
        settings.DEFAULT_BOOKING_DURATION if duration_minutes is None else duration_minutes
    )
    opening = settings.OPENING_HOUR if opening_hour is None else opening_hour
    closing = settings.CLOSING_HOUR if closing_hour is None else closing_hour
    step = settings.AVAILABILITY_STEP_MINUTES if step_minutes is None else step_minutes
    if duration < 1 or step < 1:
        raise ValueError(
            f"duration and step must be at least 1, got {duration} and {step}"
        )

    day_start = datetime.combine(day, dt.time(hour=opening))
    day_end = datetime.combine(day, dt.time.min) + timedelta(hours=closing)
    last_start = day_end - timedelta(minutes=duration)

    slots = []
    for slot_start in _steps(day_start, last_start, step):
        trial = CandidateRequest(
            interval=TimeInterval(start=slot_start, duration_minutes=duration)
        )
        if not check_conflict(trial, existing, buffer_minutes).has_conflict:
            slots.append(slot_start)
    return slots


def booking_window(interval: TimeInterval, buffer_minutes: int) -> BookingWindow:
    """Span a booking blocks on the calendar once its buffer is added on both sides."""
    buffer = timedelta(minutes=buffer_minutes)
    return BookingWindow(
        booking_start=interval.start,
        booking_end=interval.end,
        window_start=interval.start - buffer,
        window_end=interval.end + buffer,
        total_minutes=interval.duration_minutes + 2 * buffer_minutes,
    )


def is_within_business_hours(
    start: datetime,
    opening_hour: int | None = None,
    closing_hour: int | None = None,
) -> bool:
    opening = settings.OPENING_HOUR if opening_hour is None else opening_hour
    closing = settings.CLOSING_HOUR if closing_hour is None else closing_hour
    return opening <= start.hour < closing
