"""Service for detecting scheduling conflicts between bookings."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta

from venue_booking.domain.models import (
    CandidateRequest,
    ConflictResult,
    ConflictType,
    ExistingBooking,
    TimeInterval,
)

logger = logging.getLogger(__name__)

NO_CONFLICT = ConflictResult()


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test: touching endpoints are NOT a conflict."""
    return a_start < b_end and a_end > b_start


def _classify(candidate: TimeInterval, other: TimeInterval) -> ConflictType:
    if overlaps(candidate.start, candidate.end, other.start, other.end):
        return ConflictType.OVERLAP
    if candidate.end <= other.start:
        return ConflictType.BUFFER_BEFORE
    return ConflictType.BUFFER_AFTER


def format_time(value: datetime) -> str:
    """Render a clock time the way customers read it, e.g. ``2:00 PM``."""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def describe_conflict(
    conflict_type: ConflictType, other: ExistingBooking, buffer_minutes: int
) -> str:
    """Build the default human-readable message for a detected conflict."""
    label = f'"{other.title}" ' if other.title else ""
    start = format_time(other.interval.start)
    end = format_time(other.interval.end)

    if conflict_type == ConflictType.OVERLAP:
        return f"This time slot overlaps an existing booking {label}from {start} to {end}."
    if conflict_type == ConflictType.BUFFER_BEFORE:
        return (
            f"This booking ends too close to an existing booking {label}starting at {start}. "
            f"Please allow at least {buffer_minutes} minutes between bookings."
        )
    return (
        f"This booking starts too soon after an existing booking {label}ending at {end}. "
        f"Please allow at least {buffer_minutes} minutes between bookings."
    )


def check_conflict(
    candidate: CandidateRequest,
    existing: Sequence[ExistingBooking],
    buffer_minutes: int,
) -> ConflictResult:
    """Decide whether *candidate* collides with any booking in *existing*.

    Every existing booking blocks ``buffer_minutes`` on both sides of its own
    interval. The candidate conflicts when it overlaps that buffered span; a
    candidate that starts exactly where a buffer ends does not. When several
    bookings conflict, the first one in input order is reported.

    The booking whose id equals ``candidate.exclude_id`` is ignored, so an
    update can be checked against every *other* booking.
    """
    if buffer_minutes < 0:
        raise ValueError(f"buffer_minutes must be non-negative, got {buffer_minutes}")

    interval = candidate.interval
    buffer = timedelta(minutes=buffer_minutes)

    for other in existing:
        if candidate.exclude_id is not None and other.id == candidate.exclude_id:
            continue

        blocked_start = other.interval.start - buffer
        blocked_end = other.interval.end + buffer
        if not overlaps(interval.start, interval.end, blocked_start, blocked_end):
            continue

        conflict_type = _classify(interval, other.interval)
        logger.debug(
            "Slot %s (%d min) conflicts with booking %s: %s",
            interval.start.isoformat(),
            interval.duration_minutes,
            other.id,
            conflict_type,
        )
        return ConflictResult(
            has_conflict=True,
            conflict_type=conflict_type,
            conflicting_booking_id=other.id,
            message=describe_conflict(conflict_type, other, buffer_minutes),
        )

    return NO_CONFLICT

