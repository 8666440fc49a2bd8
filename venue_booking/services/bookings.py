"""Booking workflows built around the conflict engine.

The conflict check runs against a snapshot of the day's bookings taken just
before the write, so two concurrent requests that read the same snapshot can
both pass. The in-memory store is single-process; a database-backed store
must repeat the check inside the transaction that inserts the booking.
"""

from __future__ import annotations

import datetime as dt
import logging
from datetime import datetime, timezone

from venue_booking.config import settings
from venue_booking.domain.bus import EventBus
from venue_booking.domain.events import (
    BookingCreated,
    BookingDeleted,
    BookingStatusChanged,
    BookingUpdated,
)
from venue_booking.domain.models import (
    Availability,
    Booking,
    BookingListResponse,
    BookingStatus,
    BookingType,
    CandidateRequest,
    ConflictCheckResponse,
    CreateBookingRequest,
    DaySchedule,
    NextSlot,
    TimeInterval,
    UpdateBookingRequest,
)
from venue_booking.errors import (
    BookingConflictException,
    InvalidStateException,
    ResourceNotFoundException,
)
from venue_booking.repos.memory import BookingRepository, SettingsRepository
from venue_booking.services.buffer_time import get_buffer_time
from venue_booking.services.conflicts import check_conflict
from venue_booking.services.snapshot import combine_date_time, day_snapshot
from venue_booking.services.suggestions import (
    available_slots,
    booking_window,
    is_within_business_hours,
    next_available_slot,
    suggest_alternative_times,
)

logger = logging.getLogger(__name__)

# Fields whose change moves the booking on the calendar
_SCHEDULE_FIELDS = frozenset({"date", "time", "duration_minutes"})

# Allowed source statuses for each target status
_TRANSITIONS = {
    BookingStatus.APPROVED: {BookingStatus.PENDING},
    BookingStatus.REJECTED: {BookingStatus.PENDING},
    BookingStatus.CANCELLED: {BookingStatus.PENDING, BookingStatus.APPROVED},
    BookingStatus.COMPLETED: {BookingStatus.APPROVED},
}


class BookingService:
    """Create, edit and move bookings through their lifecycle."""

    def __init__(
        self,
        booking_repo: BookingRepository,
        settings_repo: SettingsRepository,
        bus: EventBus,
    ) -> None:
        self.booking_repo = booking_repo
        self.settings_repo = settings_repo
        self.bus = bus

    # ------------------------------------------------------------------
    # Conflict checking
    # ------------------------------------------------------------------

    def check_conflicts(
        self,
        day: dt.date,
        time_of_day: str,
        duration_minutes: int | None = None,
        exclude_booking_id: str | None = None,
    ) -> ConflictCheckResponse:
        """Check a requested slot and, when it conflicts, propose alternatives."""
        buffer_minutes = get_buffer_time(self.settings_repo)
        candidate = CandidateRequest(
            interval=TimeInterval(
                start=combine_date_time(day, time_of_day),
                duration_minutes=duration_minutes or settings.DEFAULT_BOOKING_DURATION,
            ),
            exclude_id=exclude_booking_id,
        )
        existing = day_snapshot(self.booking_repo.list_for_day(day), day)

        conflict = check_conflict(candidate, existing, buffer_minutes)
        suggested: list[datetime] = []
        if conflict.has_conflict:
            suggested = suggest_alternative_times(
                candidate, existing, buffer_minutes, count=settings.SUGGESTION_COUNT
            )
            logger.info(
                "Requested slot %s %s conflicts with booking %s (%s); %d alternative(s)",
                day,
                time_of_day,
                conflict.conflicting_booking_id,
                conflict.conflict_type,
                len(suggested),
            )

        return ConflictCheckResponse(
            conflict=conflict,
            suggested_times=suggested,
            buffer_minutes=buffer_minutes,
            within_business_hours=is_within_business_hours(candidate.interval.start),
        )

    def _ensure_free(
        self,
        day: dt.date,
        time_of_day: str,
        duration_minutes: int | None,
        exclude_booking_id: str | None = None,
    ) -> None:
        result = self.check_conflicts(day, time_of_day, duration_minutes, exclude_booking_id)
        if result.conflict.has_conflict:
            raise BookingConflictException(result.conflict, result.suggested_times)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def get(self, booking_id: str) -> Booking:
        booking = self.booking_repo.get(booking_id)
        if booking is None:
            raise ResourceNotFoundException("Booking", booking_id)
        return booking

    def search(
        self,
        status: BookingStatus | None = None,
        type: BookingType | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> BookingListResponse:
        matches = self.booking_repo.search(status=status, type=type, text=search)
        return BookingListResponse(
            bookings=matches[offset : offset + limit], total=len(matches)
        )

    def create(self, payload: CreateBookingRequest) -> Booking:
        self._ensure_free(payload.date, payload.time, payload.duration_minutes)

        booking = Booking(**payload.model_dump())
        self.booking_repo.add(booking)
        self.bus.publish(BookingCreated(booking_id=booking.id))
        return booking

    def update(self, booking_id: str, payload: UpdateBookingRequest) -> Booking:
        booking = self.get(booking_id)
        changes = payload.model_dump(exclude_unset=True)

        if _SCHEDULE_FIELDS & changes.keys():
            self._ensure_free(
                changes.get("date", booking.date),
                changes.get("time", booking.time),
                changes.get("duration_minutes", booking.duration_minutes),
                exclude_booking_id=booking.id,
            )

        for field, value in changes.items():
            setattr(booking, field, value)
        booking.updated_at = datetime.now(timezone.utc)

        self.bus.publish(
            BookingUpdated(
                booking_id=booking.id,
                changes=payload.model_dump(mode="json", exclude_unset=True),
            )
        )
        return booking

    def delete(self, booking_id: str) -> None:
        booking = self.get(booking_id)
        self.booking_repo.delete(booking_id)
        self.bus.publish(BookingDeleted(booking_id=booking.id, title=booking.title))

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def approve(self, booking_id: str, admin_notes: str | None = None) -> Booking:
        booking = self._transition(booking_id, BookingStatus.APPROVED, note=admin_notes)
        if admin_notes is not None:
            booking.admin_notes = admin_notes
        return booking

    def reject(self, booking_id: str, reason: str) -> Booking:
        booking = self._transition(booking_id, BookingStatus.REJECTED, note=reason)
        booking.rejection_reason = reason
        return booking

    def cancel(self, booking_id: str) -> Booking:
        return self._transition(booking_id, BookingStatus.CANCELLED)

    def complete(self, booking_id: str) -> Booking:
        return self._transition(booking_id, BookingStatus.COMPLETED)

    def _transition(
        self, booking_id: str, target: BookingStatus, note: str | None = None
    ) -> Booking:
        booking = self.get(booking_id)
        if booking.status not in _TRANSITIONS[target]:
            raise InvalidStateException(
                f"Cannot mark a {booking.status.value.lower()} booking as {target.value.lower()}",
                details={"status": booking.status.value, "target": target.value},
            )

        previous = booking.status
        booking.status = target
        booking.updated_at = datetime.now(timezone.utc)
        self.bus.publish(
            BookingStatusChanged(
                booking_id=booking.id, previous=previous, current=target, note=note
            )
        )
        return booking

    # ------------------------------------------------------------------
    # Day views
    # ------------------------------------------------------------------

    def bookings_for_day(self, day: dt.date) -> DaySchedule:
        buffer_minutes = get_buffer_time(self.settings_repo)
        existing = day_snapshot(self.booking_repo.list_for_day(day), day)
        return DaySchedule(
            date=day,
            bookings=existing,
            buffer_minutes=buffer_minutes,
            windows=[booking_window(b.interval, buffer_minutes) for b in existing],
        )

    def availability(self, day: dt.date, duration_minutes: int | None = None) -> Availability:
        buffer_minutes = get_buffer_time(self.settings_repo)
        duration = duration_minutes or settings.DEFAULT_BOOKING_DURATION
        existing = day_snapshot(self.booking_repo.list_for_day(day), day)
        return Availability(
            date=day,
            duration_minutes=duration,
            buffer_minutes=buffer_minutes,
            slots=available_slots(day, existing, buffer_minutes, duration_minutes=duration),
        )

    def next_slot(
        self, day: dt.date, time_of_day: str, duration_minutes: int | None = None
    ) -> NextSlot:
        """First free start at or after the requested time, later that day."""
        buffer_minutes = get_buffer_time(self.settings_repo)
        candidate = CandidateRequest(
            interval=TimeInterval(
                start=combine_date_time(day, time_of_day),
                duration_minutes=duration_minutes or settings.DEFAULT_BOOKING_DURATION,
            )
        )
        existing = day_snapshot(self.booking_repo.list_for_day(day), day)
        return NextSlot(
            requested=candidate.interval.start,
            next_available=next_available_slot(candidate, existing, buffer_minutes),
            buffer_minutes=buffer_minutes,
        )
