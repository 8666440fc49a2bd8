"""Tests for the booking lifecycle: service, bus handlers and the audit trail."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from venue_booking.domain.bus import EventBus
from venue_booking.domain.events import BookingCreated, BookingStatusChanged
from venue_booking.domain.handlers import ADMINS_RECIPIENT, HandlerRegistry
from venue_booking.domain.models import (
    AuditAction,
    Booking,
    BookingStatus,
    BookingType,
    ConflictType,
    CreateBookingRequest,
    UpdateBookingRequest,
)
from venue_booking.errors import (
    BookingConflictException,
    InvalidStateException,
    ResourceNotFoundException,
)
from venue_booking.repos.memory import (
    AuditLogRepository,
    BookingRepository,
    NotificationRepository,
    SettingsRepository,
)
from venue_booking.services.bookings import BookingService
from venue_booking.services.buffer_time import update_buffer_time

_DAY = date(2026, 3, 14)


@pytest.fixture()
def env():
    """Fresh bus + repos + registry + service for each test."""
    bus = EventBus()
    booking_repo = BookingRepository()
    settings_repo = SettingsRepository()
    audit_repo = AuditLogRepository()
    notification_repo = NotificationRepository()

    registry = HandlerRegistry(
        bus=bus,
        booking_repo=booking_repo,
        audit_repo=audit_repo,
        notification_repo=notification_repo,
    )
    service = BookingService(
        booking_repo=booking_repo, settings_repo=settings_repo, bus=bus
    )

    class Env:
        pass

    e = Env()
    e.bus = bus
    e.booking_repo = booking_repo
    e.settings_repo = settings_repo
    e.audit_repo = audit_repo
    e.notification_repo = notification_repo
    e.registry = registry
    e.service = service
    return e


def _request(**overrides) -> CreateBookingRequest:
    defaults = dict(
        title="Birthday party",
        type=BookingType.PARTY,
        date=_DAY,
        time="10:00",
        guest_count=12,
        phone="5551234567",
        email="ana@example.com",
    )
    defaults.update(overrides)
    return CreateBookingRequest(**defaults)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def test_create_stores_pending_booking_and_audits(env):
    booking = env.service.create(_request())

    assert env.booking_repo.get(booking.id) is booking
    assert booking.status == BookingStatus.PENDING

    entries = env.audit_repo.list_for_entity("Booking", booking.id)
    assert [e.action for e in entries] == [AuditAction.CREATE]
    assert entries[0].changes["time"] == "10:00"


def test_create_notifies_admins(env):
    booking = env.service.create(_request())

    notes = env.notification_repo.list_for_recipient(ADMINS_RECIPIENT)
    assert len(notes) == 1
    assert notes[0].kind == "NEW_BOOKING"
    assert notes[0].booking_id == booking.id
    assert "Birthday party" in notes[0].message


def test_conflicting_create_is_rejected_with_alternatives(env):
    first = env.service.create(_request())

    with pytest.raises(BookingConflictException) as excinfo:
        env.service.create(_request(title="Team lunch", time="12:00", duration_minutes=60))

    err = excinfo.value
    assert err.conflict.conflict_type == ConflictType.BUFFER_AFTER
    assert err.conflict.conflicting_booking_id == first.id
    assert err.suggested_times == [
        datetime(2026, 3, 14, 12, 45),
        datetime(2026, 3, 14, 13, 0),
        datetime(2026, 3, 14, 13, 15),
    ]
    assert len(env.booking_repo.list_all()) == 1


def test_buffer_setting_changes_outcome(env):
    env.service.create(_request())
    update_buffer_time(0, env.settings_repo, env.bus)

    second = env.service.create(_request(title="Team lunch", time="12:00"))
    assert second.status == BookingStatus.PENDING

    settings_entries = env.audit_repo.list_all("Settings")
    assert settings_entries[0].changes == {"minutes": 0, "previous": 45}


def test_cancelled_bookings_free_the_slot(env):
    first = env.service.create(_request())
    env.service.cancel(first.id)

    again = env.service.create(_request(title="Second party"))
    assert again.id != first.id


def test_check_conflicts_without_conflict_skips_suggestions(env):
    env.service.create(_request())

    result = env.service.check_conflicts(_DAY, "12:45", 60)
    assert result.conflict.has_conflict is False
    assert result.suggested_times == []
    assert result.buffer_minutes == 45


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------


def test_moving_a_booking_ignores_itself(env):
    booking = env.service.create(_request())

    moved = env.service.update(booking.id, UpdateBookingRequest(time="10:30"))
    assert moved.time == "10:30"

    entries = env.audit_repo.list_for_entity("Booking", booking.id)
    assert entries[-1].action == AuditAction.UPDATE
    assert entries[-1].changes == {"time": "10:30"}


def test_moving_into_another_booking_is_rejected(env):
    env.service.create(_request())
    other = env.service.create(_request(title="Evening event", time="16:00"))

    with pytest.raises(BookingConflictException) as excinfo:
        env.service.update(other.id, UpdateBookingRequest(time="11:00"))

    assert excinfo.value.conflict.conflict_type == ConflictType.OVERLAP
    assert env.booking_repo.get(other.id).time == "16:00"


def test_non_schedule_edit_skips_conflict_check(env):
    booking = env.service.create(_request())
    # Added straight to the repo so it skips the create-time check
    env.booking_repo.add(Booking(**_request(title="Overlapping", time="10:30").model_dump()))

    updated = env.service.update(booking.id, UpdateBookingRequest(guest_count=20))
    assert updated.guest_count == 20


def test_update_missing_booking(env):
    with pytest.raises(ResourceNotFoundException):
        env.service.update("nope", UpdateBookingRequest(title="Renamed"))


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------


def test_approve_notifies_customer(env):
    booking = env.service.create(_request())
    env.service.approve(booking.id, admin_notes="Deposit received")

    assert booking.status == BookingStatus.APPROVED
    assert booking.admin_notes == "Deposit received"

    notes = env.notification_repo.list_for_recipient("ana@example.com")
    assert [n.kind for n in notes] == ["BOOKING_APPROVED"]

    actions = [e.action for e in env.audit_repo.list_for_entity("Booking", booking.id)]
    assert actions == [AuditAction.CREATE, AuditAction.APPROVE]


def test_reject_records_reason(env):
    booking = env.service.create(_request())
    env.service.reject(booking.id, "Venue closed for maintenance")

    assert booking.status == BookingStatus.REJECTED
    assert booking.rejection_reason == "Venue closed for maintenance"

    notes = env.notification_repo.list_for_booking(booking.id)
    assert notes[-1].kind == "BOOKING_REJECTED"
    assert "Venue closed for maintenance" in notes[-1].message


def test_complete_requires_approval(env):
    booking = env.service.create(_request())

    with pytest.raises(InvalidStateException):
        env.service.complete(booking.id)

    env.service.approve(booking.id)
    env.service.complete(booking.id)
    assert booking.status == BookingStatus.COMPLETED


@pytest.mark.parametrize("terminal", ["reject", "cancel"])
def test_terminal_bookings_cannot_be_approved(env, terminal):
    booking = env.service.create(_request())
    if terminal == "reject":
        env.service.reject(booking.id, "Fully booked that weekend")
    else:
        env.service.cancel(booking.id)

    with pytest.raises(InvalidStateException):
        env.service.approve(booking.id)
    with pytest.raises(InvalidStateException):
        env.service.cancel(booking.id)


def test_delete_audits_and_removes(env):
    booking = env.service.create(_request())
    env.service.delete(booking.id)

    assert env.booking_repo.get(booking.id) is None
    entries = env.audit_repo.list_for_entity("Booking", booking.id)
    assert entries[-1].action == AuditAction.DELETE
    assert entries[-1].changes == {"title": "Birthday party"}

    with pytest.raises(ResourceNotFoundException):
        env.service.delete(booking.id)


# ---------------------------------------------------------------------------
# Handlers on their own
# ---------------------------------------------------------------------------


def test_handlers_ignore_unknown_bookings(env):
    env.bus.publish(BookingCreated(booking_id="ghost"))
    env.bus.publish(
        BookingStatusChanged(
            booking_id="ghost",
            previous=BookingStatus.PENDING,
            current=BookingStatus.APPROVED,
        )
    )

    assert env.audit_repo.list_all() == []
    assert env.notification_repo.list_all() == []
