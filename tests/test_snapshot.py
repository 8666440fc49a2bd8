"""Tests for building the same-day booking snapshot."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from venue_booking.domain.models import Booking, BookingStatus, BookingType
from venue_booking.errors import ValidationException
from venue_booking.services.snapshot import (
    booking_interval,
    combine_date_time,
    day_snapshot,
)

_DAY = date(2026, 3, 14)


def _make_booking(**overrides) -> Booking:
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
    return Booking(**defaults)


def test_combine_date_time():
    assert combine_date_time(_DAY, "09:05") == datetime(2026, 3, 14, 9, 5)
    assert combine_date_time(_DAY, "7:30") == datetime(2026, 3, 14, 7, 30)


@pytest.mark.parametrize("raw", ["25:00", "noon", "10:00:00", "", None])
def test_combine_date_time_rejects_malformed(raw):
    with pytest.raises(ValidationException) as excinfo:
        combine_date_time(_DAY, raw)
    assert excinfo.value.details == {"field": "time"}


def test_missing_duration_falls_back_to_default():
    interval = booking_interval(_make_booking())
    assert interval.duration_minutes == 120
    assert interval.end == datetime(2026, 3, 14, 12, 0)


def test_explicit_duration_is_used():
    interval = booking_interval(_make_booking(duration_minutes=45))
    assert interval.end == datetime(2026, 3, 14, 10, 45)


def test_snapshot_keeps_active_bookings_for_the_day_only():
    pending = _make_booking(time="14:00")
    approved = _make_booking(time="09:00", status=BookingStatus.APPROVED)
    completed = _make_booking(time="11:00", status=BookingStatus.COMPLETED)
    cancelled = _make_booking(time="12:00", status=BookingStatus.CANCELLED)
    rejected = _make_booking(time="16:00", status=BookingStatus.REJECTED)
    other_day = _make_booking(date=date(2026, 3, 15))

    snapshot = day_snapshot(
        [pending, approved, completed, cancelled, rejected, other_day], _DAY
    )

    assert [b.id for b in snapshot] == [approved.id, completed.id, pending.id]
    assert snapshot[0].title == "Birthday party"
    assert snapshot[0].interval.start == datetime(2026, 3, 14, 9, 0)
