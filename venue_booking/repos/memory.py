"""In-memory repositories for bookings, settings, audit entries and notifications."""

from __future__ import annotations

import datetime as dt
from datetime import datetime, timezone

from venue_booking.domain.models import (
    AuditEntry,
    Booking,
    BookingStatus,
    BookingType,
    Notification,
    Setting,
)


class BookingRepository:
    """Dict-backed store for Booking instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Booking] = {}

    def add(self, booking: Booking) -> None:
        self._store[booking.id] = booking

    def get(self, booking_id: str) -> Booking | None:
        return self._store.get(booking_id)

    def list_all(self) -> list[Booking]:
        return list(self._store.values())

    def list_for_day(self, day: dt.date) -> list[Booking]:
        return [b for b in self._store.values() if b.date == day]

    def search(
        self,
        status: BookingStatus | None = None,
        type: BookingType | None = None,
        text: str | None = None,
    ) -> list[Booking]:
        """Filter bookings, newest first. *text* matches email, title or phone."""
        needle = text.lower() if text else None
        matches = [
            b
            for b in self._store.values()
            if (status is None or b.status == status)
            and (type is None or b.type == type)
            and (
                needle is None
                or needle in b.email.lower()
                or needle in b.title.lower()
                or needle in b.phone
            )
        ]
        return sorted(matches, key=lambda b: b.created_at, reverse=True)

    def delete(self, booking_id: str) -> None:
        self._store.pop(booking_id, None)


class SettingsRepository:
    """Key-value store for site settings."""

    def __init__(self) -> None:
        self._store: dict[str, Setting] = {}

    def get(self, key: str) -> Setting | None:
        return self._store.get(key)

    def upsert(self, key: str, value: dict, category: str = "general") -> Setting:
        setting = self._store.get(key)
        if setting is None:
            setting = Setting(key=key, value=value, category=category)
            self._store[key] = setting
        else:
            setting.value = value
            setting.updated_at = datetime.now(timezone.utc)
        return setting


class AuditLogRepository:
    """Append-only list of AuditEntry records."""

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []

    def add(self, entry: AuditEntry) -> None:
        self._entries.append(entry)

    def list_all(self, entity: str | None = None) -> list[AuditEntry]:
        entries = [e for e in self._entries if entity is None or e.entity == entity]
        return sorted(entries, key=lambda e: e.timestamp)

    def list_for_entity(self, entity: str, entity_id: str) -> list[AuditEntry]:
        return [
            e for e in self.list_all(entity) if e.entity_id == entity_id
        ]


class NotificationRepository:
    """List-backed outbox of Notification records."""

    def __init__(self) -> None:
        self._items: list[Notification] = []

    def add(self, notification: Notification) -> None:
        self._items.append(notification)

    def list_for_recipient(self, recipient: str) -> list[Notification]:
        return [n for n in self._items if n.recipient == recipient]

    def list_for_booking(self, booking_id: str) -> list[Notification]:
        return [n for n in self._items if n.booking_id == booking_id]

    def list_all(self) -> list[Notification]:
        return list(self._items)
