"""Domain event handlers, wired up at application startup."""

from __future__ import annotations

import logging

from venue_booking.domain.bus import EventBus
from venue_booking.domain.events import (
    BookingCreated,
    BookingDeleted,
    BookingStatusChanged,
    BookingUpdated,
    BufferTimeChanged,
)
from venue_booking.domain.models import (
    AuditAction,
    AuditEntry,
    BookingStatus,
    Notification,
)
from venue_booking.repos.memory import (
    AuditLogRepository,
    BookingRepository,
    NotificationRepository,
)
from venue_booking.services.buffer_time import BUFFER_TIME_KEY

logger = logging.getLogger(__name__)

ADMINS_RECIPIENT = "admins"

_STATUS_ACTIONS = {
    BookingStatus.APPROVED: AuditAction.APPROVE,
    BookingStatus.REJECTED: AuditAction.REJECT,
    BookingStatus.CANCELLED: AuditAction.CANCEL,
    BookingStatus.COMPLETED: AuditAction.COMPLETE,
}


class HandlerRegistry:
    """Wires domain-event handlers to the bus with access to the repositories."""

    def __init__(
        self,
        bus: EventBus,
        booking_repo: BookingRepository,
        audit_repo: AuditLogRepository,
        notification_repo: NotificationRepository,
    ) -> None:
        self.bus = bus
        self.booking_repo = booking_repo
        self.audit_repo = audit_repo
        self.notification_repo = notification_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(BookingCreated, self.on_booking_created)
        self.bus.subscribe(BookingUpdated, self.on_booking_updated)
        self.bus.subscribe(BookingStatusChanged, self.on_status_changed)
        self.bus.subscribe(BookingDeleted, self.on_booking_deleted)
        self.bus.subscribe(BufferTimeChanged, self.on_buffer_time_changed)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_booking_created(self, event: BookingCreated) -> None:
        stored = self.booking_repo.get(event.booking_id)
        if stored is None:
            return

        # 1. Audit
        self.audit_repo.add(
            AuditEntry(
                action=AuditAction.CREATE,
                entity="Booking",
                entity_id=stored.id,
                changes={
                    "title": stored.title,
                    "date": stored.date.isoformat(),
                    "time": stored.time,
                },
            )
        )

        # 2. Tell the admins a booking is waiting for review
        self.notification_repo.add(
            Notification(
                recipient=ADMINS_RECIPIENT,
                kind="NEW_BOOKING",
                title="New Booking Received",
                message=f"{stored.title} - {stored.type} on {stored.date.isoformat()} at {stored.time}",
                booking_id=stored.id,
            )
        )
        logger.info("Booking %s created for %s %s", stored.id, stored.date, stored.time)

    def on_booking_updated(self, event: BookingUpdated) -> None:
        self.audit_repo.add(
            AuditEntry(
                action=AuditAction.UPDATE,
                entity="Booking",
                entity_id=event.booking_id,
                changes=event.changes,
            )
        )

    def on_status_changed(self, event: BookingStatusChanged) -> None:
        stored = self.booking_repo.get(event.booking_id)
        if stored is None:
            return

        changes: dict = {"status": event.current.value}
        if event.note:
            changes["note"] = event.note
        self.audit_repo.add(
            AuditEntry(
                action=_STATUS_ACTIONS.get(event.current, AuditAction.UPDATE),
                entity="Booking",
                entity_id=stored.id,
                changes=changes,
            )
        )

        if event.current == BookingStatus.APPROVED:
            self.notification_repo.add(
                Notification(
                    recipient=stored.email,
                    kind="BOOKING_APPROVED",
                    title="Booking Approved",
                    message=f'Your booking "{stored.title}" has been approved!',
                    booking_id=stored.id,
                )
            )
        elif event.current == BookingStatus.REJECTED:
            self.notification_repo.add(
                Notification(
                    recipient=stored.email,
                    kind="BOOKING_REJECTED",
                    title="Booking Rejected",
                    message=f'Your booking "{stored.title}" has been rejected. Reason: {event.note}',
                    booking_id=stored.id,
                )
            )
        logger.info(
            "Booking %s moved from %s to %s", stored.id, event.previous, event.current
        )

    def on_booking_deleted(self, event: BookingDeleted) -> None:
        self.audit_repo.add(
            AuditEntry(
                action=AuditAction.DELETE,
                entity="Booking",
                entity_id=event.booking_id,
                changes={"title": event.title},
            )
        )

    def on_buffer_time_changed(self, event: BufferTimeChanged) -> None:
        self.audit_repo.add(
            AuditEntry(
                action=AuditAction.UPDATE,
                entity="Settings",
                entity_id=BUFFER_TIME_KEY,
                changes={"minutes": event.minutes, "previous": event.previous_minutes},
            )
        )
        logger.info(
            "Buffer time changed from %d to %d minutes",
            event.previous_minutes,
            event.minutes,
        )
