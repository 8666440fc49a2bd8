"""FastAPI application: entry point for the venue booking service."""

from __future__ import annotations

import datetime as dt
import logging

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from venue_booking.domain.bus import EventBus
from venue_booking.domain.handlers import HandlerRegistry
from venue_booking.domain.models import (
    ApproveBookingRequest,
    AuditEntry,
    Availability,
    Booking,
    BookingListResponse,
    BookingStatus,
    BookingType,
    BufferTimeRequest,
    BufferTimeResponse,
    ConflictCheckRequest,
    ConflictCheckResponse,
    CreateBookingRequest,
    DaySchedule,
    NextSlot,
    Notification,
    RejectBookingRequest,
    UpdateBookingRequest,
)
from venue_booking.errors import AppException
from venue_booking.logging_setup import setup_logging
from venue_booking.repos.memory import (
    AuditLogRepository,
    BookingRepository,
    NotificationRepository,
    SettingsRepository,
)
from venue_booking.services.bookings import BookingService
from venue_booking.services.buffer_time import get_buffer_time, update_buffer_time

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Venue Booking Service")

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
booking_repo = BookingRepository()
settings_repo = SettingsRepository()
audit_repo = AuditLogRepository()
notification_repo = NotificationRepository()

handler_registry = HandlerRegistry(
    bus=event_bus,
    booking_repo=booking_repo,
    audit_repo=audit_repo,
    notification_repo=notification_repo,
)
booking_service = BookingService(
    booking_repo=booking_repo,
    settings_repo=settings_repo,
    bus=event_bus,
)


@app.exception_handler(AppException)
async def handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning(
            "%s %s rejected (%d): %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ── Routes ────────────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/bookings/check-conflicts", response_model=ConflictCheckResponse)
def check_conflicts(payload: ConflictCheckRequest) -> ConflictCheckResponse:
    """Report whether a slot is free and, if not, up to three alternatives."""
    return booking_service.check_conflicts(
        payload.date,
        payload.time,
        payload.duration_minutes,
        payload.exclude_booking_id,
    )


@app.post("/bookings", response_model=Booking, status_code=201)
def create_booking(payload: CreateBookingRequest) -> Booking:
    """Create a pending booking; 409 with alternatives when the slot is taken."""
    return booking_service.create(payload)


@app.get("/bookings", response_model=BookingListResponse)
def list_bookings(
    status: BookingStatus | None = None,
    type: BookingType | None = None,
    search: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> BookingListResponse:
    return booking_service.search(
        status=status, type=type, search=search, limit=limit, offset=offset
    )


@app.get("/bookings/{booking_id}", response_model=Booking)
def get_booking(booking_id: str) -> Booking:
    return booking_service.get(booking_id)


@app.patch("/bookings/{booking_id}", response_model=Booking)
def update_booking(booking_id: str, payload: UpdateBookingRequest) -> Booking:
    """Edit a booking, re-checking the calendar when it moves."""
    return booking_service.update(booking_id, payload)


@app.delete("/bookings/{booking_id}")
def delete_booking(booking_id: str) -> dict:
    booking_service.delete(booking_id)
    return {"status": "deleted"}


@app.post("/bookings/{booking_id}/approve", response_model=Booking)
def approve_booking(booking_id: str, body: ApproveBookingRequest | None = None) -> Booking:
    return booking_service.approve(booking_id, body.admin_notes if body else None)


@app.post("/bookings/{booking_id}/reject", response_model=Booking)
def reject_booking(booking_id: str, body: RejectBookingRequest) -> Booking:
    return booking_service.reject(booking_id, body.reason)


@app.post("/bookings/{booking_id}/cancel", response_model=Booking)
def cancel_booking(booking_id: str) -> Booking:
    return booking_service.cancel(booking_id)


@app.post("/bookings/{booking_id}/complete", response_model=Booking)
def complete_booking(booking_id: str) -> Booking:
    return booking_service.complete(booking_id)


@app.get("/schedule/{day}", response_model=DaySchedule)
def day_schedule(day: dt.date) -> DaySchedule:
    """Active bookings for one day, with the buffer that surrounds each."""
    return booking_service.bookings_for_day(day)


@app.get("/availability/{day}", response_model=Availability)
def availability(
    day: dt.date, duration_minutes: int | None = Query(default=None, ge=1)
) -> Availability:
    """Free start times within business hours for a booking of the given length."""
    return booking_service.availability(day, duration_minutes)


@app.get("/availability/{day}/next", response_model=NextSlot)
def next_slot(
    day: dt.date,
    time: str = Query(pattern=r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"),
    duration_minutes: int | None = Query(default=None, ge=1),
) -> NextSlot:
    return booking_service.next_slot(day, time, duration_minutes)


@app.get("/settings/buffer-time", response_model=BufferTimeResponse)
def read_buffer_time() -> BufferTimeResponse:
    return BufferTimeResponse(minutes=get_buffer_time(settings_repo))


@app.put("/settings/buffer-time", response_model=BufferTimeResponse)
def write_buffer_time(payload: BufferTimeRequest) -> BufferTimeResponse:
    minutes = update_buffer_time(payload.minutes, settings_repo, event_bus)
    return BufferTimeResponse(minutes=minutes)


@app.get("/audit", response_model=list[AuditEntry])
def list_audit_entries(entity: str | None = None) -> list[AuditEntry]:
    return audit_repo.list_all(entity)


@app.get("/notifications", response_model=list[Notification])
def list_notifications(recipient: str | None = None) -> list[Notification]:
    if recipient:
        return notification_repo.list_for_recipient(recipient)
    return notification_repo.list_all()
