"""Service for reading and writing the scheduling buffer-time setting."""

from __future__ import annotations

import logging

from venue_booking.config import settings
from venue_booking.domain.bus import EventBus
from venue_booking.domain.events import BufferTimeChanged
from venue_booking.errors import ValidationException
from venue_booking.repos.memory import SettingsRepository

logger = logging.getLogger(__name__)

BUFFER_TIME_KEY = "scheduling.bufferTime"


def get_buffer_time(settings_repo: SettingsRepository) -> int:
    """Return the stored buffer in minutes, or the configured default when unset."""
    setting = settings_repo.get(BUFFER_TIME_KEY)
    if setting is None:
        return settings.DEFAULT_BUFFER_MINUTES

    minutes = setting.value.get("minutes")
    if not isinstance(minutes, int) or isinstance(minutes, bool):
        logger.warning("Ignoring malformed %s value %r", BUFFER_TIME_KEY, setting.value)
        return settings.DEFAULT_BUFFER_MINUTES
    return minutes


def update_buffer_time(
    minutes: int, settings_repo: SettingsRepository, bus: EventBus
) -> int:
    """Store a new buffer after checking it lies within ``[0, MAX_BUFFER_MINUTES]``."""
    if minutes < 0 or minutes > settings.MAX_BUFFER_MINUTES:
        raise ValidationException(
            f"Buffer time must be between 0 and {settings.MAX_BUFFER_MINUTES} minutes",
            field="minutes",
        )

    previous = get_buffer_time(settings_repo)
    settings_repo.upsert(BUFFER_TIME_KEY, {"minutes": minutes}, category="scheduling")
    bus.publish(BufferTimeChanged(previous_minutes=previous, minutes=minutes))
    return minutes
