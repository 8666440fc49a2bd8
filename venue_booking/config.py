"""Environment-driven configuration for the booking service."""

from __future__ import annotations

from decouple import config


class Config:
    """Scheduling defaults, overridable through the environment or a .env file."""

    # Buffer time used when the settings store has no value
    DEFAULT_BUFFER_MINUTES = config("DEFAULT_BUFFER_MINUTES", default=45, cast=int)
    MAX_BUFFER_MINUTES = config("MAX_BUFFER_MINUTES", default=180, cast=int)

    # Bookings recorded without an explicit duration
    DEFAULT_BOOKING_DURATION = config("DEFAULT_BOOKING_DURATION", default=120, cast=int)

    # Alternative-time search
    SUGGESTION_COUNT = config("SUGGESTION_COUNT", default=3, cast=int)
    SUGGESTION_STEP_MINUTES = config("SUGGESTION_STEP_MINUTES", default=15, cast=int)

    # Business hours used by the availability grid
    OPENING_HOUR = config("OPENING_HOUR", default=9, cast=int)
    CLOSING_HOUR = config("CLOSING_HOUR", default=20, cast=int)
    AVAILABILITY_STEP_MINUTES = config("AVAILABILITY_STEP_MINUTES", default=30, cast=int)

    LOG_LEVEL = config("LOG_LEVEL", default="INFO")


settings = Config()
