"""Application logging configuration."""

from __future__ import annotations

import logging

from venue_booking.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> logging.Logger:
    """Attach a console handler to the package logger and return it.

    Calling it again only adjusts the level, so importing the app twice
    (e.g. under test reloads) does not duplicate output.
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    logger = logging.getLogger("venue_booking")
    logger.setLevel(log_level)

    if not any(getattr(h, "_venue_booking", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._venue_booking = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(log_level)

    return logger
