import logging
import os
import sys
from datetime import datetime, timezone

logger = logging.getLogger("pos-recovery")


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach an app-managed stdout handler to the package logger.

    Set DISABLE_APP_LOGGING=true to leave handler configuration to the host
    (systemd, a supervisor, a test runner) instead.
    """
    logger.setLevel(level.upper())

    if os.getenv("DISABLE_APP_LOGGING", "false").lower() == "true":
        logger.handlers.clear()
        logger.propagate = True
        return logger

    logger.propagate = False
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - [%(name)s] - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    logger.addHandler(console_handler)
    return logger


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by pymongo) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
