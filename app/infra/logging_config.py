"""Process-wide logging setup and named logger accessor."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from app.config import get_settings

LOGGER_NAME = "switchboard"
LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


class LoggingConfig:
    """Configure the root application logger once; later instances are no-ops."""

    _configured = False

    def __init__(self, level: Optional[str] = None) -> None:
        if LoggingConfig._configured:
            return
        settings = get_settings()
        log_level = (level or settings.log_level or "INFO").upper()

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

        root = logging.getLogger(LOGGER_NAME)
        root.setLevel(log_level)
        root.addHandler(handler)
        root.propagate = True

        # Quiet chatty third-party loggers unless debugging.
        if log_level != "DEBUG":
            logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
            logging.getLogger("urllib3").setLevel(logging.WARNING)
            logging.getLogger("httpx").setLevel(logging.WARNING)

        LoggingConfig._configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a child of the application logger, e.g. get_logger("importer")."""
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
