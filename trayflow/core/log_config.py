"""Logging setup for the service process."""

import logging

from trayflow.core.config import Settings, settings as default_settings


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured level and format to the root logger.

    Args:
        settings: Settings to read; defaults to the process settings.
    """
    settings = settings or default_settings
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, format=settings.LOG_FORMAT)
    logging.getLogger("trayflow").setLevel(level)
    if not settings.SQL_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
