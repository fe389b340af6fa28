"""Apply logging settings to the ``apistub`` logger hierarchy."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from apistub.config.exceptions import ConfigError
from apistub.config.models import LoggingSettings

LOGGER_NAME = "apistub"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Optional[LoggingSettings] = None) -> logging.Logger:
    """Configure the package logger from ``settings``.

    Handlers installed by a previous call are replaced, so repeated calls do
    not duplicate output.

    Args:
        settings: Logging configuration; defaults apply when omitted.

    Returns:
        logging.Logger: The configured ``apistub`` logger.

    Raises:
        ConfigError: If the level is unknown or the log file cannot be opened.
    """
    settings = settings or LoggingSettings()
    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown logging level: {settings.level}")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in [h for h in logger.handlers if getattr(h, "_apistub", False)]:
        logger.removeHandler(handler)
        handler.close()

    if settings.file:
        path = Path(settings.file).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                path,
                maxBytes=settings.max_size_mb * 1024 * 1024,
                backupCount=settings.backup_count,
                encoding="utf-8",
            )
        except OSError as exc:
            raise ConfigError(f"Unable to open log file {path}: {exc}") from exc
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._apistub = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger


__all__ = ["configure_logging", "LOGGER_NAME", "LOG_FORMAT"]
