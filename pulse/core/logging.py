"""Logging setup for the Pulse entry points.

Development runs log human-readable lines; production runs log one JSON
object per record. Every record carries the name of the entry point that
configured logging (API server or CLI) in its `service` attribute.
"""
import logging
import logging.config
import sys
from typing import Any, Dict, Optional

from .settings import get_settings

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
JSON_FORMAT = "%(asctime)s %(levelname)s %(service)s %(name)s %(message)s"
CONSOLE_FORMAT = "%(asctime)s [%(service)s] [%(levelname)s] %(name)s: %(message)s"

# Collaborator libraries are noisy at INFO
LIBRARY_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.access": "WARNING",
    "httpx": "WARNING",
    "openai": "WARNING",
    "apscheduler": "WARNING",
    "sqlalchemy.engine": "WARNING",
}


class ServiceFilter(logging.Filter):
    """Stamp records with the service name."""

    def __init__(self, service_name: str = "pulse"):
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "service"):
            record.service = self.service_name
        return True


def get_logging_config(service_name: Optional[str] = None, level: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the dictConfig for an entry point.

    Args:
        service_name: Value of the `service` field, defaults to "pulse"
        level: Level for Pulse loggers, defaults to LOG_LEVEL

    Returns:
        Configuration for `logging.config.dictConfig`
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    production = settings.environment == "production"

    loggers: Dict[str, Any] = {
        "pulse": {"level": level, "handlers": ["console"], "propagate": False},
    }
    for name, library_level in LIBRARY_LEVELS.items():
        loggers[name] = {"level": library_level, "handlers": ["console"], "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "service": {"()": ServiceFilter, "service_name": service_name or "pulse"},
        },
        "formatters": {
            "json": {
                "class": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": JSON_FORMAT,
                "datefmt": DATE_FORMAT,
            },
            "console": {"format": CONSOLE_FORMAT, "datefmt": DATE_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json" if production else "console",
                "filters": ["service"],
                "stream": sys.stdout,
            }
        },
        "loggers": loggers,
        "root": {"level": settings.log_level.upper(), "handlers": ["console"]},
    }


def setup_logging(service_name: Optional[str] = None, level: Optional[str] = None) -> None:
    """Configure logging for an entry point."""
    logging.config.dictConfig(get_logging_config(service_name, level))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
