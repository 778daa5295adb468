"""Logging setup shared by the API process and the maintenance scripts."""

from __future__ import annotations

from logging.config import dictConfig
from typing import Any, Dict, Optional

from .config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def build_logging_config(level: str = "INFO", *, log_requests: bool = False) -> Dict[str, Any]:
    """dictConfig payload: one stderr handler, ``familyhub.*`` at ``level``."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"plain": {"format": LOG_FORMAT}},
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "plain",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "familyhub": {"level": level},
            "uvicorn.access": {"level": "INFO" if log_requests else "WARNING"},
        },
        "root": {"handlers": ["stderr"], "level": "WARNING" if level == "DEBUG" else level},
    }


def configure_logging(settings: Optional[Settings] = None) -> None:
    if settings is None:
        dictConfig(build_logging_config())
        return
    dictConfig(build_logging_config(settings.log_level, log_requests=settings.log_requests))


__all__ = ["LOG_FORMAT", "build_logging_config", "configure_logging"]
