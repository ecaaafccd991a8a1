"""Central logging configuration for the application.

Applies a root stdout handler so all module loggers emit without per-module
setup. The level comes from ``LOG_LEVEL`` (default INFO). Uvicorn loggers
stay visible and repeated calls do not stack handlers.
"""
from __future__ import annotations
import logging
import os
from logging.config import dictConfig


def _dict_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "deployspec": {"level": level},
            "httpx": {"level": "WARNING"},
            "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging(level: str | None = None) -> None:
    """Configure application-wide logging once.

    If the root logger already has handlers, return to prevent duplicate output
    (important under reloaders and pytest's capture).
    """
    root = logging.getLogger()
    if root.handlers:
        return
    chosen = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    if chosen not in logging.getLevelNamesMapping():
        chosen = "INFO"
    dictConfig(_dict_config(chosen))


__all__ = ["configure_logging"]
