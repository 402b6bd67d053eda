"""Central logging configuration for the survey service.

Installs a single stdout handler on the root logger so module loggers
(`logging.getLogger(__name__)`) emit without per-module setup. Uvicorn loggers
are routed through the same handler. The level can be lowered or raised with
`SURVEY_LOG_LEVEL`.
"""
from __future__ import annotations

import logging
import os
from logging.config import dictConfig


def _build_config(level: str) -> dict:
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
            "survey_service": {"level": level, "propagate": True},
            "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging(level: str | None = None) -> None:
    """Configure application-wide logging once.

    Returns early when the root logger already has handlers so reloaders and
    test runners (which install their own capture handlers) are left alone.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    resolved = (level or os.getenv("SURVEY_LOG_LEVEL") or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(resolved), int):
        resolved = "INFO"
    dictConfig(_build_config(resolved))


__all__ = ["configure_logging"]
