"""Market survey collection service."""

from __future__ import annotations

from survey_service.main import create_app

__all__ = ["create_app"]
