"""Request-scoped access to the process-wide store handle."""

from __future__ import annotations

from fastapi import Request

from survey_service.db.store import SurveyStore


def get_store(request: Request) -> SurveyStore:
    return request.app.state.store


def get_daily_series_days(request: Request) -> int:
    return int(request.app.state.config.survey.daily_series_days)


__all__ = ["get_store", "get_daily_series_days"]
