"""Admin dashboard endpoints: statistics, distributions, range listing, CSV export."""

from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from survey_service.db.store import SurveyStore
from survey_service.logic.answer_display import normalize_language
from survey_service.logic.csv_io import build_responses_csv
from survey_service.logic.statistics import (
    compute_distributions,
    compute_question_distribution,
    compute_statistics,
)
from survey_service.models.question import QuestionType
from survey_service.routes.dependencies import get_daily_series_days, get_store

router = APIRouter()
logger = logging.getLogger(__name__)


def _failure(message: str, status: int) -> JSONResponse:
    return JSONResponse({"success": False, "message": message}, status_code=status)


def parse_range_bound(value: str, end_of_day: bool = False) -> datetime:
    """Parse an ISO date or datetime; a bare date as `end` covers the whole day.

    Aware values are converted to server-local naive time to match stored rows.
    """
    text = (value or "").strip()
    if not text:
        raise ValueError("empty range bound")
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    if end_of_day and len(text) == 10:
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed


@router.get(
    "/admin/statistics",
    summary="Dashboard statistics",
    operation_id="getAdminStatistics",
    tags=["Admin"],
)
def admin_statistics(
    store: SurveyStore = Depends(get_store),
    days: int = Depends(get_daily_series_days),
):
    try:
        data = compute_statistics(store, days=days)
    except Exception:
        logger.error("statistics_fetch_failed", exc_info=True)
        return _failure("Failed to fetch statistics", 500)
    return {"success": True, "data": data}


@router.get(
    "/admin/distributions",
    summary="Answer distributions for every choice question",
    operation_id="listDistributions",
    tags=["Admin"],
)
def admin_distributions(store: SurveyStore = Depends(get_store)):
    try:
        data = compute_distributions(store)
    except Exception:
        logger.error("distributions_fetch_failed", exc_info=True)
        return _failure("Failed to fetch distributions", 500)
    return {"success": True, "data": data}


@router.get(
    "/admin/questions/{question_id}/distribution",
    summary="Answer distribution for one question",
    operation_id="getQuestionDistribution",
    tags=["Admin"],
)
def admin_question_distribution(question_id: int, store: SurveyStore = Depends(get_store)):
    try:
        questions = store.get_questions_with_options()
    except Exception:
        logger.error("distribution_fetch_failed question_id=%s", question_id, exc_info=True)
        return _failure("Failed to fetch distribution", 500)
    question = next((q for q in questions if q.id == question_id), None)
    if question is None:
        return _failure(f"Question {question_id} not found", 404)
    if question.type == QuestionType.TEXT:
        return _failure(f"Question {question_id} has no options", 400)
    try:
        data = compute_question_distribution(question, store.list_responses())
    except Exception:
        logger.error("distribution_fetch_failed question_id=%s", question_id, exc_info=True)
        return _failure("Failed to fetch distribution", 500)
    return {"success": True, "data": data}


@router.get(
    "/admin/responses",
    summary="List responses created within an inclusive time range",
    operation_id="listResponsesInRange",
    tags=["Admin"],
)
def admin_responses_in_range(
    start: str = Query(...),
    end: str = Query(...),
    store: SurveyStore = Depends(get_store),
):
    try:
        start_at = parse_range_bound(start)
        end_at = parse_range_bound(end, end_of_day=True)
        if start_at > end_at:
            raise ValueError("start must not be after end")
    except ValueError as exc:
        logger.info("response_range_rejected start=%s end=%s reason=%s", start, end, exc)
        return _failure(f"Invalid range: {exc}", 400)
    try:
        responses = store.list_responses_in_range(start_at, end_at)
    except Exception:
        logger.error("response_range_fetch_failed start=%s end=%s", start, end, exc_info=True)
        return _failure("Failed to fetch responses", 500)
    return {"success": True, "count": len(responses), "responses": [r.model_dump(mode="json") for r in responses]}


@router.get(
    "/admin/responses/export",
    summary="Export all responses as CSV",
    operation_id="exportResponsesCsv",
    tags=["Admin"],
)
def admin_export_responses(lang: Optional[str] = Query(None), store: SurveyStore = Depends(get_store)):
    language = normalize_language(lang)
    try:
        data = build_responses_csv(store.get_questions_with_options(), store.list_responses(), language)
    except Exception:
        logger.error("response_export_failed lang=%s", language, exc_info=True)
        return _failure("Failed to export responses", 500)
    logger.info("response_export_done lang=%s bytes=%s", language, len(data))
    return Response(
        content=data,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="survey_responses_{language}.csv"'},
    )


__all__ = ["router", "parse_range_bound"]
