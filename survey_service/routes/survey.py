"""Respondent-facing endpoints: submit a survey, read the catalog, list submissions."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from survey_service.db.store import SurveyStore
from survey_service.logic import events
from survey_service.logic.validation import AnswerValidationError, validate_answer_document
from survey_service.logic.visibility_rules import purge_hidden_answers
from survey_service.models.response import ResponseMetadata
from survey_service.routes.dependencies import get_store

router = APIRouter()
logger = logging.getLogger(__name__)

SUBMIT_OK_MESSAGE = "问卷提交成功"
SUBMIT_FAILED_MESSAGE = "提交失败，请重试"
INVALID_ANSWERS_MESSAGE = "答案无效 / Invalid answers"


def _failure(message: str, status: int, **extra: Any) -> JSONResponse:
    return JSONResponse({"success": False, "message": message, **extra}, status_code=status)


def client_metadata(request: Request) -> ResponseMetadata:
    forwarded = request.headers.get("x-forwarded-for")
    ip: Optional[str] = forwarded.split(",")[0].strip() if forwarded else None
    if not ip:
        ip = request.headers.get("x-real-ip") or (request.client.host if request.client else None)
    return ResponseMetadata(ip_address=ip, user_agent=request.headers.get("user-agent"))


@router.post(
    "/survey",
    summary="Submit one completed survey",
    operation_id="submitSurvey",
    tags=["Survey"],
)
def submit_survey(
    request: Request,
    body: Dict[str, Any] = Body(...),
    store: SurveyStore = Depends(get_store),
):
    try:
        questions = store.get_questions_with_options()
    except Exception:
        logger.error("survey_submission_catalog_unavailable", exc_info=True)
        return _failure(SUBMIT_FAILED_MESSAGE, 500)

    try:
        answers = validate_answer_document(body.get("answers"), questions)
    except AnswerValidationError as exc:
        logger.info("survey_submission_rejected errors=%s", len(exc.errors))
        return _failure(INVALID_ANSWERS_MESSAGE, 400, errors=exc.errors)

    suppressed = purge_hidden_answers(questions, answers)
    if suppressed:
        events.publish(events.CONDITIONAL_ANSWERS_SUPPRESSED, {"question_ids": suppressed})

    try:
        saved = store.save_response(answers, client_metadata(request), raw_payload=body)
    except Exception:
        logger.error("survey_submission_failed answers=%s", len(answers), exc_info=True)
        events.publish(events.RESPONSE_SUBMIT_FAILED, {"reason": "store_error"})
        return _failure(SUBMIT_FAILED_MESSAGE, 500)

    logger.info("survey_submission_saved id=%s answers=%s", saved.id, len(answers))
    events.publish(events.RESPONSE_SAVED, {"id": saved.id, "answers": len(answers)})
    return {"success": True, "message": SUBMIT_OK_MESSAGE, "submissionId": f"survey_{saved.id}"}


@router.get(
    "/survey/questions",
    summary="List questions with their options",
    operation_id="listQuestions",
    tags=["Survey"],
)
def list_questions(store: SurveyStore = Depends(get_store)):
    try:
        questions = store.get_questions_with_options()
    except Exception:
        logger.error("questions_fetch_failed", exc_info=True)
        return _failure("Failed to fetch questions", 500)
    return {"success": True, "questions": [q.model_dump(mode="json") for q in questions]}


@router.get(
    "/survey/stats",
    summary="Count and list all stored responses",
    operation_id="getSurveyStats",
    tags=["Survey"],
)
def survey_stats(store: SurveyStore = Depends(get_store)):
    try:
        count = store.count_responses()
        responses = store.list_responses()
    except Exception:
        logger.error("survey_stats_fetch_failed", exc_info=True)
        return _failure("Failed to fetch stats", 500)
    return {"success": True, "count": count, "responses": [r.model_dump(mode="json") for r in responses]}


__all__ = ["router", "client_metadata"]
