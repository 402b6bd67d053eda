"""Canonicalization of stored answer documents.

The `answers` column is JSONB on PostgreSQL (the driver returns a dict) and
JSON text on SQLite. A row whose document cannot be read is recovered from the
`raw_data` backup; if that fails too, the row is shown with no answers.

`raw_data` holds the request body as received, before conditional answers were
suppressed, so a recovered document is validated against the catalog and
stripped of answers to hidden questions before it is returned.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional, Sequence

from survey_service.logic.question_catalog import QUESTIONS
from survey_service.logic.validation import AnswerValidationError, validate_answer_document
from survey_service.logic.visibility_rules import purge_hidden_answers
from survey_service.models.question import Question

logger = logging.getLogger(__name__)

QuestionLoader = Callable[[], Sequence[Question]]


def _as_object(value: object) -> Optional[Dict[str, Any]]:
    if isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except (TypeError, ValueError):
            return None
        return parsed if isinstance(parsed, dict) else None
    return None


def _recovered_document(
    document: Dict[str, Any], load_questions: Optional[QuestionLoader], response_id: object
) -> Dict[str, Any]:
    questions = list(load_questions()) if load_questions is not None else []
    if not questions:
        questions = list(QUESTIONS)
    try:
        answers = validate_answer_document(document, questions)
    except AnswerValidationError as exc:
        logger.warning("raw_data_answers_invalid response_id=%s reason=%s", response_id, exc.reason)
        return {}
    purged = purge_hidden_answers(questions, answers)
    if purged:
        logger.info("raw_data_hidden_answers_dropped response_id=%s ids=%s", response_id, purged)
    return answers.to_document()


def canonicalize_answers(
    answers: object,
    raw_data: object,
    response_id: object = None,
    load_questions: Optional[QuestionLoader] = None,
) -> Dict[str, Any]:
    """Return the answer document for a stored row.

    1) The `answers` column when it is a readable JSON object.
    2) Otherwise the `answers` key of the `raw_data` backup, re-validated
       against the catalog from `load_questions` (the built-in catalog when
       that is missing or empty).
    3) Otherwise an empty document.
    """
    doc = _as_object(answers)
    if doc is not None:
        return doc
    raw = _as_object(raw_data)
    recovered = _as_object(raw.get("answers")) if raw is not None else None
    if recovered is not None:
        logger.warning("answers_recovered_from_raw_data response_id=%s", response_id)
        return _recovered_document(recovered, load_questions, response_id)
    logger.warning("answers_unreadable response_id=%s", response_id)
    return {}


__all__ = ["canonicalize_answers"]
