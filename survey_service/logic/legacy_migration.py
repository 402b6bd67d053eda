"""Migration from the legacy fixed-column response table.

The first schema stored each submission in one column per answer slot
(`ai_agent_awareness`, `ai_usage_purpose`, ..., `income_level`), where the
N-th slot held the answer to question id N and multi-select slots held a JSON
array. This module reads such a table and writes every row through the
current JSON-document store.

Per row, the answer document is taken from the `raw_data` backup when it can
be parsed, otherwise rebuilt from the fixed columns. Answers are then checked
against the current catalog: values the catalog no longer accepts are not
stored as answers but kept under `droppedAnswers` in the new raw payload,
together with the original timestamp and legacy id.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import inspect
from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine

from survey_service.logic.validation import AnswerValidationError, parse_answer, parse_question_key
from survey_service.logic.visibility_rules import purge_hidden_answers
from survey_service.models.answers import AnswerSet
from survey_service.models.question import Question
from survey_service.models.response import ResponseMetadata

logger = logging.getLogger(__name__)

LEGACY_TABLE = "survey_responses"

# (column, holds a JSON array); position + 1 is the question id
LEGACY_COLUMNS: Tuple[Tuple[str, bool], ...] = (
    ("ai_agent_awareness", False),
    ("ai_usage_purpose", True),
    ("ai_usage_frequency", False),
    ("device_type", False),
    ("screen_time", False),
    ("most_used_app", True),
    ("video_platforms", True),
    ("video_watch_time", False),
    ("non_video_entertainment", True),
    ("social_platforms", True),
    ("social_media_time", False),
    ("content_preference", True),
    ("news_sources", True),
    ("news_frequency", False),
    ("knowledge_acquisition", True),
    ("age_group", False),
    ("gender", False),
    ("region", False),
    ("occupation", False),
    ("income_level", False),
)


def is_legacy_table(engine: Engine) -> bool:
    insp = inspect(engine)
    if not insp.has_table(LEGACY_TABLE):
        return False
    columns = {c["name"] for c in insp.get_columns(LEGACY_TABLE)}
    return "device_type" in columns and "answers" not in columns


def _decode_slot(value: object, is_json: bool) -> object:
    if value is None:
        return None
    if not is_json or not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def answers_from_columns(row: Mapping[str, Any]) -> Dict[str, Any]:
    doc: Dict[str, Any] = {}
    for position, (column, is_json) in enumerate(LEGACY_COLUMNS, start=1):
        if column not in row:
            continue
        value = _decode_slot(row[column], is_json)
        if value is None or value == "":
            continue
        doc[str(position)] = value
    return doc


def answers_from_raw(raw_data: object) -> Optional[Dict[str, Any]]:
    if not isinstance(raw_data, str) or not raw_data.strip():
        return None
    try:
        parsed = json.loads(raw_data)
    except ValueError:
        return None
    answers = parsed.get("answers") if isinstance(parsed, dict) else None
    return answers if isinstance(answers, dict) else None


def convert_legacy_answers(
    document: Mapping[str, Any], questions: Sequence[Question]
) -> Tuple[AnswerSet, Dict[str, Any]]:
    """Split a legacy document into a valid AnswerSet and the dropped remainder."""
    by_id = {q.id: q for q in questions}
    kept = AnswerSet()
    dropped: Dict[str, Any] = {}
    for key, value in document.items():
        qid = parse_question_key(key)
        question = by_id.get(qid) if qid is not None else None
        if question is None:
            dropped[str(key)] = value
            continue
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        try:
            answer = parse_answer(question, value)
        except AnswerValidationError:
            dropped[str(key)] = value
            continue
        if answer is not None:
            kept.set(question.id, answer)
    for qid in purge_hidden_answers(questions, kept):
        dropped[str(qid)] = document.get(str(qid))
    return kept, dropped


def migrate_legacy_responses(source: Engine, store, questions: Optional[Sequence[Question]] = None) -> Dict[str, int]:
    """Copy every legacy row into `store`; return found/migrated/failed counts."""
    if not is_legacy_table(source):
        logger.info("legacy_migration_skipped reason=no_legacy_table")
        return {"found": 0, "migrated": 0, "failed": 0}

    catalog = list(questions) if questions is not None else store.get_questions_with_options()
    with source.connect() as conn:
        rows = conn.execute(sql_text(f"SELECT * FROM {LEGACY_TABLE} ORDER BY id")).mappings().all()

    found = len(rows)
    migrated = 0
    failed = 0
    logger.info("legacy_migration_start rows=%s", found)
    for row in rows:
        try:
            document = answers_from_raw(row.get("raw_data"))
            if document is None:
                document = answers_from_columns(row)
            answers, dropped = convert_legacy_answers(document, catalog)
            payload: Dict[str, Any] = {
                "answers": answers.to_document(),
                "originalTimestamp": str(row.get("created_at")) if row.get("created_at") is not None else None,
                "legacyId": row.get("id"),
            }
            if dropped:
                payload["droppedAnswers"] = dropped
            store.save_response(
                answers,
                ResponseMetadata(ip_address=row.get("ip_address"), user_agent=row.get("user_agent")),
                raw_payload=payload,
            )
            migrated += 1
            if migrated % 10 == 0:
                logger.info("legacy_migration_progress migrated=%s total=%s", migrated, found)
        except Exception:
            failed += 1
            logger.error("legacy_migration_row_failed legacy_id=%s", row.get("id"), exc_info=True)
    logger.info("legacy_migration_done found=%s migrated=%s failed=%s", found, migrated, failed)
    return {"found": found, "migrated": migrated, "failed": failed}


__all__ = [
    "LEGACY_COLUMNS",
    "LEGACY_TABLE",
    "is_legacy_table",
    "answers_from_columns",
    "answers_from_raw",
    "convert_legacy_answers",
    "migrate_legacy_responses",
]
