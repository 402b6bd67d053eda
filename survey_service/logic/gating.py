"""Required-answer gating.

Computes a verdict with the shape `{ok: bool, blocking_items: [...]}` over the
visible questions. A question blocks when it is required and the
required-answered predicate does not hold for its current answer.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from survey_service.models.answers import AnswerSet
from survey_service.models.question import Question, QuestionType
from survey_service.logic.visibility_rules import filter_visible_questions

logger = logging.getLogger(__name__)


def is_answered(question: Question, answers: AnswerSet) -> bool:
    """Required-answered predicate for a single question."""
    if not question.required:
        return True
    value = answers.value(question.id)
    if question.type == QuestionType.MULTIPLE:
        return isinstance(value, list) and len(value) > 0
    return value is not None and value != ""


def evaluate_gating(questions: Sequence[Question], answers: AnswerSet) -> Dict[str, Any]:
    """Evaluate every visible required question at once."""
    items: List[Dict[str, Any]] = [
        {"question_id": q.id, "reason": "missing_required_answer"}
        for q in filter_visible_questions(questions, answers)
        if not is_answered(q, answers)
    ]
    ok = len(items) == 0
    if not ok:
        logger.info("gating_blocked missing=%s", [i["question_id"] for i in items])
    return {"ok": ok, "blocking_items": items}


__all__ = ["is_answered", "evaluate_gating"]
