"""Visibility rule evaluation for conditional questions.

Visibility is equality-based: a dependent question is visible only when its
parent is itself visible and the parent's current answer is one of the rule's
values. For a multiple-choice parent any selected value may match. Questions
without a rule are always visible.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from survey_service.models.answers import AnswerSet, DocumentValue
from survey_service.models.question import Question, VisibilityRule

logger = logging.getLogger(__name__)


def is_child_visible(parent_value: Optional[DocumentValue], visible_if_values: Iterable[str] | None) -> bool:
    """Return True if the parent's value satisfies the configured values.

    Empty or None value lists never make a child visible.
    """
    if parent_value is None or not visible_if_values:
        return False
    targets = {str(v) for v in visible_if_values}
    if isinstance(parent_value, (list, tuple)):
        return any(str(v) in targets for v in parent_value)
    return str(parent_value) in targets


def rule_matches(rule: VisibilityRule, answers: AnswerSet) -> bool:
    return is_child_visible(answers.value(rule.question_id), rule.values)


def compute_visible_ids(questions: Sequence[Question], answers: AnswerSet) -> set[int]:
    """Compute the ids of visible questions for the given in-progress answers."""
    by_id: Dict[int, Question] = {q.id: q for q in questions}
    memo: Dict[int, bool] = {}

    def _visible(qid: int, trail: frozenset[int]) -> bool:
        if qid in memo:
            return memo[qid]
        q = by_id.get(qid)
        if q is None:
            return False
        rule = q.visible_if
        if rule is None:
            result = True
        elif rule.question_id in trail:
            logger.error("visibility_cycle question_id=%s parent_id=%s", qid, rule.question_id)
            result = False
        else:
            result = _visible(rule.question_id, trail | {qid}) and rule_matches(rule, answers)
        memo[qid] = result
        return result

    return {q.id for q in questions if _visible(q.id, frozenset())}


def filter_visible_questions(questions: Sequence[Question], answers: AnswerSet) -> List[Question]:
    """Return the visible subset, preserving the input order."""
    visible = compute_visible_ids(questions, answers)
    return [q for q in questions if q.id in visible]


def hidden_answered_ids(questions: Sequence[Question], answers: AnswerSet) -> List[int]:
    """Ids that carry an answer but whose question is currently hidden."""
    visible = compute_visible_ids(questions, answers)
    known = {q.id for q in questions}
    return [qid for qid in answers if qid in known and qid not in visible]


def purge_hidden_answers(questions: Sequence[Question], answers: AnswerSet) -> List[int]:
    """Remove answers of hidden questions in place; return the purged ids.

    Repeats until stable because purging a parent can hide its own children.
    """
    purged: List[int] = []
    while True:
        stale = hidden_answered_ids(questions, answers)
        if not stale:
            return purged
        for qid in stale:
            answers.discard(qid)
            purged.append(qid)


__all__ = [
    "is_child_visible",
    "rule_matches",
    "compute_visible_ids",
    "filter_visible_questions",
    "hidden_answered_ids",
    "purge_hidden_answers",
]
