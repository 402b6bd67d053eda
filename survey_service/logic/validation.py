"""Type-aware validation of submitted answers against the question catalog.

Converts the loose wire document (`{"4": "android", "2": ["work_study"]}`)
into a typed `AnswerSet`. Every problem is collected and reported together in
a single `AnswerValidationError`; unknown ids and illegal option values never
reach the store.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from survey_service.models.answers import AnswerSet, MultipleAnswer, SingleAnswer, TextAnswer
from survey_service.models.question import Question, QuestionType


class AnswerValidationError(ValueError):
    """Raised when a submitted answer document does not match the catalog.

    `errors` lists `{"question_id": ..., "reason": ...}` items; `question_id`
    and `reason` mirror the first item for convenience.
    """

    def __init__(self, errors: List[Dict[str, Any]]) -> None:
        self.errors = list(errors)
        first = self.errors[0] if self.errors else {"question_id": None, "reason": "invalid"}
        self.question_id = first.get("question_id")
        self.reason = str(first.get("reason"))
        super().__init__("; ".join(f"{e.get('question_id')}: {e.get('reason')}" for e in self.errors))


def _error(question_id: Optional[str], reason: str) -> Dict[str, Any]:
    return {"question_id": question_id, "reason": reason}


def parse_question_key(key: object) -> Optional[int]:
    """Return the integer id for a document key such as "4" or 4, else None."""
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key if key > 0 else None
    if isinstance(key, str) and key.strip().isdigit():
        value = int(key.strip())
        return value if value > 0 else None
    return None


def is_empty_value(value: object) -> bool:
    return value is None or value == "" or (isinstance(value, (list, tuple)) and len(value) == 0)


def parse_answer(question: Question, value: object):
    """Build the tagged answer for `question` from a raw document value.

    Returns None for empty values (unanswered). Raises AnswerValidationError
    for type or option mismatches.
    """
    qid = str(question.id)
    if is_empty_value(value):
        return None
    if question.type == QuestionType.TEXT:
        if not isinstance(value, str):
            raise AnswerValidationError([_error(qid, "expected_text")])
        return TextAnswer(value=value)
    allowed = question.option_values()
    if question.type == QuestionType.SINGLE:
        if not isinstance(value, str):
            raise AnswerValidationError([_error(qid, "expected_single_value")])
        if value not in allowed:
            raise AnswerValidationError([_error(qid, f"unknown_option:{value}")])
        return SingleAnswer(value=value)
    if not isinstance(value, (list, tuple)):
        raise AnswerValidationError([_error(qid, "expected_list")])
    seen: List[str] = []
    for item in value:
        if not isinstance(item, str):
            raise AnswerValidationError([_error(qid, "expected_list_of_strings")])
        if item not in allowed:
            raise AnswerValidationError([_error(qid, f"unknown_option:{item}")])
        if item not in seen:
            seen.append(item)
    return MultipleAnswer(values=seen)


def validate_answer_document(document: object, questions: Iterable[Question]) -> AnswerSet:
    """Validate a raw answers document and return a typed AnswerSet."""
    if not isinstance(document, Mapping):
        raise AnswerValidationError([_error(None, "answers_must_be_object")])
    by_id = {q.id: q for q in questions}
    result = AnswerSet()
    errors: List[Dict[str, Any]] = []
    for key, value in document.items():
        qid = parse_question_key(key)
        if qid is None or qid not in by_id:
            errors.append(_error(str(key), "unknown_question"))
            continue
        try:
            answer = parse_answer(by_id[qid], value)
        except AnswerValidationError as exc:
            errors.extend(exc.errors)
            continue
        if answer is not None:
            result.set(qid, answer)
    if errors:
        raise AnswerValidationError(errors)
    return result


__all__ = [
    "AnswerValidationError",
    "parse_question_key",
    "is_empty_value",
    "parse_answer",
    "validate_answer_document",
]
