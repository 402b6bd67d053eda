"""Survey flow controller.

Walks one respondent through the visible questions one at a time. The visible
subset is recomputed from the in-progress answers after every change, answers
of questions that become hidden are purged, and the current index is clamped
when the visible list shrinks.

States: AT(index) -> SUBMITTING -> SUBMITTED. A failed submit reverts to
AT(last) with the answers intact and a retryable `error` message.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from survey_service.logic import events
from survey_service.logic.gating import evaluate_gating, is_answered
from survey_service.logic.validation import AnswerValidationError, parse_answer
from survey_service.logic.visibility_rules import filter_visible_questions, purge_hidden_answers
from survey_service.models.answers import AnswerSet, MultipleAnswer
from survey_service.models.question import Question, QuestionType, sort_questions

logger = logging.getLogger(__name__)

SUBMIT_RETRY_MESSAGE = "提交失败，请重试 / Submission failed, please try again"


class FlowState:
    AT = "at"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class SurveyClosedError(RuntimeError):
    """Raised when the survey is changed after it was submitted."""


class SubmissionFailedError(RuntimeError):
    pass


SubmitFn = Callable[[AnswerSet], Any]


class SurveyFlowController:
    def __init__(self, questions: Sequence[Question], submit: SubmitFn) -> None:
        if not questions:
            raise ValueError("a survey needs at least one question")
        if all(q.visible_if is not None for q in questions):
            raise ValueError("a survey needs at least one unconditional question")
        self._questions: List[Question] = sort_questions(questions)
        self._by_id: Dict[int, Question] = {q.id: q for q in self._questions}
        self._submit = submit
        self.answers = AnswerSet()
        self.index = 0
        self.state = FlowState.AT
        self.error: Optional[str] = None
        self.submission_id: Optional[Any] = None

    # -- queries ---------------------------------------------------------

    def visible_questions(self) -> List[Question]:
        return filter_visible_questions(self._questions, self.answers)

    def current_question(self) -> Question:
        visible = self.visible_questions()
        return visible[min(self.index, len(visible) - 1)]

    def is_last(self) -> bool:
        return self.index >= len(self.visible_questions()) - 1

    def can_go_next(self) -> bool:
        return self.state == FlowState.AT and not self.is_last() and is_answered(self.current_question(), self.answers)

    def gating(self) -> Dict[str, Any]:
        return evaluate_gating(self._questions, self.answers)

    def can_submit(self) -> bool:
        return self.state == FlowState.AT and self.is_last() and self.gating()["ok"]

    def status(self) -> Dict[str, Any]:
        visible = self.visible_questions()
        return {
            "state": self.state,
            "index": self.index,
            "question_id": visible[min(self.index, len(visible) - 1)].id,
            "visible_question_ids": [q.id for q in visible],
            "answers": self.answers.to_document(),
            "error": self.error,
            "submission_id": self.submission_id,
        }

    # -- answer events ---------------------------------------------------

    def _ensure_open(self) -> None:
        if self.state == FlowState.SUBMITTED:
            raise SurveyClosedError("survey already submitted")

    def set_answer(self, question_id: int, value: object) -> List[int]:
        """Set (or clear, with an empty value) an answer; return purged ids."""
        self._ensure_open()
        question = self._by_id.get(int(question_id))
        if question is None:
            raise AnswerValidationError([{"question_id": str(question_id), "reason": "unknown_question"}])
        if question.id not in {q.id for q in self.visible_questions()}:
            raise AnswerValidationError([{"question_id": str(question.id), "reason": "question_not_visible"}])
        answer = parse_answer(question, value)
        if answer is None:
            self.answers.discard(question.id)
        else:
            self.answers.set(question.id, answer)
        self.error = None
        return self._after_change()

    def select_option(self, value: str) -> List[int]:
        question = self.current_question()
        if question.type != QuestionType.SINGLE:
            raise AnswerValidationError([{"question_id": str(question.id), "reason": "expected_single_question"}])
        return self.set_answer(question.id, value)

    def toggle_option(self, value: str, checked: bool = True) -> List[int]:
        question = self.current_question()
        if question.type != QuestionType.MULTIPLE:
            raise AnswerValidationError([{"question_id": str(question.id), "reason": "expected_multiple_question"}])
        existing = self.answers.get(question.id)
        current = list(existing.values) if isinstance(existing, MultipleAnswer) else []
        if checked and value not in current:
            current.append(value)
        elif not checked:
            current = [v for v in current if v != value]
        return self.set_answer(question.id, current)

    def set_text(self, value: str) -> List[int]:
        question = self.current_question()
        if question.type != QuestionType.TEXT:
            raise AnswerValidationError([{"question_id": str(question.id), "reason": "expected_text_question"}])
        return self.set_answer(question.id, value)

    def _after_change(self) -> List[int]:
        purged = purge_hidden_answers(self._questions, self.answers)
        if purged:
            logger.info("stale_answers_purged ids=%s", purged)
        last = len(self.visible_questions()) - 1
        if self.index > last:
            self.index = last
        return purged

    # -- navigation ------------------------------------------------------

    def next(self) -> bool:
        self._ensure_open()
        if not self.can_go_next():
            return False
        self.index += 1
        return True

    def previous(self) -> bool:
        self._ensure_open()
        if self.state != FlowState.AT or self.index <= 0:
            return False
        self.index -= 1
        return True

    def submit(self) -> bool:
        """Submit the answer set; return True once SUBMITTED."""
        self._ensure_open()
        if not self.can_submit():
            return False
        self.state = FlowState.SUBMITTING
        try:
            result = self._submit(self.answers.copy())
            if result is None:
                raise SubmissionFailedError("store returned no submission id")
        except Exception as exc:
            logger.error("survey_submit_failed answers=%s", len(self.answers), exc_info=True)
            events.publish(events.RESPONSE_SUBMIT_FAILED, {"reason": type(exc).__name__})
            self.state = FlowState.AT
            self.index = len(self.visible_questions()) - 1
            self.error = SUBMIT_RETRY_MESSAGE
            return False
        self.submission_id = getattr(result, "id", result)
        self.state = FlowState.SUBMITTED
        self.error = None
        return True


__all__ = [
    "FlowState",
    "SurveyFlowController",
    "SurveyClosedError",
    "SubmissionFailedError",
    "SUBMIT_RETRY_MESSAGE",
]
