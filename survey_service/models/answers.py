"""Answer Set types.

Each answer is a tagged union member keyed by `kind`. An `AnswerSet` maps
integer question ids to answers and converts to and from the JSON document
stored in `survey_responses.answers` (keys are question ids as strings,
values are a string or an ordered list of strings).
"""

from __future__ import annotations

from typing import Annotated, Dict, Iterator, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SingleAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["single"] = "single"
    value: str


class MultipleAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["multiple"] = "multiple"
    values: List[str]


class TextAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    value: str


Answer = Annotated[Union[SingleAnswer, MultipleAnswer, TextAnswer], Field(discriminator="kind")]

DocumentValue = Union[str, List[str]]


def answer_to_document_value(answer: Union[SingleAnswer, MultipleAnswer, TextAnswer]) -> DocumentValue:
    if isinstance(answer, MultipleAnswer):
        return list(answer.values)
    return answer.value


class AnswerSet(Mapping):
    """Mutable mapping of question id -> answer.

    Validation against the catalog happens in `logic.validation`; an AnswerSet
    built there only holds known ids and legal option values.
    """

    def __init__(self, answers: Optional[Mapping[int, Union[SingleAnswer, MultipleAnswer, TextAnswer]]] = None) -> None:
        self._answers: Dict[int, Union[SingleAnswer, MultipleAnswer, TextAnswer]] = dict(answers or {})

    def __getitem__(self, question_id: int):
        try:
            key = int(question_id)
        except (TypeError, ValueError):
            raise KeyError(question_id) from None
        return self._answers[key]

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._answers))

    def __len__(self) -> int:
        return len(self._answers)

    def __contains__(self, question_id: object) -> bool:
        try:
            return int(question_id) in self._answers  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False

    def __eq__(self, other: object) -> bool:
        if isinstance(other, AnswerSet):
            return self._answers == other._answers
        return NotImplemented

    def __repr__(self) -> str:
        return f"AnswerSet({self.to_document()!r})"

    def set(self, question_id: int, answer: Union[SingleAnswer, MultipleAnswer, TextAnswer]) -> None:
        self._answers[int(question_id)] = answer

    def discard(self, question_id: int) -> bool:
        return self._answers.pop(int(question_id), None) is not None

    def value(self, question_id: int) -> Optional[DocumentValue]:
        """Return the plain document value for `question_id`, or None."""
        answer = self._answers.get(int(question_id))
        return answer_to_document_value(answer) if answer is not None else None

    def copy(self) -> "AnswerSet":
        return AnswerSet(self._answers)

    def to_document(self) -> Dict[str, DocumentValue]:
        return {str(qid): answer_to_document_value(self._answers[qid]) for qid in sorted(self._answers)}


__all__ = [
    "SingleAnswer",
    "MultipleAnswer",
    "TextAnswer",
    "Answer",
    "AnswerSet",
    "DocumentValue",
    "answer_to_document_value",
]
