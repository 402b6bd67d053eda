"""Question catalog models.

A question is immutable once loaded. `options` is present and non-empty
exactly when the type is `single` or `multiple`; text questions never carry
options. Dependent questions declare a `visible_if` rule instead of having
their ids hardcoded in the flow controller.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class QuestionType:
    """Allowed question types (constants container, not an Enum)."""

    SINGLE = "single"
    MULTIPLE = "multiple"
    TEXT = "text"

    CHOICE = frozenset({SINGLE, MULTIPLE})
    ALL = frozenset({SINGLE, MULTIPLE, TEXT})


QuestionTypeLiteral = Literal["single", "multiple", "text"]


class QuestionOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str = Field(min_length=1)
    label: str
    label_en: Optional[str] = None
    sort_order: Optional[int] = None


class VisibilityRule(BaseModel):
    """Show the owning question only when `question_id` is answered with one of `values`."""

    model_config = ConfigDict(frozen=True)

    question_id: int = Field(gt=0)
    values: List[str] = Field(min_length=1)


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(gt=0)
    section: str
    section_en: Optional[str] = None
    question: str
    question_en: Optional[str] = None
    type: QuestionTypeLiteral
    required: bool = False
    sort_order: Optional[int] = None
    options: Optional[List[QuestionOption]] = None
    visible_if: Optional[VisibilityRule] = None

    @model_validator(mode="after")
    def _options_match_type(self) -> "Question":
        if self.type in QuestionType.CHOICE:
            if not self.options:
                raise ValueError(f"question {self.id}: '{self.type}' requires non-empty options")
            values = [o.value for o in self.options]
            if len(values) != len(set(values)):
                raise ValueError(f"question {self.id}: option values must be unique")
        elif self.options:
            raise ValueError(f"question {self.id}: text questions cannot carry options")
        if self.visible_if is not None and self.visible_if.question_id == self.id:
            raise ValueError(f"question {self.id}: visible_if cannot reference itself")
        return self

    @property
    def order_key(self) -> tuple[int, int]:
        return (self.sort_order if self.sort_order is not None else self.id, self.id)

    def option_values(self) -> list[str]:
        return [o.value for o in (self.options or [])]

    def find_option(self, value: str) -> Optional[QuestionOption]:
        for opt in self.options or []:
            if opt.value == value:
                return opt
        return None


def sort_questions(questions) -> list[Question]:
    """Return questions in display order: sort_order, then id."""
    return sorted(questions, key=lambda q: q.order_key)


__all__ = [
    "QuestionType",
    "QuestionOption",
    "VisibilityRule",
    "Question",
    "sort_questions",
]
