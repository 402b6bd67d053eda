"""RFC4180 CSV export of stored responses.

One row per response, newest first as listed by the store. Columns are
`id`, `created_at` and one column per question in catalog order, headed by the
question text in the requested language. Answers are rendered with option
labels via `answer_display.format_answer`.
"""

from __future__ import annotations

import csv
import io
from typing import Iterable, List, Sequence

from survey_service.logic.answer_display import format_answer, normalize_language, question_text
from survey_service.models.question import Question, sort_questions
from survey_service.models.response import StoredResponse

FIXED_HEADER = ["id", "created_at"]


def build_header(questions: Sequence[Question], lang: str = "zh") -> List[str]:
    return FIXED_HEADER + [f"{q.id}. {question_text(q, lang)}" for q in questions]


def build_responses_csv(
    questions: Iterable[Question],
    responses: Iterable[StoredResponse],
    lang: str = "zh",
) -> bytes:
    lang = normalize_language(lang)
    ordered = sort_questions(questions)
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\r\n")
    writer.writerow(build_header(ordered, lang))
    for response in responses:
        answers = response.answers or {}
        row = [str(response.id), response.created_at.isoformat(sep=" ", timespec="seconds")]
        row.extend(format_answer(q, answers.get(str(q.id)), lang) for q in ordered)
        writer.writerow(row)
    # UTF-8 BOM, expected by spreadsheet imports
    return ("\ufeff" + buf.getvalue()).encode("utf-8")


__all__ = ["build_header", "build_responses_csv", "FIXED_HEADER"]
