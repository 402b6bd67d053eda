"""Question and option data access.

Encapsulates the `survey_questions` / `survey_options` SQL so that the
catalog seeding step and the routes stay free of inline queries.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine

from survey_service.models.question import Question, QuestionOption, VisibilityRule

logger = logging.getLogger(__name__)


def _visibility_from_row(parent_id: object, values_text: object) -> Optional[VisibilityRule]:
    if parent_id is None:
        return None
    values: List[str] = []
    if isinstance(values_text, str) and values_text.strip():
        try:
            parsed = json.loads(values_text)
            if isinstance(parsed, list):
                values = [str(v) for v in parsed]
        except ValueError:
            logger.error("visible_if_values_unreadable parent_id=%s", parent_id, exc_info=True)
    if not values:
        return None
    return VisibilityRule(question_id=int(parent_id), values=values)


class QuestionRepository:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def has_questions(self) -> bool:
        with self.engine.connect() as conn:
            count = conn.execute(sql_text("SELECT COUNT(*) FROM survey_questions")).scalar()
        return int(count or 0) > 0

    def insert_question(self, question: Question) -> bool:
        """Insert a question row; return False when the id already exists."""
        rule = question.visible_if
        with self.engine.begin() as conn:
            result = conn.execute(
                sql_text(
                    """
                    INSERT INTO survey_questions (
                        id, section, section_en, question, question_en,
                        type, required, sort_order,
                        visible_if_question_id, visible_if_values
                    ) VALUES (
                        :id, :section, :section_en, :question, :question_en,
                        :type, :required, :sort_order,
                        :vis_qid, :vis_values
                    )
                    ON CONFLICT (id) DO NOTHING
                    """
                ),
                {
                    "id": question.id,
                    "section": question.section,
                    "section_en": question.section_en,
                    "question": question.question,
                    "question_en": question.question_en,
                    "type": question.type,
                    "required": bool(question.required),
                    "sort_order": question.sort_order if question.sort_order is not None else question.id,
                    "vis_qid": rule.question_id if rule else None,
                    "vis_values": json.dumps(rule.values) if rule else None,
                },
            )
        return (result.rowcount or 0) > 0

    def insert_option(self, question_id: int, option: QuestionOption, sort_order: int) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO survey_options (question_id, value, label, label_en, sort_order)
                    VALUES (:qid, :value, :label, :label_en, :sort_order)
                    """
                ),
                {
                    "qid": int(question_id),
                    "value": option.value,
                    "label": option.label,
                    "label_en": option.label_en,
                    "sort_order": int(sort_order),
                },
            )

    def get_questions_with_options(self) -> List[Question]:
        """Return stored questions with nested options, in display order."""
        with self.engine.connect() as conn:
            q_rows = conn.execute(
                sql_text(
                    """
                    SELECT id, section, section_en, question, question_en, type, required,
                           sort_order, visible_if_question_id, visible_if_values
                    FROM survey_questions
                    ORDER BY sort_order, id
                    """
                )
            ).mappings().all()
            o_rows = conn.execute(
                sql_text(
                    """
                    SELECT question_id, value, label, label_en, sort_order
                    FROM survey_options
                    ORDER BY question_id, sort_order, id
                    """
                )
            ).mappings().all()

        options_by_question: Dict[int, List[Dict[str, Any]]] = {}
        for o in o_rows:
            options_by_question.setdefault(int(o["question_id"]), []).append(
                {
                    "value": o["value"],
                    "label": o["label"],
                    "label_en": o["label_en"],
                    "sort_order": o["sort_order"],
                }
            )

        questions: List[Question] = []
        for r in q_rows:
            qid = int(r["id"])
            opts = options_by_question.get(qid)
            try:
                questions.append(
                    Question(
                        id=qid,
                        section=r["section"],
                        section_en=r["section_en"],
                        question=r["question"],
                        question_en=r["question_en"],
                        type=r["type"],
                        required=bool(r["required"]),
                        sort_order=r["sort_order"],
                        options=opts if r["type"] != "text" else None,
                        visible_if=_visibility_from_row(r["visible_if_question_id"], r["visible_if_values"]),
                    )
                )
            except ValueError:
                # A half-seeded question (row committed, options not yet) is skipped
                logger.error("stored_question_invalid id=%s", qid, exc_info=True)
        return questions


__all__ = ["QuestionRepository"]
