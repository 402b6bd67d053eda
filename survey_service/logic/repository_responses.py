"""Response data access.

One row per submission in `survey_responses`. The answer set is stored as a
JSON document (JSONB on PostgreSQL, JSON text on SQLite) and the original
payload is kept verbatim in `raw_data`. Aggregation helpers group on a field
of the document with dialect-specific JSON operators.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine

from survey_service.db.base import is_sqlite
from survey_service.logic.answer_canonical import canonicalize_answers
from survey_service.models.answers import AnswerSet
from survey_service.models.question import Question
from survey_service.models.response import ResponseMetadata, SavedResponse, StoredResponse

logger = logging.getLogger(__name__)

_SELECT_COLUMNS = "id, created_at, ip_address, user_agent, answers, raw_data"


def _to_datetime(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(str(value))


def _day_string(value: object) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)[:10]


class ResponseRepository:
    def __init__(self, engine: Engine, load_questions: Optional[Callable[[], Sequence[Question]]] = None) -> None:
        self.engine = engine
        self._sqlite = is_sqlite(engine)
        self._load_questions = load_questions

    # -- binding helpers -------------------------------------------------

    def _bind_ts(self, value: datetime) -> object:
        # SQLite stores timestamps as ISO text; keep one fixed width so range
        # comparisons stay lexicographically correct.
        if self._sqlite:
            return value.isoformat(sep=" ", timespec="microseconds")
        return value

    def _json_field(self, question_id: int) -> str:
        key = int(question_id)
        if self._sqlite:
            return (
                "json_extract(CASE WHEN json_valid(answers) THEN answers ELSE '{}' END, "
                f"'$.\"{key}\"')"
            )
        return f"answers->>'{key}'"

    def _row_to_response(self, row: Mapping[str, Any]) -> StoredResponse:
        return StoredResponse(
            id=int(row["id"]),
            created_at=_to_datetime(row["created_at"]),
            ip_address=row["ip_address"],
            user_agent=row["user_agent"],
            answers=canonicalize_answers(row["answers"], row["raw_data"], row["id"], self._load_questions),
            raw_data=row["raw_data"],
        )

    # -- writes ----------------------------------------------------------

    def save(
        self,
        answers: AnswerSet,
        metadata: Optional[ResponseMetadata] = None,
        raw_payload: Optional[Mapping[str, Any]] = None,
        created_at: Optional[datetime] = None,
    ) -> SavedResponse:
        """Insert one response row in a single transaction."""
        meta = metadata or ResponseMetadata()
        document = answers.to_document()
        raw = dict(raw_payload) if raw_payload is not None else {"answers": document}
        params = {
            "created_at": self._bind_ts(created_at or datetime.now()),
            "ip": meta.ip_address,
            "ua": meta.user_agent,
            "answers": json.dumps(document, ensure_ascii=False),
            "raw": json.dumps(raw, ensure_ascii=False, default=str),
        }
        with self.engine.begin() as conn:
            if self._sqlite:
                result = conn.execute(
                    sql_text(
                        """
                        INSERT INTO survey_responses (created_at, ip_address, user_agent, answers, raw_data)
                        VALUES (:created_at, :ip, :ua, :answers, :raw)
                        """
                    ),
                    params,
                )
                new_id = int(result.lastrowid)
            else:
                new_id = int(
                    conn.execute(
                        sql_text(
                            """
                            INSERT INTO survey_responses (created_at, ip_address, user_agent, answers, raw_data)
                            VALUES (:created_at, :ip, :ua, CAST(:answers AS JSONB), :raw)
                            RETURNING id
                            """
                        ),
                        params,
                    ).scalar_one()
                )
        return SavedResponse(id=new_id)

    # -- reads -----------------------------------------------------------

    def list_all(self) -> List[StoredResponse]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                sql_text(f"SELECT {_SELECT_COLUMNS} FROM survey_responses ORDER BY created_at DESC, id DESC")
            ).mappings().all()
        return [self._row_to_response(r) for r in rows]

    def count(self) -> int:
        with self.engine.connect() as conn:
            return int(conn.execute(sql_text("SELECT COUNT(*) FROM survey_responses")).scalar() or 0)

    def list_between(self, start: datetime, end: datetime) -> List[StoredResponse]:
        """Responses with start <= created_at <= end, newest first."""
        if start > end:
            raise ValueError("start must not be after end")
        with self.engine.connect() as conn:
            rows = conn.execute(
                sql_text(
                    f"""
                    SELECT {_SELECT_COLUMNS} FROM survey_responses
                    WHERE created_at >= :start AND created_at <= :end
                    ORDER BY created_at DESC, id DESC
                    """
                ),
                {"start": self._bind_ts(start), "end": self._bind_ts(end)},
            ).mappings().all()
        return [self._row_to_response(r) for r in rows]

    def count_created_between(self, start: datetime, end_exclusive: datetime) -> int:
        with self.engine.connect() as conn:
            return int(
                conn.execute(
                    sql_text(
                        "SELECT COUNT(*) FROM survey_responses WHERE created_at >= :start AND created_at < :end"
                    ),
                    {"start": self._bind_ts(start), "end": self._bind_ts(end_exclusive)},
                ).scalar()
                or 0
            )

    def group_counts(self, question_id: int, order_by_key: bool = False) -> List[Tuple[str, int]]:
        """Count responses per distinct value of answers[question_id]; missing keys are ignored."""
        expr = self._json_field(question_id)
        order = f" ORDER BY {expr}" if order_by_key else ""
        with self.engine.connect() as conn:
            rows = conn.execute(
                sql_text(
                    f"SELECT {expr} AS group_key, COUNT(*) AS count FROM survey_responses "
                    f"WHERE {expr} IS NOT NULL GROUP BY {expr}{order}"
                )
            ).fetchall()
        return [(str(r[0]), int(r[1])) for r in rows]

    def daily_counts(self, limit: int) -> List[Tuple[str, int]]:
        """Counts per calendar day of created_at, most recent `limit` days first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                sql_text(
                    """
                    SELECT DATE(created_at) AS day, COUNT(*) AS count
                    FROM survey_responses
                    GROUP BY DATE(created_at)
                    ORDER BY day DESC
                    LIMIT :limit
                    """
                ),
                {"limit": int(limit)},
            ).fetchall()
        return [(_day_string(r[0]), int(r[1])) for r in rows]


__all__ = ["ResponseRepository"]
