"""Survey store handle.

`SurveyStore` owns one Engine and the repositories built on it. It is
constructed once at process start (see `survey_service.main.create_app`) and
passed explicitly to whatever needs persistence.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from survey_service.db.base import build_engine
from survey_service.db.migrations_runner import apply_migrations
from survey_service.logic.repository_questions import QuestionRepository
from survey_service.logic.repository_responses import ResponseRepository
from survey_service.models.answers import AnswerSet
from survey_service.models.question import Question
from survey_service.models.response import ResponseMetadata, SavedResponse, StoredResponse

logger = logging.getLogger(__name__)


class SurveyStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.questions = QuestionRepository(engine)
        self.responses = ResponseRepository(engine, self.questions.get_questions_with_options)

    @classmethod
    def from_url(cls, url: str) -> "SurveyStore":
        return cls(build_engine(url))

    def migrate(self) -> List[str]:
        return apply_migrations(self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(sql_text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.error("store_ping_failed", exc_info=True)
            return False

    def dispose(self) -> None:
        self.engine.dispose()

    # -- response store contract -----------------------------------------

    def save_response(
        self,
        answers: AnswerSet,
        metadata: Optional[ResponseMetadata] = None,
        raw_payload: Optional[Mapping[str, Any]] = None,
    ) -> SavedResponse:
        saved = self.responses.save(answers, metadata, raw_payload)
        logger.info("response_saved id=%s answers=%s", saved.id, len(answers))
        return saved

    def list_responses(self) -> List[StoredResponse]:
        return self.responses.list_all()

    def count_responses(self) -> int:
        return self.responses.count()

    def list_responses_in_range(self, start: datetime, end: datetime) -> List[StoredResponse]:
        return self.responses.list_between(start, end)

    def get_questions_with_options(self) -> List[Question]:
        return self.questions.get_questions_with_options()


__all__ = ["SurveyStore"]
