"""Operator command line for the survey service.

    survey-service init-db
    survey-service check-questions
    survey-service migrate-legacy --source ./legacy-survey.db
    survey-service serve --host 0.0.0.0 --port 8000
    survey-service take-survey --lang en

Environment is read from `.env.local` and `.env` (explicit variables win),
then resolved through `survey_service.config.load_config`.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from dotenv import load_dotenv
from sqlalchemy.engine import make_url

from survey_service.config import load_config
from survey_service.db.base import build_engine
from survey_service.db.store import SurveyStore
from survey_service.logging_setup import configure_logging
from survey_service.logic.answer_display import normalize_language, option_label, question_text
from survey_service.logic.legacy_migration import migrate_legacy_responses
from survey_service.logic.question_catalog import QUESTIONS, seed_catalog
from survey_service.logic.survey_flow import FlowState, SurveyFlowController
from survey_service.logic.validation import AnswerValidationError
from survey_service.main import prepare_store
from survey_service.models.question import Question, QuestionType
from survey_service.models.response import ResponseMetadata

logger = logging.getLogger(__name__)

CONSOLE_USER_AGENT = "survey-service-cli"


def _load_env() -> None:
    load_dotenv(".env.local", override=False)
    load_dotenv(".env", override=False)


def _open_store() -> SurveyStore:
    cfg = load_config()
    store = SurveyStore.from_url(cfg.database.dsn)
    prepare_store(store, cfg)
    return store


def cmd_init_db(args: argparse.Namespace) -> int:
    cfg = load_config()
    store = SurveyStore.from_url(cfg.database.dsn)
    try:
        applied = store.migrate()
        inserted = seed_catalog(store)
        print(f"migrations applied: {len(applied)}; questions inserted: {inserted}")
        return 0
    finally:
        store.dispose()


def cmd_check_questions(args: argparse.Namespace) -> int:
    store = _open_store()
    try:
        stored = store.get_questions_with_options()
    finally:
        store.dispose()
    for q in stored:
        print(f"{q.id:>3}  [{q.type:<8}] {'*' if q.required else ' '} {q.question}  ({len(q.options or [])} options)")
    print(f"stored: {len(stored)}  catalog: {len(QUESTIONS)}")
    if len(stored) != len(QUESTIONS):
        logger.warning("question_count_mismatch stored=%s catalog=%s", len(stored), len(QUESTIONS))
        return 1
    return 0


def cmd_migrate_legacy(args: argparse.Namespace) -> int:
    source_path = Path(args.source)
    if not source_path.exists():
        print(f"source database not found: {source_path}", file=sys.stderr)
        return 2
    cfg = load_config()
    target_url = make_url(cfg.database.dsn)
    if target_url.get_backend_name() == "sqlite" and target_url.database:
        if Path(target_url.database).resolve() == source_path.resolve():
            print("source and target must be different databases", file=sys.stderr)
            return 2
    source = build_engine(f"sqlite:///{source_path}")
    store = SurveyStore.from_url(cfg.database.dsn)
    try:
        prepare_store(store, cfg)
        result = migrate_legacy_responses(source, store)
    finally:
        source.dispose()
        store.dispose()
    print(f"found: {result['found']}  migrated: {result['migrated']}  failed: {result['failed']}")
    return 0 if result["failed"] == 0 else 1


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("survey_service.main:create_app", factory=True, host=args.host, port=args.port, log_config=None)
    return 0


def _describe(question: Question, lang: str) -> List[str]:
    mark = "*" if question.required else ""
    lines = [f"Q{question.id}{mark}. {question_text(question, lang)}"]
    for i, opt in enumerate(question.options or [], start=1):
        lines.append(f"  {i}) {option_label(question, opt.value, lang)}")
    return lines


def _console_value(question: Question, raw: str) -> object:
    """Map console input to an answer value: option numbers for choices, text otherwise."""
    if question.type == QuestionType.TEXT or not raw:
        return raw
    options = question.options or []
    picks = [p.strip() for p in raw.split(",") if p.strip()]
    values = []
    for pick in picks:
        if not pick.isdigit() or not 1 <= int(pick) <= len(options):
            raise AnswerValidationError([{"question_id": str(question.id), "reason": f"unknown_option:{pick}"}])
        values.append(options[int(pick) - 1].value)
    if question.type == QuestionType.SINGLE:
        if len(values) != 1:
            raise AnswerValidationError([{"question_id": str(question.id), "reason": "expected_single_value"}])
        return values[0]
    return values


def run_console_survey(
    controller: SurveyFlowController,
    lang: str = "zh",
    input_fn: Callable[[str], str] = input,
    output: Callable[[str], None] = print,
) -> Optional[object]:
    """Drive the controller from line input; return the submission id, or None on quit.

    Blank input clears the answer, `b` goes back, `q` quits without saving.
    """
    while controller.state != FlowState.SUBMITTED:
        question = controller.current_question()
        for line in _describe(question, lang):
            output(line)
        raw = input_fn("> ").strip()
        if raw.lower() == "q":
            return None
        if raw.lower() == "b":
            controller.previous()
            continue
        try:
            controller.set_answer(question.id, _console_value(question, raw))
        except AnswerValidationError as exc:
            output(f"! {exc}")
            continue
        if controller.is_last():
            if controller.submit():
                break
            if controller.error:
                output(f"! {controller.error}")
            else:
                missing = [i["question_id"] for i in controller.gating()["blocking_items"]]
                output(f"! required questions unanswered: {missing}")
        elif not controller.next():
            output("! this question is required")
    output(f"submitted: survey_{controller.submission_id}")
    return controller.submission_id


def cmd_take_survey(args: argparse.Namespace) -> int:
    store = _open_store()
    try:
        questions = store.get_questions_with_options() or list(QUESTIONS)
        controller = SurveyFlowController(
            questions,
            lambda answers: store.save_response(answers, ResponseMetadata(user_agent=CONSOLE_USER_AGENT)),
        )
        result = run_console_survey(controller, normalize_language(args.lang))
    finally:
        store.dispose()
    return 0 if result is not None else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="survey-service", description="Market survey service tools")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Apply migrations and seed the question catalog").set_defaults(func=cmd_init_db)
    sub.add_parser("check-questions", help="List stored questions and compare with the catalog").set_defaults(
        func=cmd_check_questions
    )

    legacy = sub.add_parser("migrate-legacy", help="Copy responses from a fixed-column SQLite database")
    legacy.add_argument("--source", required=True, help="Path to the legacy SQLite database file")
    legacy.set_defaults(func=cmd_migrate_legacy)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=cmd_serve)

    take = sub.add_parser("take-survey", help="Answer the questionnaire on the console")
    take.add_argument("--lang", default="zh", choices=["zh", "en"])
    take.set_defaults(func=cmd_take_survey)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    _load_env()
    configure_logging()
    args = build_parser().parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
