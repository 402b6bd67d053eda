"""Configuration precedence and the operator command line."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from survey_service import cli
from survey_service.config import DEFAULT_DSN, load_config
from survey_service.db.store import SurveyStore
from survey_service.logic.question_catalog import QUESTIONS
from survey_service.logic.survey_flow import SurveyFlowController

_ENV_KEYS = ("TEST_DATABASE_URL", "DATABASE_URL", "SURVEY_DAILY_SERIES_DAYS", "SURVEY_SEED_QUESTIONS", "AUTO_APPLY_MIGRATIONS")


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# -----------------------------
# Configuration
# -----------------------------


def test_defaults_without_any_source(clean_env):
    cfg = load_config()
    assert cfg.database.dsn == DEFAULT_DSN
    assert cfg.survey.daily_series_days == 30
    assert cfg.survey.seed_questions is True
    assert cfg.migrations.auto_apply is True


def test_precedence_env_over_files_over_json(clean_env, monkeypatch):
    (clean_env / "survey_config.json").write_text(
        json.dumps({"database": {"dsn": "sqlite:///json.db"}, "survey": {"daily_series_days": 7}}),
        encoding="utf-8",
    )
    assert load_config().database.dsn == "sqlite:///json.db"
    assert load_config().survey.daily_series_days == 7

    (clean_env / "config").mkdir()
    (clean_env / "config" / "database.url").write_text("sqlite:///file.db\n", encoding="utf-8")
    assert load_config().database.dsn == "sqlite:///file.db"

    monkeypatch.setenv("DATABASE_URL", "sqlite:///env.db")
    assert load_config().database.dsn == "sqlite:///env.db"
    monkeypatch.setenv("TEST_DATABASE_URL", "sqlite:///test.db")
    assert load_config().database.dsn == "sqlite:///test.db"


def test_flags_parse_truthy_strings(clean_env, monkeypatch):
    monkeypatch.setenv("SURVEY_SEED_QUESTIONS", "0")
    monkeypatch.setenv("AUTO_APPLY_MIGRATIONS", "no")
    cfg = load_config()
    assert cfg.survey.seed_questions is False
    assert cfg.migrations.auto_apply is False


def test_non_positive_series_length_is_rejected(clean_env, monkeypatch):
    monkeypatch.setenv("SURVEY_DAILY_SERIES_DAYS", "0")
    with pytest.raises(ValidationError):
        load_config()


def test_non_numeric_series_length_is_rejected(clean_env, monkeypatch):
    monkeypatch.setenv("SURVEY_DAILY_SERIES_DAYS", "thirty")
    with pytest.raises(ValueError):
        load_config()


# -----------------------------
# CLI
# -----------------------------


def test_init_db_then_check_questions(clean_env, monkeypatch, capsys):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{clean_env / 'cli.db'}")
    assert cli.main(["init-db"]) == 0
    assert f"questions inserted: {len(QUESTIONS)}" in capsys.readouterr().out
    assert cli.main(["check-questions"]) == 0
    assert f"stored: {len(QUESTIONS)}  catalog: {len(QUESTIONS)}" in capsys.readouterr().out


def test_migrate_legacy_requires_existing_source(clean_env, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{clean_env / 'cli.db'}")
    assert cli.main(["migrate-legacy", "--source", str(clean_env / "missing.db")]) == 2


def test_migrate_legacy_refuses_same_database(clean_env, monkeypatch):
    target = clean_env / "cli.db"
    target.touch()
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{target}")
    assert cli.main(["migrate-legacy", "--source", str(target)]) == 2


def _scripted(lines):
    feed = iter(lines)
    return lambda prompt: next(feed)


def test_console_survey_submits_through_the_store(store):
    controller = SurveyFlowController(QUESTIONS, store.save_response)
    # Q1..Q17 with Q4=ios hides Q6; blank skips optional Q2 and Q17.
    script = ["1", "", "1", "2", "1", "1", "1", "1", "1", "1", "2", "1", "1", "3", "1", ""]
    output = []
    result = cli.run_console_survey(controller, "en", _scripted(script), output.append)
    assert result is not None
    [row] = store.list_responses()
    assert row.answers["4"] == "ios"
    assert "6" not in row.answers and "2" not in row.answers
    assert output[-1] == f"submitted: survey_{row.id}"


def test_console_survey_reprompts_required_question_and_quits(store):
    controller = SurveyFlowController(QUESTIONS, store.save_response)
    output = []
    assert cli.run_console_survey(controller, "zh", _scripted(["", "9", "q"]), output.append) is None
    assert "! this question is required" in output
    assert any(line.startswith("! ") and "unknown_option" in line for line in output)
    assert store.count_responses() == 0
