"""Functional test bootstrap for the survey service.

Every test gets its own file-backed SQLite database under pytest's tmp_path
so the store, the app and direct SQL checks see the same data across
connections. `TEST_DATABASE_URL` is pointed at it for code paths that read
configuration from the environment.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterator

import pytest
from fastapi.testclient import TestClient

from survey_service.config import AppConfig, DatabaseConfig, MigrationsConfig, SurveyConfig
from survey_service.db.store import SurveyStore
from survey_service.logic import events
from survey_service.logic.question_catalog import seed_catalog
from survey_service.main import create_app

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SCHEMAS_DIR = PROJECT_ROOT / "docs" / "schemas"

# One valid value per required question; 6 and 17 are left to each test.
REQUIRED_DEFAULTS: Dict[str, Any] = {
    "1": "heard_used",
    "3": "daily",
    "4": "android",
    "5": "mobile",
    "7": "chinese",
    "8": "often",
    "9": "yes",
    "10": "food",
    "11": "yes",
    "12": "25_34",
    "13": "single",
    "14": "below_20k",
    "15": "tertiary",
    "16": "yes",
}


@pytest.fixture(autouse=True)
def _clear_event_buffer() -> Iterator[None]:
    events.get_buffered_events(clear=True)
    yield
    events.get_buffered_events(clear=True)


@pytest.fixture
def db_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    url = f"sqlite:///{tmp_path / 'survey_test.db'}"
    monkeypatch.setenv("TEST_DATABASE_URL", url)
    return url


@pytest.fixture
def empty_store(db_url: str) -> Iterator[SurveyStore]:
    """Migrated store with no questions."""
    store = SurveyStore.from_url(db_url)
    store.migrate()
    yield store
    store.dispose()


@pytest.fixture
def store(empty_store: SurveyStore) -> SurveyStore:
    """Migrated store seeded with the question catalog."""
    seed_catalog(empty_store)
    return empty_store


@pytest.fixture
def app_config(db_url: str) -> AppConfig:
    return AppConfig(
        database=DatabaseConfig(dsn=db_url),
        survey=SurveyConfig(daily_series_days=30, seed_questions=True),
        migrations=MigrationsConfig(auto_apply=True),
    )


@pytest.fixture
def client(store: SurveyStore, app_config: AppConfig) -> Iterator[TestClient]:
    with TestClient(create_app(app_config, store)) as c:
        yield c


@pytest.fixture
def complete_answers() -> Callable[..., Dict[str, Any]]:
    """Factory for a document answering every required question."""

    def _build(**overrides: Any) -> Dict[str, Any]:
        doc = dict(REQUIRED_DEFAULTS)
        for key, value in overrides.items():
            qid = key.lstrip("q")
            if value is None:
                doc.pop(qid, None)
            else:
                doc[qid] = value
        return doc

    return _build


@pytest.fixture
def load_schema() -> Callable[[str], Dict[str, Any]]:
    def _load(name: str) -> Dict[str, Any]:
        path = SCHEMAS_DIR / name
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            pytest.fail(f"Expected schema is missing: {path}")

    return _load
