"""Architectural test fixtures: an app instance on a throwaway SQLite database."""

from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from survey_service.config import AppConfig, DatabaseConfig
from survey_service.main import create_app


@pytest.fixture
def client(tmp_path) -> Iterator[TestClient]:
    cfg = AppConfig(database=DatabaseConfig(dsn=f"sqlite:///{tmp_path / 'arch.db'}"))
    app = create_app(cfg)
    with TestClient(app) as c:
        yield c
    app.state.store.dispose()
