"""Configuration loading for the survey service.

Rules:
- Primary source: `survey_config.json` at the project root.
- Overrides: optional text files under `config/`, then environment variables.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_SURVEY_CONFIG = Path("survey_config.json")
DEFAULT_DSN = "sqlite:///./survey.db"
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _truthy(value: object) -> bool:
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v.strip()


class SurveyConfig(BaseModel):
    daily_series_days: int = Field(default=30, gt=0)
    seed_questions: bool = Field(default=True)


class MigrationsConfig(BaseModel):
    auto_apply: bool = Field(default=True)


class AppConfig(BaseModel):
    database: DatabaseConfig
    survey: SurveyConfig = Field(default_factory=SurveyConfig)
    migrations: MigrationsConfig = Field(default_factory=MigrationsConfig)


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            return data if isinstance(data, dict) else {}
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) survey_config.json at project root
    4) Defaults suitable for local development
    """

    base = _read_json_file(ROOT_SURVEY_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or DEFAULT_DSN
    )
    days_text = (
        _env("SURVEY_DAILY_SERIES_DAYS")
        or _read_config_file("survey.daily_series_days")
        or _base("survey.daily_series_days", "30")
    )
    seed_text = (
        _env("SURVEY_SEED_QUESTIONS")
        or _read_config_file("survey.seed_questions")
        or _base("survey.seed_questions", "true")
    )
    auto_apply_text = (
        _env("AUTO_APPLY_MIGRATIONS")
        or _read_config_file("migrations.auto_apply")
        or _base("migrations.auto_apply", "true")
    )

    try:
        cfg = AppConfig(
            database=DatabaseConfig(dsn=dsn),
            survey=SurveyConfig(
                daily_series_days=int(str(days_text).strip()),
                seed_questions=_truthy(seed_text),
            ),
            migrations=MigrationsConfig(auto_apply=_truthy(auto_apply_text)),
        )
        return cfg
    except (PydanticValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "SurveyConfig",
    "MigrationsConfig",
    "load_config",
]
