"""FastAPI application factory for the survey service."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError

from survey_service.config import AppConfig, load_config
from survey_service.db.store import SurveyStore
from survey_service.http.problem import (
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from survey_service.http.request_id import RequestIdMiddleware
from survey_service.logging_setup import configure_logging
from survey_service.logic.question_catalog import seed_catalog
from survey_service.routes import api_router

logger = logging.getLogger(__name__)


def prepare_store(store: SurveyStore, config: AppConfig) -> None:
    """Apply migrations and seed the catalog as configured.

    Migration failures propagate; the service cannot run against an unknown
    schema. Seeding failures are logged by `seed_catalog` and do not block boot.
    """
    if config.migrations.auto_apply:
        applied = store.migrate()
        logger.info("migrations_applied count=%s", len(applied))
    if config.survey.seed_questions:
        seed_catalog(store)


def create_app(config: Optional[AppConfig] = None, store: Optional[SurveyStore] = None) -> FastAPI:
    configure_logging()
    cfg = config or load_config()
    handle = store or SurveyStore.from_url(cfg.database.dsn)
    prepare_store(handle, cfg)

    app = FastAPI(title="Market Survey Service")
    app.state.config = cfg
    app.state.store = handle

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router, prefix="/api")

    @app.get("/health", include_in_schema=False)
    def health(request: Request) -> dict:
        ok = request.app.state.store.ping()
        return {"status": "ok" if ok else "degraded", "db": ok}

    logger.info("app_created dsn_scheme=%s", cfg.database.dsn.split(":", 1)[0])
    return app


__all__ = ["create_app", "prepare_store"]
