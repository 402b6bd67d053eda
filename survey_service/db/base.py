"""SQLAlchemy engine construction.

The service targets PostgreSQL in production and SQLite for local development
and tests. Engines are built explicitly by the caller (normally `create_app`)
and handed to the store; this module keeps no process-wide engine.
"""

from __future__ import annotations

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def build_engine(url: str) -> Engine:
    """Return a new SQLAlchemy Engine for `url`.

    In-memory SQLite URLs use a StaticPool so every connection sees the same
    database; file-backed SQLite allows cross-thread use for the TestClient.
    """
    kwargs: dict = {"future": True, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url.rstrip("/") in {"sqlite:", "sqlite+pysqlite:"}:
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    logger.info("db_engine_built dialect=%s", engine.dialect.name)
    return engine


def dialect_name(engine: Engine) -> str:
    return (getattr(engine.dialect, "name", "") or "").lower()


def is_sqlite(engine: Engine) -> bool:
    return "sqlite" in dialect_name(engine)


__all__ = ["build_engine", "dialect_name", "is_sqlite"]
