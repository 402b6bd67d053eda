"""Lightweight SQL migrations runner.

Applies the `.sql` files shipped under `survey_service/db/migrations/<dialect>/`
in lexical order. Applied filenames are journaled in a `schema_migrations`
table inside the target database, so re-running is a no-op and every database
(including throwaway test databases) carries its own history.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine

from survey_service.db.base import is_sqlite

logger = logging.getLogger(__name__)

MIGRATIONS_ROOT = Path(__file__).resolve().parent / "migrations"

_JOURNAL_DDL = (
    "CREATE TABLE IF NOT EXISTS schema_migrations ("
    " filename TEXT PRIMARY KEY,"
    " applied_at TEXT NOT NULL"
    ")"
)


def migrations_dir_for(engine: Engine) -> Path:
    return MIGRATIONS_ROOT / ("sqlite" if is_sqlite(engine) else "postgres")


def _iter_sql_files(root: Path) -> Iterable[Path]:
    for p in sorted(root.glob("*.sql")):
        if "rollback" in p.name.lower():
            continue
        yield p


def _split_statements(sql: str) -> list[str]:
    lines = [ln for ln in sql.splitlines() if not ln.strip().startswith("--")]
    statements: list[str] = []
    for stmt in "\n".join(lines).split(";"):
        s = stmt.strip()
        if not s or s.upper() in {"BEGIN", "COMMIT", "END"}:
            continue
        statements.append(s)
    return statements


def _exec_sql_compat(conn: Connection, sql: str) -> None:
    """Execute a migration file.

    pysqlite refuses multiple statements per execute() call, so SQLite files
    are split on ';'. Other dialects receive the script as-is.
    """
    if "sqlite" in (conn.dialect.name or "").lower():
        for stmt in _split_statements(sql):
            conn.exec_driver_sql(stmt)
        return
    conn.exec_driver_sql(sql)


def applied_migrations(engine: Engine) -> set[str]:
    with engine.begin() as conn:
        conn.exec_driver_sql(_JOURNAL_DDL)
        rows = conn.execute(sql_text("SELECT filename FROM schema_migrations")).fetchall()
    return {str(r[0]) for r in rows}


def apply_migrations(engine: Engine, migrations_dir: str | os.PathLike[str] | None = None) -> list[str]:
    """Apply pending migrations; return the filenames applied by this call."""
    root = Path(migrations_dir) if migrations_dir is not None else migrations_dir_for(engine)
    if not root.exists():
        logger.warning("migrations_dir_missing path=%s", root)
        return []

    done = applied_migrations(engine)
    newly_applied: list[str] = []
    for sql_path in _iter_sql_files(root):
        fname = sql_path.name
        if fname in done:
            continue
        sql = sql_path.read_text(encoding="utf-8")
        if not sql.strip():
            continue
        with engine.begin() as conn:
            try:
                _exec_sql_compat(conn, sql)
            except Exception as exc:
                # A journal-less SQLite file that already carries the columns
                # reports "duplicate column"; treat it as applied.
                msg = str(exc).lower()
                if is_sqlite(engine) and "duplicate column" in msg:
                    logger.warning("sqlite_migration_tolerated error=%s file=%s", exc, fname)
                else:
                    logger.error("migration_failed file=%s", fname, exc_info=True)
                    raise
            conn.execute(
                sql_text("INSERT INTO schema_migrations (filename, applied_at) VALUES (:f, :at)"),
                {
                    "f": fname,
                    "at": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
                },
            )
        newly_applied.append(fname)
        logger.info("migration_applied file=%s", fname)
    return newly_applied


__all__ = ["apply_migrations", "applied_migrations", "migrations_dir_for", "MIGRATIONS_ROOT"]
