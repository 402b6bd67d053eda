"""Database bootstrap utilities.

Exposes engine construction and the SQL migrations runner. The store handle
lives in `survey_service.db.store`.
"""

from survey_service.db.base import build_engine
from survey_service.db.migrations_runner import apply_migrations

__all__ = ["build_engine", "apply_migrations"]
