"""Database migration runner for production.

Goal:
- Prefer Alembic migrations for deterministic schema management.
- If the database is already at the desired schema but Alembic history is out of sync
  (e.g., tables were created by `create_all()`), detect that safely and `stamp head`.

Run as a one-off deploy step: `python -m carshopwatch.database.migrate_runner`.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import List, Tuple

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from carshopwatch.database.database import DATABASE_URL, _is_sqlite_url, build_engine

logger = logging.getLogger(__name__)


def _alembic_cfg() -> Config:
    cfg = Config(os.getenv("ALEMBIC_INI", "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", DATABASE_URL)
    return cfg


def _required_schema_checks() -> List[Tuple[str, str]]:
    """Return (kind, name) checks required to safely stamp head."""
    return [
        ("table", "users"),
        ("table", "user_logs"),
        ("table", "monitored_users"),
        # columns read by the monitor sweep
        ("column:user_logs", "action"),
        ("column:user_logs", "timestamp"),
        ("column:monitored_users", "status"),
        ("column:monitored_users", "last_updated"),
        # one-active-entry invariant
        ("index:monitored_users", "uq_monitored_users_active_reason"),
    ]


def _missing_requirements(engine) -> List[str]:
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())
    missing: List[str] = []
    for kind, name in _required_schema_checks():
        if kind == "table":
            if name not in tables:
                missing.append(f"missing table: {name}")
            continue
        table = kind.split(":", 1)[1]
        if table not in tables:
            missing.append(f"missing {kind.split(':', 1)[0]}: {table}.{name}")
        elif kind.startswith("column:"):
            if name not in {col["name"] for col in inspector.get_columns(table)}:
                missing.append(f"missing column: {table}.{name}")
        elif kind.startswith("index:"):
            if name not in {idx["name"] for idx in inspector.get_indexes(table)}:
                missing.append(f"missing index: {table}.{name}")
        else:
            missing.append(f"unknown check: {kind} {name}")
    return missing


def main() -> int:
    if _is_sqlite_url(DATABASE_URL):
        # In dev/test, Alembic isn't required; but running upgrade is harmless when used.
        command.upgrade(_alembic_cfg(), "head")
        return 0

    engine = build_engine(DATABASE_URL)

    try:
        command.upgrade(_alembic_cfg(), "head")
        return 0
    except Exception as e:
        msg = str(e).lower()
        looks_like_already_applied = any(
            s in msg
            for s in [
                "duplicate",
                "already exists",
                "duplicate_table",
                "relation",
                "exists",
            ]
        )
        if not looks_like_already_applied:
            raise

        # Only stamp head if we can verify the expected schema is present.
        missing = _missing_requirements(engine)
        if missing:
            raise RuntimeError(
                "Alembic upgrade failed and schema is not at expected baseline; refusing to stamp head. "
                + "; ".join(missing)
            ) from e

        logger.warning("Schema already present; stamping Alembic head")
        command.stamp(_alembic_cfg(), "head")
        return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
