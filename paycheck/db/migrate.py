"""Small idempotent migrations for databases created by earlier releases.

``create_all`` builds missing tables but never touches existing ones. Columns
added after the first release are listed in ``ADDED_COLUMNS`` and appended with
``ALTER TABLE`` when absent. Nothing is ever dropped.
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger("paycheck.migrate")

# table -> [(column, DDL fragment)]
ADDED_COLUMNS: dict[str, list[tuple[str, str]]] = {
    "users": [
        ("google_id", "google_id TEXT"),
        ("is_verified", "is_verified BOOLEAN NOT NULL DEFAULT 0"),
        ("updated_at", "updated_at TEXT NOT NULL DEFAULT ''"),
    ],
    "canvases": [
        ("data", "data TEXT"),
        ("updated_at", "updated_at TEXT NOT NULL DEFAULT ''"),
    ],
    "preferences": [
        ("updated_at", "updated_at TEXT NOT NULL DEFAULT ''"),
    ],
}

INDEXES: list[tuple[str, str, tuple[str, ...]]] = [
    ("ix_users_google_id", "users", ("google_id",)),
    ("ix_panels_canvas_id", "panels", ("canvas_id",)),
]


def _column_names(engine: Engine, table: str) -> set[str]:
    return {column["name"] for column in inspect(engine).get_columns(table)}


def _add_column(engine: Engine, table: str, col_def: str) -> None:
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))


def _create_index_if_not_exists(engine: Engine, name: str, table: str, cols: Iterable[str]) -> None:
    cols_sql = ", ".join(cols)
    with engine.begin() as conn:
        conn.execute(text(f"CREATE INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


def run_migrations(engine: Engine) -> list[str]:
    """Bring an existing database up to the current schema. Returns applied steps."""

    applied: list[str] = []
    existing_tables = set(inspect(engine).get_table_names())
    for table, columns in ADDED_COLUMNS.items():
        if table not in existing_tables:
            continue
        present = _column_names(engine, table)
        for name, col_def in columns:
            if name in present:
                continue
            _add_column(engine, table, col_def)
            applied.append(f"{table}.{name}")
            logger.info("migration.column_added", extra={"extra_data": {"table": table, "column": name}})
    for name, table, cols in INDEXES:
        if table in existing_tables:
            _create_index_if_not_exists(engine, name, table, cols)
    return applied
