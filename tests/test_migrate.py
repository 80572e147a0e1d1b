"""Tests for the in-place schema upgrades."""

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

from paycheck.db.migrate import run_migrations


def _legacy_engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE users (id TEXT PRIMARY KEY, email TEXT NOT NULL UNIQUE, name TEXT NOT NULL, "
                "password_hash TEXT, created_at TEXT NOT NULL)"
            )
        )
        conn.execute(
            text("CREATE TABLE canvases (id INTEGER PRIMARY KEY, user_id TEXT NOT NULL, title TEXT NOT NULL, created_at TEXT NOT NULL)")
        )
        conn.execute(
            text("INSERT INTO users (id, email, name, password_hash, created_at) VALUES ('u1', 'a@example.com', 'A', 'x', 'now')")
        )
    return engine


def test_missing_columns_are_added_once():
    engine = _legacy_engine()
    applied = run_migrations(engine)
    assert applied == [
        "users.google_id",
        "users.is_verified",
        "users.updated_at",
        "canvases.data",
        "canvases.updated_at",
    ]
    columns = {column["name"] for column in inspect(engine).get_columns("users")}
    assert {"google_id", "is_verified", "updated_at"} <= columns
    with engine.connect() as conn:
        assert conn.execute(text("SELECT is_verified FROM users WHERE id = 'u1'")).scalar() == 0

    assert run_migrations(engine) == []


def test_absent_tables_are_skipped():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    assert run_migrations(engine) == []
