from __future__ import annotations

import logging

from sqlalchemy import inspect

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role"},
    "courses": {"id", "code", "title", "start_date", "duration", "duration_unit", "is_public"},
    "schedule_slots": {"id", "course_id", "day_of_week", "start_time", "end_time", "is_active"},
    "assignments": {"id", "course_id", "due_date", "is_published"},
    "enrollments": {"id", "user_id", "course_id", "status"},
    "activity_logs": {"id", "action", "entity_type", "entity_id", "details"},
}


def schema_gaps(connection) -> tuple[list[str], dict[str, list[str]]]:
    """Tables and columns from REQUIRED_COLUMNS that the connected database lacks."""
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
    missing_columns: dict[str, list[str]] = {}
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name in missing_tables:
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        gaps = sorted(required - existing)
        if gaps:
            missing_columns[table_name] = gaps
    return missing_tables, missing_columns


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        missing_tables, missing_columns = schema_gaps(connection)
    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        described = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(described)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        # Alembic owns upgrades; this only fills in a fresh database.
        Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
