from __future__ import annotations

import logging

from sqlalchemy import inspect

from examplanner.core.config import get_settings
from examplanner.core.exceptions import ConfigurationError
from examplanner.db.base import Base
from examplanner.db.session import engine
import examplanner.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "departments": {"id", "name"},
    "rooms": {"id", "name", "capacity"},
    "teachers": {"id", "name"},
    "teacher_availability": {"id", "teacher_id", "day_of_week"},
    "courses": {"id", "code", "name", "department_id", "class_level"},
    "exam_requests": {"id", "course_id", "teacher_id", "student_count", "duration_minutes"},
    "schedules": {"id", "name", "days", "slots"},
    "exam_sessions": {
        "id",
        "schedule_id",
        "course_id",
        "teacher_id",
        "day_of_week",
        "slot_index",
        "start_minute_of_day",
        "end_minute_of_day",
        "duration_minutes",
    },
    "exam_room_allocations": {"id", "exam_session_id", "room_id", "assigned_students"},
}


def find_schema_gaps(connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
    missing_columns: dict[str, list[str]] = {}
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(required - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        missing_tables, missing_columns = find_schema_gaps(connection)
    if missing_tables:
        raise ConfigurationError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flat = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise ConfigurationError(f"Missing required columns: {', '.join(flat)}")


def ensure_runtime_schema() -> None:
    settings = get_settings()
    try:
        if settings.auto_create_tables:
            Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema bootstrap failed")
        raise RuntimeError("Runtime schema bootstrap failed") from exc
