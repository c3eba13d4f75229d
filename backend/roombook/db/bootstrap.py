from __future__ import annotations

import logging

from sqlalchemy import inspect

from roombook.db.base import Base
from roombook.db.session import engine
import roombook.models  # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "is_active"},
    "rooms": {"id", "code", "status", "faculty_id"},
    "courses": {"id", "code", "professor_id", "academic_period_id"},
    "reservations": {
        "id",
        "room_id",
        "start_datetime",
        "end_datetime",
        "status",
        "recurring_template_id",
        "created_by",
    },
    "notifications": {"id", "user_id", "notification_type", "is_read"},
    "cleaning_reports": {"id", "room_id", "cleaning_date", "is_cleaned", "observations"},
}


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema bootstrap failed")
        raise RuntimeError("Runtime schema bootstrap failed") from exc
