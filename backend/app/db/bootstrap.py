from __future__ import annotations

import logging

from sqlalchemy import inspect

from app.core.config import get_settings
from app.db.base import Base
from app.db.session import engine
import app.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role", "department_id", "joining_date"},
    "leave_policies": {"id", "name", "allowed_leaves", "roles", "leave_effect", "start_date", "end_date"},
    "leave_accounts": {
        "id",
        "employee_id",
        "leave_policy_id",
        "total_leaves",
        "used_leaves",
        "carry_forward_leaves",
        "credited_leaves",
    },
    "leave_requests": {"id", "employee_id", "leave_policy_id", "status", "start_date", "end_date", "total_days"},
    "leave_period_adjustments": {"id", "leave_request_id", "date", "period", "status", "notification_status"},
    "timetables": {"id", "department_id", "class_name", "entries"},
    "notifications": {"id", "user_id", "leave_request_id", "notification_type", "is_read"},
}


def missing_schema_items(connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(columns - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_runtime_schema() -> None:
    settings = get_settings()
    if settings.database_auto_create:
        Base.metadata.create_all(bind=engine)

    with engine.connect() as connection:
        missing_tables, missing_columns = missing_schema_items(connection)
    if missing_tables or missing_columns:
        logger.warning(
            "Database schema is behind the models (missing tables: %s, missing columns: %s); run alembic upgrade",
            missing_tables,
            missing_columns,
        )
