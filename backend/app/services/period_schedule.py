from __future__ import annotations

from datetime import date, timedelta
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.timetable import Timetable
from app.models.user import User
from app.schemas.leave import PeriodOccurrence

logger = logging.getLogger(__name__)

DAY_ORDER = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def day_name(value: date) -> str:
    return DAY_ORDER[value.weekday()]


def iter_dates(start_date: date, end_date: date):
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def _load_department_timetables(db: Session, department_id: str) -> list[Timetable]:
    return list(
        db.execute(
            select(Timetable)
            .where(Timetable.department_id == department_id)
            .order_by(Timetable.class_name, Timetable.semester)
        ).scalars()
    )


def resolve_periods(db: Session, employee_id: str, start_date: date, end_date: date) -> list[PeriodOccurrence]:
    """Every timetable period the employee teaches between the two dates, date-ascending."""
    employee = db.get(User, employee_id)
    if employee is None or not employee.department_id:
        return []

    timetables = _load_department_timetables(db, employee.department_id)
    if not timetables:
        return []

    periods: list[PeriodOccurrence] = []
    for current in iter_dates(start_date, end_date):
        weekday = day_name(current)
        for timetable in timetables:
            for entry in timetable.entries or []:
                if entry.get("day") != weekday or entry.get("faculty_id") != employee_id:
                    continue
                periods.append(
                    PeriodOccurrence(
                        date=current,
                        day=weekday,
                        period=int(entry.get("period")),
                        class_name=timetable.class_name,
                        department_id=employee.department_id,
                        subject_id=entry.get("subject_id"),
                        faculty_id=entry.get("faculty_id"),
                    )
                )
    return periods


def assign_period_faculty(
    db: Session,
    *,
    department_id: str,
    class_name: str,
    day: str,
    period: int,
    faculty_id: str,
    updated_by_id: str | None = None,
) -> bool:
    """Overwrite the faculty of one standing timetable cell. Returns False when no cell matches."""
    candidates = list(
        db.execute(
            select(Timetable)
            .where(Timetable.department_id == department_id, Timetable.class_name == class_name)
            .order_by(Timetable.semester)
        ).scalars()
    )
    for timetable in candidates:
        entries = [dict(item) for item in timetable.entries or []]
        for entry in entries:
            if entry.get("day") == day and int(entry.get("period", 0)) == period:
                entry["faculty_id"] = faculty_id
                timetable.entries = entries
                timetable.updated_by_id = updated_by_id
                db.flush()
                return True

    logger.warning(
        "No timetable cell for %s / %s on %s period %s; substitute %s not applied",
        department_id,
        class_name,
        day,
        period,
        faculty_id,
    )
    return False
