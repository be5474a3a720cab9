"""Seed a demo department, staff, a weekly timetable and a casual leave policy.

Run:
  PYTHONPATH=backend python scripts/seed_leave_demo.py
"""

from __future__ import annotations

from datetime import date
import logging
from typing import Iterable

from sqlalchemy import select

from app.db.bootstrap import ensure_runtime_schema
from app.db.session import SessionLocal
from app.models.department import Department
from app.models.leave_policy import LeaveEffect, LeavePolicy
from app.models.timetable import Timetable
from app.models.user import User, UserRole
from app.services.leave_policies import create_policy

DEPARTMENT = "Computer Science"
CLASS_NAME = "CSE-A"

DEMO_ACCOUNTS = {
    "director": {"name": "Demo Director", "email": "director.demo@example.com", "role": UserRole.director},
    "hod": {"name": "Demo HOD", "email": "hod.demo@example.com", "role": UserRole.hod},
    "teacher_1": {"name": "Demo Teacher One", "email": "teacher1.demo@example.com", "role": UserRole.teaching},
    "teacher_2": {"name": "Demo Teacher Two", "email": "teacher2.demo@example.com", "role": UserRole.teaching},
    "office": {"name": "Demo Office Staff", "email": "office.demo@example.com", "role": UserRole.non_teaching},
}


def _upsert_department(session) -> Department:
    department = session.execute(select(Department).where(Department.name == DEPARTMENT)).scalar_one_or_none()
    if department is None:
        department = Department(name=DEPARTMENT, class_names=[CLASS_NAME])
        session.add(department)
        session.flush()
    return department


def _upsert_user(session, *, name: str, email: str, role: UserRole, department_id: str | None) -> User:
    user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(name=name, email=email, role=role, joining_date=date(date.today().year, 1, 1))
        session.add(user)
    user.name = name
    user.role = role
    user.department_id = department_id
    user.is_active = True
    session.flush()
    return user


def _upsert_timetable(session, department: Department, teacher_one: User, teacher_two: User) -> None:
    entries = []
    for day in ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday"):
        entries.append({"day": day, "period": 1, "subject_id": "CS101", "faculty_id": teacher_one.id})
        entries.append({"day": day, "period": 2, "subject_id": "CS102", "faculty_id": teacher_two.id})
    timetable = session.execute(
        select(Timetable).where(Timetable.department_id == department.id, Timetable.class_name == CLASS_NAME)
    ).scalar_one_or_none()
    if timetable is None:
        timetable = Timetable(department_id=department.id, class_name=CLASS_NAME, semester=1, entries=entries)
        session.add(timetable)
    else:
        timetable.entries = entries
    session.flush()


def _print_accounts(items: Iterable[tuple[str, User]]) -> None:
    print("\nDemo staff ready:")
    for label, user in items:
        print(f"  - {label}: {user.email} | id={user.id} | role={user.role.value}")


def main() -> None:
    ensure_runtime_schema()
    with SessionLocal() as session:
        department = _upsert_department(session)
        users = {
            label: _upsert_user(
                session,
                name=details["name"],
                email=details["email"],
                role=details["role"],
                department_id=None if details["role"] == UserRole.director else department.id,
            )
            for label, details in DEMO_ACCOUNTS.items()
        }
        _upsert_timetable(session, department, users["teacher_1"], users["teacher_2"])

        if session.execute(select(LeavePolicy).where(LeavePolicy.name == "Casual Leave")).first() is None:
            year = date.today().year
            create_policy(
                session,
                name="Casual Leave",
                allowed_leaves=12,
                roles=[UserRole.teaching, UserRole.non_teaching, UserRole.hod],
                is_forwarding=True,
                is_half_day_allowed=True,
                leave_effect=LeaveEffect.DEDUCT,
                start_date=date(year, 1, 1),
                end_date=date(year, 12, 31),
            )
        session.commit()
        _print_accounts(users.items())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
