from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import SubstituteConflictError, ValidationError
from app.models.leave_request import LeaveRequest, LeaveStatus
from app.models.user import TEACHING_ROLES, User


def has_approved_leave(db: Session, faculty_id: str, on_date: date) -> bool:
    return (
        db.execute(
            select(LeaveRequest.id)
            .where(
                LeaveRequest.employee_id == faculty_id,
                LeaveRequest.status == LeaveStatus.approved,
                LeaveRequest.start_date <= on_date,
                LeaveRequest.end_date >= on_date,
            )
            .limit(1)
        ).first()
        is not None
    )


def ensure_substitutes_available(db: Session, adjustments, *, employee_id: str) -> None:
    """Reject the first adjustment whose substitute is the leave-taker or already on approved leave."""
    for adjustment in adjustments:
        substitute_id = adjustment.substitute_faculty_id
        if not substitute_id:
            continue
        if substitute_id == employee_id:
            raise ValidationError("Substitute faculty must be different from the employee on leave")
        if has_approved_leave(db, substitute_id, adjustment.date):
            substitute = db.get(User, substitute_id)
            raise SubstituteConflictError(
                substitute.name if substitute else "Selected",
                substitute_id,
                adjustment.date.isoformat(),
            )


def available_substitutes(db: Session, employee: User, start_date: date, end_date: date) -> list[User]:
    if not employee.department_id:
        return []
    colleagues = list(
        db.execute(
            select(User)
            .where(
                User.department_id == employee.department_id,
                User.role.in_(list(TEACHING_ROLES)),
                User.id != employee.id,
                User.is_active.is_(True),
            )
            .order_by(User.name)
        ).scalars()
    )
    if not colleagues:
        return []
    on_leave = set(
        db.execute(
            select(LeaveRequest.employee_id).where(
                LeaveRequest.employee_id.in_([item.id for item in colleagues]),
                LeaveRequest.status == LeaveStatus.approved,
                LeaveRequest.start_date <= end_date,
                LeaveRequest.end_date >= start_date,
            )
        ).scalars()
    )
    return [item for item in colleagues if item.id not in on_leave]
