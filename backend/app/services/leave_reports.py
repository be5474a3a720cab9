from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.models.department import Department
from app.models.leave_account import LeaveAccount
from app.models.leave_policy import LeavePolicy
from app.models.leave_request import LeaveRequest, LeaveStatus
from app.models.user import STAFF_ROLES, User
from app.schemas.leave_policy import FacultyLeaveAnalyticsRow, FacultyLeaveBalanceRow, LeaveSummaryRow
from app.services.leave_accounts import allotted_leaves, remaining_leaves, total_available


def _overlap_days(start_a: date, end_a: date, start_b: date, end_b: date) -> int:
    start = max(start_a, start_b)
    end = min(end_a, end_b)
    return (end - start).days + 1 if end >= start else 0


def _accounts_with_policies(db: Session, employee_ids: list[str]) -> list[tuple[LeaveAccount, LeavePolicy]]:
    if not employee_ids:
        return []
    return list(
        db.execute(
            select(LeaveAccount, LeavePolicy)
            .join(LeavePolicy, LeavePolicy.id == LeaveAccount.leave_policy_id)
            .where(LeaveAccount.employee_id.in_(employee_ids))
            .order_by(LeaveAccount.created_at.desc())
        )
    )


def faculty_leave_summary(db: Session, employee_id: str) -> list[LeaveSummaryRow]:
    rows: list[LeaveSummaryRow] = []
    for account, policy in _accounts_with_policies(db, [employee_id]):
        rows.append(
            LeaveSummaryRow(
                leave_policy_id=policy.id,
                name=policy.name,
                effect=policy.leave_effect,
                allowed=allotted_leaves(account, policy.leave_effect),
                carry_forward=account.carry_forward_leaves or 0,
                used=account.used_leaves or 0,
                total_available=total_available(account, policy.leave_effect),
                remaining=remaining_leaves(account, policy.leave_effect),
                half_day_allowed=policy.is_half_day_allowed,
            )
        )
    return rows


def _department_staff(db: Session, department_id: str) -> list[User]:
    if db.get(Department, department_id) is None:
        raise ResourceNotFoundError("Department", department_id)
    return list(
        db.execute(
            select(User)
            .where(User.department_id == department_id, User.role.in_(list(STAFF_ROLES)))
            .order_by(User.name)
        ).scalars()
    )


def department_leave_balance(db: Session, department_id: str, month: int, year: int) -> dict:
    if month < 1 or month > 12:
        raise ValidationError("Month must be between 1 and 12")
    staff = _department_staff(db, department_id)
    days_in_month = calendar.monthrange(year, month)[1]
    month_start = date(year, month, 1)
    month_end = date(year, month, days_in_month)

    staff_ids = [item.id for item in staff]
    totals: dict[str, dict[str, float]] = defaultdict(lambda: {"allocated": 0.0, "used": 0.0, "remaining": 0.0})
    for account, policy in _accounts_with_policies(db, staff_ids):
        bucket = totals[account.employee_id]
        bucket["allocated"] += total_available(account, policy.leave_effect)
        bucket["used"] += account.used_leaves or 0
        bucket["remaining"] += remaining_leaves(account, policy.leave_effect)

    used_in_month: dict[str, int] = defaultdict(int)
    if staff_ids:
        approved = db.execute(
            select(LeaveRequest).where(
                LeaveRequest.employee_id.in_(staff_ids),
                LeaveRequest.status == LeaveStatus.approved,
                LeaveRequest.start_date <= month_end,
                LeaveRequest.end_date >= month_start,
            )
        ).scalars()
        for request in approved:
            used_in_month[request.employee_id] += _overlap_days(
                request.start_date, request.end_date, month_start, month_end
            )

    return {
        "department_id": department_id,
        "month": month,
        "year": year,
        "days_in_month": days_in_month,
        "faculty": [
            FacultyLeaveBalanceRow(
                faculty_id=member.id,
                name=member.name,
                email=member.email,
                role=member.role,
                total_allocated=totals[member.id]["allocated"],
                total_used=totals[member.id]["used"],
                total_remaining=totals[member.id]["remaining"],
                used_in_month=used_in_month[member.id],
            )
            for member in staff
        ],
    }


def department_leave_analytics(db: Session, department_id: str, year: int) -> list[FacultyLeaveAnalyticsRow]:
    staff = _department_staff(db, department_id)
    stats = {member.id: {"total_days": 0, "leave_count": 0} for member in staff}
    if stats:
        approved = db.execute(
            select(LeaveRequest).where(
                LeaveRequest.employee_id.in_(list(stats)),
                LeaveRequest.status == LeaveStatus.approved,
                LeaveRequest.start_date >= date(year, 1, 1),
                LeaveRequest.start_date <= date(year, 12, 31),
            )
        ).scalars()
        for request in approved:
            stats[request.employee_id]["total_days"] += request.total_days
            stats[request.employee_id]["leave_count"] += 1
    return [
        FacultyLeaveAnalyticsRow(
            faculty_id=member.id,
            name=member.name,
            email=member.email,
            total_days=stats[member.id]["total_days"],
            leave_count=stats[member.id]["leave_count"],
        )
        for member in staff
    ]
