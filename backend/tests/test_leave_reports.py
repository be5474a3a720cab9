from datetime import date

import pytest

from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.models.leave_policy import LeaveEffect
from app.models.leave_request import LeaveRequest, LeaveStatus
from app.models.user import UserRole
from app.services import leave_reports


def _leave(db, employee, start, end, status=LeaveStatus.approved):
    request = LeaveRequest(
        employee_id=employee.id,
        leave_policy_id="policy",
        start_date=start,
        end_date=end,
        total_days=(end - start).days + 1,
        description="Conference",
        status=status,
    )
    db.add(request)
    db.flush()
    return request


def test_faculty_leave_summary_splits_by_effect(db_session, make_department, make_user, make_policy_account):
    department = make_department()
    teacher = make_user("Asha Rao", UserRole.teaching, department)
    _, casual = make_policy_account(teacher, allowed=10.0, used=4.0)
    casual.carry_forward_leaves = 2.0
    make_policy_account(teacher, name="Compensatory Off", allowed=3.0, effect=LeaveEffect.ADD, used=1.0)
    db_session.flush()

    rows = {row.name: row for row in leave_reports.faculty_leave_summary(db_session, teacher.id)}

    assert rows["Casual Leave"].allowed == 10.0
    assert rows["Casual Leave"].carry_forward == 2.0
    assert rows["Casual Leave"].total_available == 12.0
    assert rows["Casual Leave"].remaining == 8.0
    assert rows["Compensatory Off"].effect == LeaveEffect.ADD
    assert rows["Compensatory Off"].total_available == 3.0
    assert rows["Compensatory Off"].remaining == 2.0


def test_department_leave_balance_counts_days_inside_month(
    db_session, make_department, make_user, make_policy_account
):
    department = make_department()
    teacher = make_user("Asha Rao", UserRole.teaching, department)
    clerk = make_user("Office Clerk", UserRole.non_teaching, department)
    make_user("Dean Menon", UserRole.director, department)
    make_policy_account(teacher, allowed=10.0, used=5.0)
    _leave(db_session, teacher, date(2030, 1, 30), date(2030, 2, 2))
    _leave(db_session, teacher, date(2030, 2, 10), date(2030, 2, 11))
    _leave(db_session, teacher, date(2030, 2, 20), date(2030, 2, 21), status=LeaveStatus.pending_hod)

    report = leave_reports.department_leave_balance(db_session, department.id, 2, 2030)

    assert report["days_in_month"] == 28
    faculty = {row.faculty_id: row for row in report["faculty"]}
    assert set(faculty) == {teacher.id, clerk.id}
    assert faculty[teacher.id].used_in_month == 4
    assert faculty[teacher.id].total_allocated == 10.0
    assert faculty[teacher.id].total_remaining == 5.0
    assert faculty[clerk.id].used_in_month == 0


def test_department_leave_balance_rejects_bad_input(db_session, make_department):
    department = make_department()

    with pytest.raises(ValidationError):
        leave_reports.department_leave_balance(db_session, department.id, 13, 2030)
    with pytest.raises(ResourceNotFoundError):
        leave_reports.department_leave_balance(db_session, "missing", 2, 2030)


def test_department_leave_analytics_counts_approved_requests(db_session, make_department, make_user):
    department = make_department()
    teacher = make_user("Asha Rao", UserRole.teaching, department)
    hod = make_user("Chitra Nair", UserRole.hod, department)
    _leave(db_session, teacher, date(2030, 3, 2), date(2030, 3, 4))
    _leave(db_session, teacher, date(2030, 5, 1), date(2030, 5, 1))
    _leave(db_session, teacher, date(2029, 12, 30), date(2029, 12, 31))
    _leave(db_session, hod, date(2030, 6, 1), date(2030, 6, 2), status=LeaveStatus.rejected_by_director)

    rows = {row.faculty_id: row for row in leave_reports.department_leave_analytics(db_session, department.id, 2030)}

    assert (rows[teacher.id].total_days, rows[teacher.id].leave_count) == (4, 2)
    assert (rows[hod.id].total_days, rows[hod.id].leave_count) == (0, 0)
