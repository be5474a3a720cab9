from datetime import date

import pytest

from app.core.exceptions import SubstituteConflictError, ValidationError
from app.models.leave_request import LeaveRequest, LeaveStatus
from app.models.user import UserRole
from app.schemas.leave import PeriodAdjustmentIn
from app.services.substitution import available_substitutes, ensure_substitutes_available, has_approved_leave


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


def test_has_approved_leave_is_inclusive(db_session, make_department, make_user):
    department = make_department()
    colleague = make_user("Vikram Shah", UserRole.teaching, department)
    _leave(db_session, colleague, date(2030, 1, 7), date(2030, 1, 9))
    _leave(db_session, colleague, date(2030, 1, 20), date(2030, 1, 20), status=LeaveStatus.pending_hod)

    assert has_approved_leave(db_session, colleague.id, date(2030, 1, 7))
    assert has_approved_leave(db_session, colleague.id, date(2030, 1, 9))
    assert not has_approved_leave(db_session, colleague.id, date(2030, 1, 10))
    assert not has_approved_leave(db_session, colleague.id, date(2030, 1, 20))


def test_substitute_on_approved_leave_is_rejected(db_session, make_department, make_user):
    department = make_department()
    teacher = make_user("Asha Rao", UserRole.teaching, department)
    colleague = make_user("Vikram Shah", UserRole.teaching, department)
    _leave(db_session, colleague, date(2030, 1, 7), date(2030, 1, 9))

    adjustments = [
        PeriodAdjustmentIn(date=date(2030, 1, 8), period=1, class_name="CSE-A", substitute_faculty_id=colleague.id)
    ]
    with pytest.raises(SubstituteConflictError) as excinfo:
        ensure_substitutes_available(db_session, adjustments, employee_id=teacher.id)

    assert "Vikram Shah" in excinfo.value.message
    assert "2030-01-08" in excinfo.value.message
    assert excinfo.value.status_code == 409


def test_substitute_cannot_be_the_employee(db_session, make_department, make_user):
    department = make_department()
    teacher = make_user("Asha Rao", UserRole.teaching, department)
    adjustments = [
        PeriodAdjustmentIn(date=date(2030, 1, 8), period=1, class_name="CSE-A", substitute_faculty_id=teacher.id)
    ]

    with pytest.raises(ValidationError):
        ensure_substitutes_available(db_session, adjustments, employee_id=teacher.id)


def test_unassigned_periods_are_not_checked(db_session):
    adjustments = [PeriodAdjustmentIn(date=date(2030, 1, 8), period=1, class_name="CSE-A")]
    ensure_substitutes_available(db_session, adjustments, employee_id="anyone")


def test_available_substitutes_excludes_colleagues_on_leave(db_session, make_department, make_user):
    department = make_department()
    other_department = make_department(name="Mechanical")
    teacher = make_user("Asha Rao", UserRole.teaching, department)
    free = make_user("Bala Iyer", UserRole.teaching, department)
    hod = make_user("Chitra Nair", UserRole.hod, department)
    away = make_user("Vikram Shah", UserRole.teaching, department)
    make_user("Office Clerk", UserRole.non_teaching, department)
    make_user("Mech Teacher", UserRole.teaching, other_department)
    _leave(db_session, away, date(2030, 1, 8), date(2030, 1, 8))

    candidates = available_substitutes(db_session, teacher, date(2030, 1, 7), date(2030, 1, 9))

    assert [item.id for item in candidates] == [free.id, hod.id]
