from datetime import date

import pytest
from sqlalchemy import event, select

from app.core.exceptions import ResourceNotFoundError, StateConflictError, ValidationError
from app.models.leave_account import LeaveAccount
from app.models.leave_policy import LeaveEffect
from app.models.user import UserRole
from app.services import leave_policies
from app.services.leave_accounts import available_balance, round_to_half_day


def _create(db, **overrides):
    values = {
        "name": "Casual Leave",
        "allowed_leaves": 12,
        "roles": [UserRole.teaching],
        "is_forwarding": False,
        "is_half_day_allowed": True,
        "leave_effect": LeaveEffect.DEDUCT,
        "start_date": date(2030, 1, 1),
        "end_date": date(2030, 12, 31),
    }
    values.update(overrides)
    return leave_policies.create_policy(db, **values)


def _account(db, employee_id, policy_id):
    return db.execute(
        select(LeaveAccount).where(
            LeaveAccount.employee_id == employee_id,
            LeaveAccount.leave_policy_id == policy_id,
        )
    ).scalar_one_or_none()


def test_round_to_half_day():
    assert round_to_half_day(6.049) == 6.0
    assert round_to_half_day(6.25) == 6.5
    assert round_to_half_day(6.74) == 6.5
    assert round_to_half_day(6.75) == 7.0


def test_prorated_allocation_covers_joining_mid_window():
    amount = leave_policies.prorated_allocation(
        allowed_leaves=12,
        policy_start=date(2030, 1, 1),
        policy_end=date(2030, 12, 31),
        joining_date=date(2030, 7, 1),
    )
    assert amount == 6.0

    assert leave_policies.prorated_allocation(
        allowed_leaves=12,
        policy_start=date(2030, 1, 1),
        policy_end=date(2030, 12, 31),
        joining_date=date(2024, 3, 1),
    ) == 12.0

    assert leave_policies.prorated_allocation(
        allowed_leaves=12,
        policy_start=date(2030, 1, 1),
        policy_end=date(2030, 12, 31),
        joining_date=date(2031, 1, 5),
    ) is None


def test_create_policy_allocates_matching_roles_only(db_session, make_department, make_user):
    department = make_department()
    veteran = make_user("Asha Rao", UserRole.teaching, department)
    newcomer = make_user("Vikram Shah", UserRole.teaching, department, joining_date=date(2030, 7, 1))
    late = make_user("Late Joiner", UserRole.teaching, department, joining_date=date(2031, 2, 1))
    clerk = make_user("Office Clerk", UserRole.non_teaching, department)

    outcome = _create(db_session)

    assert outcome.allocated == 2
    assert outcome.skipped == 1
    assert outcome.errors == []
    assert _account(db_session, veteran.id, outcome.policy.id).total_leaves == 12.0
    assert _account(db_session, newcomer.id, outcome.policy.id).total_leaves == 6.0
    assert _account(db_session, late.id, outcome.policy.id) is None
    assert _account(db_session, clerk.id, outcome.policy.id) is None


def test_add_policy_credits_instead_of_totals(db_session, make_department, make_user):
    department = make_department()
    employee = make_user("Asha Rao", UserRole.teaching, department)

    outcome = _create(db_session, name="Compensatory Off", allowed_leaves=4, leave_effect=LeaveEffect.ADD)
    account = _account(db_session, employee.id, outcome.policy.id)

    assert account.total_leaves == 0.0
    assert account.credited_leaves == 4.0
    assert available_balance(account, LeaveEffect.ADD) == 4.0


def test_create_policy_rejects_bad_input(db_session):
    with pytest.raises(ValidationError):
        _create(db_session, start_date=date(2030, 12, 31), end_date=date(2030, 1, 1))
    with pytest.raises(ValidationError):
        _create(db_session, roles=[])

    _create(db_session)
    with pytest.raises(StateConflictError):
        _create(db_session, name="casual leave")


def test_yearly_reset_with_forwarding(db_session, make_department, make_user):
    department = make_department()
    employee = make_user("Asha Rao", UserRole.teaching, department)
    outcome = _create(db_session, allowed_leaves=10, is_forwarding=True)
    account = _account(db_session, employee.id, outcome.policy.id)
    account.used_leaves = 7.0
    db_session.flush()

    assert leave_policies.yearly_reset(db_session, outcome.policy) == 1

    assert account.carry_forward_leaves == 3.0
    assert account.total_leaves == 13.0
    assert account.used_leaves == 0.0


def test_yearly_reset_without_forwarding_restores_full_allowance(db_session, make_department, make_user):
    department = make_department()
    newcomer = make_user("Vikram Shah", UserRole.teaching, department, joining_date=date(2030, 7, 1))
    outcome = _create(db_session, allowed_leaves=12)
    account = _account(db_session, newcomer.id, outcome.policy.id)
    account.used_leaves = 2.0
    db_session.flush()

    leave_policies.yearly_reset(db_session, outcome.policy)

    assert account.carry_forward_leaves == 0.0
    assert account.total_leaves == 12.0
    assert account.used_leaves == 0.0


def test_yearly_reset_all_reports_per_policy(db_session, make_department, make_user):
    department = make_department()
    make_user("Asha Rao", UserRole.teaching, department)
    casual = _create(db_session)
    medical = _create(db_session, name="Medical Leave", allowed_leaves=8)

    summary = leave_policies.yearly_reset_all(db_session)

    assert summary == {casual.policy.id: 1, medical.policy.id: 1}


def test_update_policy_resets_deduct_totals(db_session, make_department, make_user):
    department = make_department()
    employee = make_user("Asha Rao", UserRole.teaching, department)
    outcome = _create(db_session)

    leave_policies.update_policy(db_session, outcome.policy.id, allowed_leaves=15, is_forwarding=True)

    assert outcome.policy.allowed_leaves == 15.0
    assert outcome.policy.is_forwarding is True
    assert _account(db_session, employee.id, outcome.policy.id).total_leaves == 15.0


def test_delete_policy_cascades_accounts(db_session, make_department, make_user):
    department = make_department()
    employee = make_user("Asha Rao", UserRole.teaching, department)
    outcome = _create(db_session)
    policy_id = outcome.policy.id

    assert leave_policies.delete_policy(db_session, policy_id) == 1

    assert _account(db_session, employee.id, policy_id) is None
    with pytest.raises(ResourceNotFoundError):
        leave_policies.get_policy(db_session, policy_id)


def test_search_policies_is_case_insensitive(db_session):
    _create(db_session)
    _create(db_session, name="Medical Leave")

    names = [item.name for item in leave_policies.search_policies(db_session, "MEDICAL")]

    assert names == ["Medical Leave"]


def test_failed_account_insert_keeps_policy_and_other_accounts(db_session, make_department, make_user):
    department = make_department()
    healthy = make_user("Asha Rao", UserRole.teaching, department)
    broken = make_user("Vikram Shah", UserRole.teaching, department)

    def fail_for_broken(mapper, connection, target):
        if target.employee_id == broken.id:
            raise RuntimeError("account insert failed")

    event.listen(LeaveAccount, "before_insert", fail_for_broken)
    try:
        outcome = _create(db_session)
    finally:
        event.remove(LeaveAccount, "before_insert", fail_for_broken)

    assert outcome.allocated == 1
    assert len(outcome.errors) == 1
    assert outcome.errors[0]["employee_id"] == broken.id
    assert leave_policies.get_policy(db_session, outcome.policy.id).name == "Casual Leave"
    assert _account(db_session, healthy.id, outcome.policy.id).total_leaves == 12.0
    assert _account(db_session, broken.id, outcome.policy.id) is None
