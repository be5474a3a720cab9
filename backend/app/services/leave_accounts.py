from __future__ import annotations

import math

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.exceptions import InsufficientBalanceError, ResourceNotFoundError
from app.models.leave_account import LeaveAccount
from app.models.leave_policy import LeaveEffect, LeavePolicy


def round_to_half_day(value: float) -> float:
    # Half-up to the nearest 0.5 so a x.25 / x.75 allocation never rounds down.
    return math.floor(value * 2 + 0.5) / 2


def available_balance(account: LeaveAccount, effect: LeaveEffect) -> float:
    if effect == LeaveEffect.ADD:
        return (account.credited_leaves or 0) - (account.used_leaves or 0)
    return (account.total_leaves or 0) + (account.carry_forward_leaves or 0) - (account.used_leaves or 0)


def allotted_leaves(account: LeaveAccount, effect: LeaveEffect) -> float:
    if effect == LeaveEffect.ADD:
        return account.credited_leaves or 0
    return account.total_leaves or 0


def total_available(account: LeaveAccount, effect: LeaveEffect) -> float:
    if effect == LeaveEffect.ADD:
        return account.credited_leaves or 0
    return (account.total_leaves or 0) + (account.carry_forward_leaves or 0)


def remaining_leaves(account: LeaveAccount, effect: LeaveEffect) -> float:
    return max(total_available(account, effect) - (account.used_leaves or 0), 0)


def get_leave_account(db: Session, *, employee_id: str, leave_policy_id: str) -> LeaveAccount | None:
    return db.execute(
        select(LeaveAccount).where(
            LeaveAccount.employee_id == employee_id,
            LeaveAccount.leave_policy_id == leave_policy_id,
        )
    ).scalar_one_or_none()


def ensure_sufficient_balance(account: LeaveAccount, effect: LeaveEffect, requested_days: float) -> None:
    available = available_balance(account, effect)
    if requested_days > available:
        raise InsufficientBalanceError(available=available, requested=requested_days)


def consume_leave_balance(
    db: Session,
    *,
    employee_id: str,
    leave_policy_id: str,
    days: float,
) -> LeaveAccount:
    """Add `days` to used_leaves only if the balance still covers them (compare-and-set)."""
    policy = db.get(LeavePolicy, leave_policy_id)
    if policy is None:
        raise ResourceNotFoundError("LeavePolicy", leave_policy_id)
    account = get_leave_account(db, employee_id=employee_id, leave_policy_id=leave_policy_id)
    if account is None:
        raise ResourceNotFoundError(
            "LeaveAccount",
            f"{employee_id}/{leave_policy_id}",
            message="Leave policy not allocated to this employee",
        )

    if policy.leave_effect == LeaveEffect.ADD:
        available_expr = LeaveAccount.credited_leaves - LeaveAccount.used_leaves
    else:
        available_expr = LeaveAccount.total_leaves + LeaveAccount.carry_forward_leaves - LeaveAccount.used_leaves

    result = db.execute(
        update(LeaveAccount)
        .where(LeaveAccount.id == account.id, available_expr >= days)
        .values(used_leaves=LeaveAccount.used_leaves + days)
        .execution_options(synchronize_session=False)
    )
    db.refresh(account)
    if result.rowcount == 0:
        raise InsufficientBalanceError(available=available_balance(account, policy.leave_effect), requested=days)
    return account
