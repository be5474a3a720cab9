from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError, StateConflictError, ValidationError
from app.models.leave_account import LeaveAccount
from app.models.leave_policy import LeaveEffect, LeavePolicy
from app.models.user import User, UserRole
from app.services.leave_accounts import round_to_half_day

logger = logging.getLogger(__name__)


@dataclass
class PolicyAllocation:
    policy: LeavePolicy
    allocated: int = 0
    skipped: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)


def _validate_window(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise ValidationError("Policy end date must be on or after its start date")


def _normalize_roles(roles) -> list[str]:
    normalized: list[str] = []
    for role in roles or []:
        value = role.value if isinstance(role, UserRole) else str(role).strip()
        try:
            value = UserRole(value).value
        except ValueError as exc:
            raise ValidationError(f"Unknown role '{value}'") from exc
        if value not in normalized:
            normalized.append(value)
    if not normalized:
        raise ValidationError("At least one applicable role is required")
    return normalized


def _ensure_unique_name(db: Session, name: str, *, ignore_id: str | None = None) -> None:
    query = select(LeavePolicy.id).where(func.lower(LeavePolicy.name) == name.lower())
    if ignore_id is not None:
        query = query.where(LeavePolicy.id != ignore_id)
    if db.execute(query).first() is not None:
        raise StateConflictError(f"Leave policy '{name}' already exists")


def prorated_allocation(
    *,
    allowed_leaves: float,
    policy_start: date,
    policy_end: date,
    joining_date: date | None,
) -> float | None:
    """Share of `allowed_leaves` for the part of the window the employee is on roll.

    Returns None when the employee joins after the window closes.
    """
    active_start = max(policy_start, joining_date) if joining_date else policy_start
    if active_start > policy_end:
        return None
    total_days = (policy_end - policy_start).days + 1
    active_days = (policy_end - active_start).days + 1
    return round_to_half_day(allowed_leaves * active_days / total_days)


def create_policy(
    db: Session,
    *,
    name: str,
    allowed_leaves: float,
    roles,
    is_forwarding: bool,
    is_half_day_allowed: bool,
    leave_effect: LeaveEffect,
    start_date: date,
    end_date: date,
) -> PolicyAllocation:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Policy name is required")
    if allowed_leaves is None or allowed_leaves < 0:
        raise ValidationError("Allowed leaves must be zero or more")
    _validate_window(start_date, end_date)
    role_values = _normalize_roles(roles)
    _ensure_unique_name(db, name)

    policy = LeavePolicy(
        name=name,
        allowed_leaves=float(allowed_leaves),
        roles=role_values,
        is_forwarding=is_forwarding,
        is_half_day_allowed=is_half_day_allowed,
        leave_effect=leave_effect,
        start_date=start_date,
        end_date=end_date,
    )
    db.add(policy)
    db.flush()

    outcome = PolicyAllocation(policy=policy)
    employees = list(
        db.execute(
            select(User).where(
                User.role.in_([UserRole(item) for item in role_values]),
                User.is_active.is_(True),
            )
        ).scalars()
    )
    for employee in employees:
        amount = prorated_allocation(
            allowed_leaves=policy.allowed_leaves,
            policy_start=start_date,
            policy_end=end_date,
            joining_date=employee.joining_date,
        )
        if amount is None:
            outcome.skipped += 1
            continue

        account = LeaveAccount(
            employee_id=employee.id,
            leave_policy_id=policy.id,
            year=start_date.year,
            total_leaves=0.0 if leave_effect == LeaveEffect.ADD else amount,
            credited_leaves=amount if leave_effect == LeaveEffect.ADD else 0.0,
            used_leaves=0.0,
            carry_forward_leaves=0.0,
        )
        try:
            with db.begin_nested():
                db.add(account)
        except Exception as exc:
            logger.exception("Leave allocation failed for employee %s under policy %s", employee.id, policy.id)
            outcome.errors.append({"employee_id": employee.id, "error": str(exc)})
            continue
        outcome.allocated += 1

    logger.info(
        "Created leave policy %s (%s): %d allocated, %d skipped, %d failed",
        policy.name,
        leave_effect.value,
        outcome.allocated,
        outcome.skipped,
        len(outcome.errors),
    )
    return outcome


def get_policy(db: Session, policy_id: str) -> LeavePolicy:
    policy = db.get(LeavePolicy, policy_id)
    if policy is None:
        raise ResourceNotFoundError("LeavePolicy", policy_id)
    return policy


def update_policy(db: Session, policy_id: str, **changes) -> LeavePolicy:
    policy = get_policy(db, policy_id)
    fields = {key: value for key, value in changes.items() if value is not None}

    if "name" in fields:
        name = fields["name"].strip()
        if not name:
            raise ValidationError("Policy name is required")
        _ensure_unique_name(db, name, ignore_id=policy.id)
        policy.name = name
    _validate_window(fields.get("start_date", policy.start_date), fields.get("end_date", policy.end_date))
    if "roles" in fields:
        policy.roles = _normalize_roles(fields["roles"])
    for key in ("is_forwarding", "is_half_day_allowed", "start_date", "end_date"):
        if key in fields:
            setattr(policy, key, fields[key])

    allowed = fields.get("allowed_leaves")
    if allowed is not None and allowed != policy.allowed_leaves:
        if allowed < 0:
            raise ValidationError("Allowed leaves must be zero or more")
        policy.allowed_leaves = float(allowed)
        if policy.leave_effect == LeaveEffect.DEDUCT:
            for account in db.execute(
                select(LeaveAccount).where(LeaveAccount.leave_policy_id == policy.id)
            ).scalars():
                account.total_leaves = policy.allowed_leaves

    db.flush()
    return policy


def delete_policy(db: Session, policy_id: str) -> int:
    policy = get_policy(db, policy_id)
    result = db.execute(delete(LeaveAccount).where(LeaveAccount.leave_policy_id == policy.id))
    db.delete(policy)
    db.flush()
    logger.info("Deleted leave policy %s and %d account(s)", policy_id, result.rowcount)
    return result.rowcount


def list_policies(db: Session) -> list[LeavePolicy]:
    return list(db.execute(select(LeavePolicy).order_by(LeavePolicy.created_at.desc())).scalars())


def search_policies(db: Session, keyword: str) -> list[LeavePolicy]:
    pattern = f"%{(keyword or '').strip().lower()}%"
    return list(
        db.execute(
            select(LeavePolicy).where(func.lower(LeavePolicy.name).like(pattern)).order_by(LeavePolicy.name)
        ).scalars()
    )


def yearly_reset(db: Session, policy: LeavePolicy) -> int:
    """Start a new cycle: optionally carry unused leave forward, then zero usage.

    Every account resets to the full allowance regardless of when the employee joined.
    """
    accounts = list(
        db.execute(select(LeaveAccount).where(LeaveAccount.leave_policy_id == policy.id)).scalars()
    )
    for account in accounts:
        if policy.is_forwarding:
            carry_forward = max((account.total_leaves or 0) - (account.used_leaves or 0), 0)
        else:
            carry_forward = 0.0
        account.carry_forward_leaves = carry_forward
        account.total_leaves = policy.allowed_leaves + carry_forward
        account.used_leaves = 0.0
    db.flush()
    logger.info("Yearly reset of policy %s: %d account(s)", policy.name, len(accounts))
    return len(accounts)


def yearly_reset_all(db: Session) -> dict[str, int]:
    summary: dict[str, int] = {}
    for policy in db.execute(select(LeavePolicy)).scalars():
        summary[policy.id] = yearly_reset(db, policy)
    return summary
