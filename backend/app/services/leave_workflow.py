from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timezone
import logging

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import AuthorizationError, ResourceNotFoundError, StateConflictError, ValidationError
from app.models.leave_policy import LeavePolicy
from app.models.leave_request import (
    AdjustmentNotificationStatus,
    LeavePeriodAdjustment,
    LeaveRequest,
    LeaveStatus,
    PeriodAdjustmentStatus,
    TERMINAL_LEAVE_STATUSES,
)
from app.models.notification import NotificationType
from app.models.user import TEACHING_ROLES, User, UserRole
from app.schemas.leave import PeriodAdjustmentIn
from app.services.leave_accounts import consume_leave_balance, ensure_sufficient_balance, get_leave_account
from app.services.notifications import notify_roles, notify_users
from app.services.period_schedule import assign_period_faculty, day_name, resolve_periods
from app.services.substitution import ensure_substitutes_available

logger = logging.getLogger(__name__)

VALID_ACTIONS = ("approve", "reject")

ALLOWED_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.pending_hod: frozenset(
        {LeaveStatus.approved, LeaveStatus.pending_director, LeaveStatus.rejected_by_hod}
    ),
    LeaveStatus.pending_director: frozenset({LeaveStatus.approved, LeaveStatus.rejected_by_director}),
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_text(value: str | None) -> str:
    return (value or "").strip()


def _require_action(action: str | None) -> str:
    normalized = _normalize_text(action).lower()
    if normalized not in VALID_ACTIONS:
        raise ValidationError("Invalid action. Use 'approve' or 'reject'")
    return normalized


def _transition(request: LeaveRequest, target: LeaveStatus) -> None:
    if target not in ALLOWED_TRANSITIONS.get(request.status, frozenset()):
        raise StateConflictError(
            f"Leave request cannot move from {request.status.value} to {target.value}",
            details={"status": request.status.value, "target": target.value},
        )
    logger.info("Leave request %s: %s -> %s", request.id, request.status.value, target.value)
    request.status = target


def is_emergency(description: str | None) -> bool:
    return get_settings().leave_emergency_keyword in (description or "").lower()


def get_leave_request(db: Session, leave_request_id: str) -> LeaveRequest:
    request = db.get(LeaveRequest, leave_request_id)
    if request is None:
        raise ResourceNotFoundError("LeaveRequest", leave_request_id)
    return request


def _require_user_role(db: Session, user_id: str | None, role: UserRole, label: str) -> User:
    user = db.get(User, user_id) if user_id else None
    if user is None or user.role != role:
        raise AuthorizationError(f"Unauthorized. Only {label} can perform this action")
    return user


def list_period_adjustments(db: Session, leave_request_ids: list[str]) -> dict[str, list[LeavePeriodAdjustment]]:
    grouped: dict[str, list[LeavePeriodAdjustment]] = defaultdict(list)
    if not leave_request_ids:
        return grouped
    rows = db.execute(
        select(LeavePeriodAdjustment)
        .where(LeavePeriodAdjustment.leave_request_id.in_(leave_request_ids))
        .order_by(LeavePeriodAdjustment.leave_request_id, LeavePeriodAdjustment.position)
    ).scalars()
    for row in rows:
        grouped[row.leave_request_id].append(row)
    return grouped


def _coerce_adjustments(items) -> list[PeriodAdjustmentIn]:
    return [
        item if isinstance(item, PeriodAdjustmentIn) else PeriodAdjustmentIn.model_validate(item)
        for item in items or []
    ]


def _build_adjustment_rows(items: list[PeriodAdjustmentIn], *, emergency: bool) -> list[LeavePeriodAdjustment]:
    rows: list[LeavePeriodAdjustment] = []
    for position, item in enumerate(items):
        if item.substitute_faculty_id:
            status = PeriodAdjustmentStatus.adjusted
        elif emergency:
            # Emergency leave waives the substitute requirement.
            status = PeriodAdjustmentStatus.not_required
        else:
            status = PeriodAdjustmentStatus.pending
        rows.append(
            LeavePeriodAdjustment(
                position=position,
                date=item.date,
                day=item.day or day_name(item.date),
                period=item.period,
                class_name=item.class_name,
                department_id=item.department_id,
                subject_id=item.subject_id,
                substitute_faculty_id=item.substitute_faculty_id or None,
                status=status,
                notification_status=AdjustmentNotificationStatus.pending,
            )
        )
    return rows


def submit_leave_request(
    db: Session,
    *,
    employee_id: str,
    leave_policy_id: str,
    start_date: date,
    end_date: date,
    description: str,
    period_adjustments=None,
) -> LeaveRequest:
    if not employee_id or not leave_policy_id or start_date is None or end_date is None or not _normalize_text(description):
        raise ValidationError("All required fields must be provided")
    if end_date < start_date:
        raise ValidationError("End date must be on or after start date")
    total_days = (end_date - start_date).days + 1

    employee = db.get(User, employee_id)
    if employee is None:
        raise ResourceNotFoundError("User", employee_id)
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
    ensure_sufficient_balance(account, policy.leave_effect, total_days)

    status = LeaveStatus.pending_director if employee.role == UserRole.hod else LeaveStatus.pending_hod

    supplied = _coerce_adjustments(period_adjustments)
    if employee.role in TEACHING_ROLES and not supplied:
        items = [
            PeriodAdjustmentIn.model_validate(occurrence.model_dump(exclude={"faculty_id"}))
            for occurrence in resolve_periods(db, employee.id, start_date, end_date)
        ]
    else:
        items = supplied

    ensure_substitutes_available(db, items, employee_id=employee.id)

    emergency = is_emergency(description)
    rows = _build_adjustment_rows(items, emergency=emergency)
    if get_settings().leave_require_full_period_coverage and employee.role in TEACHING_ROLES:
        uncovered = [row for row in rows if row.status == PeriodAdjustmentStatus.pending]
        if uncovered:
            raise ValidationError(
                f"Please assign substitute faculty for all {len(uncovered)} pending period(s) before submitting.",
                details={"pending_periods": len(uncovered)},
            )

    request = LeaveRequest(
        employee_id=employee.id,
        leave_policy_id=policy.id,
        start_date=start_date,
        end_date=end_date,
        total_days=total_days,
        description=_normalize_text(description),
        status=status,
    )
    db.add(request)
    db.flush()
    for row in rows:
        row.leave_request_id = request.id
        db.add(row)
    db.flush()
    logger.info(
        "Leave request %s submitted by %s for %d day(s), %d period(s), status %s",
        request.id,
        employee.id,
        total_days,
        len(rows),
        status.value,
    )

    message = f"{employee.name} has applied for {total_days} day(s) leave"
    if employee.role == UserRole.hod:
        notify_roles(
            db,
            roles=[UserRole.director],
            leave_request_id=request.id,
            notification_type=NotificationType.leave_requested,
            title="New Leave Request",
            message=message,
        )
    elif employee.department_id:
        notify_roles(
            db,
            roles=[UserRole.hod],
            department_id=employee.department_id,
            leave_request_id=request.id,
            notification_type=NotificationType.leave_requested,
            title="New Leave Request",
            message=message,
        )
    notify_users(
        db,
        user_ids=[employee.id],
        leave_request_id=request.id,
        notification_type=NotificationType.leave_requested,
        title="Leave Request Submitted",
        message=f"Your leave request for {total_days} day(s) has been submitted successfully",
    )
    return request


def _apply_substitutions(
    db: Session,
    request: LeaveRequest,
    adjustments: list[LeavePeriodAdjustment],
    *,
    employee_name: str,
    approver_id: str,
) -> int:
    """Write confirmed substitutes into the standing timetable; per-cell failures are logged and skipped."""
    applied = 0
    for adjustment in adjustments:
        if not adjustment.substitute_faculty_id or not adjustment.department_id or not adjustment.class_name:
            continue
        weekday = day_name(adjustment.date)
        try:
            with db.begin_nested():
                updated = assign_period_faculty(
                    db,
                    department_id=adjustment.department_id,
                    class_name=adjustment.class_name,
                    day=weekday,
                    period=adjustment.period,
                    faculty_id=adjustment.substitute_faculty_id,
                    updated_by_id=approver_id,
                )
        except Exception:
            logger.exception(
                "Applying substitute %s to %s period %s on %s failed for leave request %s",
                adjustment.substitute_faculty_id,
                adjustment.class_name,
                adjustment.period,
                adjustment.date.isoformat(),
                request.id,
            )
            adjustment.notification_status = AdjustmentNotificationStatus.failed
            continue
        if not updated:
            continue

        applied += 1
        sent = notify_users(
            db,
            user_ids=[adjustment.substitute_faculty_id],
            leave_request_id=request.id,
            notification_type=NotificationType.substitute_assigned,
            title="Substitute Class Assignment",
            message=(
                f"You have been assigned {adjustment.class_name} period {adjustment.period} on "
                f"{weekday} {adjustment.date.isoformat()} in place of {employee_name}."
            ),
        )
        adjustment.notification_status = (
            AdjustmentNotificationStatus.sent if sent else AdjustmentNotificationStatus.failed
        )
    db.flush()
    return applied


def _record_hod_decision(request: LeaveRequest, hod: User, comments: str | None) -> None:
    request.hod_approved_by_id = hod.id
    request.hod_approved_at = _utc_now()
    request.hod_comments = _normalize_text(comments)


def _record_director_decision(request: LeaveRequest, director: User, comments: str | None) -> None:
    request.director_approved_by_id = director.id
    request.director_approved_at = _utc_now()
    request.director_comments = _normalize_text(comments)


def _rejection_message(approver_label: str, comments: str | None) -> str:
    reason = _normalize_text(comments)
    message = f"Your leave request has been rejected by {approver_label}."
    if reason:
        message += f" Reason: {reason}"
    return message


def hod_action(
    db: Session,
    *,
    leave_request_id: str,
    action: str,
    hod_id: str,
    comments: str | None = None,
    today: date | None = None,
) -> LeaveRequest:
    action = _require_action(action)
    request = get_leave_request(db, leave_request_id)
    if request.status != LeaveStatus.pending_hod:
        raise StateConflictError(
            "Leave request is not pending HOD approval",
            details={"status": request.status.value},
        )
    today = today or date.today()
    if request.start_date < today:
        raise ValidationError(
            "Cannot approve/reject leave requests that have already started. "
            "You can only approve/reject leaves for upcoming days."
        )
    hod = _require_user_role(db, hod_id, UserRole.hod, "HOD")
    employee = db.get(User, request.employee_id)
    if employee is None:
        raise ResourceNotFoundError("User", request.employee_id)

    if action == "reject":
        _transition(request, LeaveStatus.rejected_by_hod)
        _record_hod_decision(request, hod, comments)
        db.flush()
        notify_users(
            db,
            user_ids=[employee.id],
            leave_request_id=request.id,
            notification_type=NotificationType.leave_rejected_hod,
            title="Leave Request Rejected",
            message=_rejection_message("HOD", comments),
        )
        return request

    if employee.role == UserRole.hod:
        _transition(request, LeaveStatus.pending_director)
        _record_hod_decision(request, hod, comments)
        db.flush()
        notify_roles(
            db,
            roles=[UserRole.director],
            leave_request_id=request.id,
            notification_type=NotificationType.leave_approved_hod,
            title="Leave Request Approved by HOD",
            message=f"{employee.name}'s leave request has been approved by HOD and needs your approval",
        )
        notify_users(
            db,
            user_ids=[employee.id],
            leave_request_id=request.id,
            notification_type=NotificationType.leave_approved_hod,
            title="Leave Request Approved by HOD",
            message="Your leave request has been approved by HOD and forwarded to Director",
        )
        return request

    # HOD is the final approver for everyone below HOD.
    consume_leave_balance(
        db,
        employee_id=employee.id,
        leave_policy_id=request.leave_policy_id,
        days=request.total_days,
    )
    _transition(request, LeaveStatus.approved)
    _record_hod_decision(request, hod, comments)
    db.flush()

    adjustments = list_period_adjustments(db, [request.id]).get(request.id, [])
    _apply_substitutions(db, request, adjustments, employee_name=employee.name, approver_id=hod.id)
    if adjustments:
        notify_users(
            db,
            user_ids=[employee.id],
            leave_request_id=request.id,
            notification_type=NotificationType.leave_approved,
            title="Leave Request Approved",
            message="Your leave request has been approved by HOD",
        )
    else:
        notify_roles(
            db,
            roles=[UserRole.director],
            leave_request_id=request.id,
            notification_type=NotificationType.leave_approved_hod,
            title="Leave Request Approved by HOD",
            message=f"{employee.name}'s leave request for {request.total_days} day(s) has been approved by HOD",
        )
    return request


def director_action(
    db: Session,
    *,
    leave_request_id: str,
    action: str,
    director_id: str | None,
    comments: str | None = None,
    today: date | None = None,
) -> LeaveRequest:
    action = _require_action(action)
    request = get_leave_request(db, leave_request_id)
    if request.status != LeaveStatus.pending_director:
        raise StateConflictError(
            "Leave request is not pending director approval",
            details={"status": request.status.value},
        )

    today = today or date.today()
    lead_days = get_settings().leave_director_min_lead_days
    if action == "approve" and (request.start_date - today).days < lead_days:
        raise ValidationError(
            "Director can approve leave only before the day of the leave start "
            f"(at least {lead_days} day(s) in advance)."
        )
    if not director_id:
        raise AuthorizationError("Director id is missing in request.")
    director = _require_user_role(db, director_id, UserRole.director, "Director")
    employee = db.get(User, request.employee_id)

    if action == "reject":
        _transition(request, LeaveStatus.rejected_by_director)
        _record_director_decision(request, director, comments)
        db.flush()
        notify_users(
            db,
            user_ids=[request.employee_id],
            leave_request_id=request.id,
            notification_type=NotificationType.leave_rejected,
            title="Leave Request Rejected",
            message=_rejection_message("Director", comments),
        )
        return request

    consume_leave_balance(
        db,
        employee_id=request.employee_id,
        leave_policy_id=request.leave_policy_id,
        days=request.total_days,
    )
    _transition(request, LeaveStatus.approved)
    _record_director_decision(request, director, comments)
    db.flush()

    adjustments = list_period_adjustments(db, [request.id]).get(request.id, [])
    _apply_substitutions(
        db,
        request,
        adjustments,
        employee_name=employee.name if employee else "a colleague",
        approver_id=director.id,
    )
    notify_users(
        db,
        user_ids=[request.employee_id],
        leave_request_id=request.id,
        notification_type=NotificationType.leave_approved,
        title="Leave Request Approved",
        message="Your leave request has been approved by Director",
    )
    return request


def update_period_adjustments(
    db: Session,
    *,
    leave_request_id: str,
    hod_id: str,
    period_adjustments,
) -> LeaveRequest:
    hod = _require_user_role(db, hod_id, UserRole.hod, "HOD")
    request = get_leave_request(db, leave_request_id)
    if request.status in TERMINAL_LEAVE_STATUSES:
        raise StateConflictError(
            "Period adjustments can only change while the request is pending",
            details={"status": request.status.value},
        )
    employee = db.get(User, request.employee_id)
    if employee is None or employee.department_id != hod.department_id:
        raise AuthorizationError("Unauthorized. You can only update period adjustments for your department faculty")

    items = _coerce_adjustments(period_adjustments)
    ensure_substitutes_available(db, items, employee_id=employee.id)
    rows = _build_adjustment_rows(items, emergency=is_emergency(request.description))

    db.execute(delete(LeavePeriodAdjustment).where(LeavePeriodAdjustment.leave_request_id == request.id))
    for row in rows:
        row.leave_request_id = request.id
        db.add(row)
    db.flush()
    return request


def list_my_requests(db: Session, employee_id: str) -> list[LeaveRequest]:
    return list(
        db.execute(
            select(LeaveRequest)
            .where(LeaveRequest.employee_id == employee_id)
            .order_by(LeaveRequest.created_at.desc())
        ).scalars()
    )


def _department_requests(db: Session, department_id: str | None, status: LeaveStatus | None) -> list[LeaveRequest]:
    if not department_id:
        return []
    member_ids = select(User.id).where(User.department_id == department_id)
    query = select(LeaveRequest).where(LeaveRequest.employee_id.in_(member_ids))
    if status is not None:
        query = query.where(LeaveRequest.status == status)
    return list(db.execute(query.order_by(LeaveRequest.created_at.desc())).scalars())


def hod_pending_requests(db: Session, hod_id: str) -> list[LeaveRequest]:
    hod = _require_user_role(db, hod_id, UserRole.hod, "HOD")
    return _department_requests(db, hod.department_id, LeaveStatus.pending_hod)


def hod_department_requests(db: Session, hod_id: str) -> list[LeaveRequest]:
    hod = _require_user_role(db, hod_id, UserRole.hod, "HOD")
    return _department_requests(db, hod.department_id, None)


def _requests_with_status(db: Session, status: LeaveStatus) -> list[LeaveRequest]:
    return list(
        db.execute(
            select(LeaveRequest).where(LeaveRequest.status == status).order_by(LeaveRequest.created_at.desc())
        ).scalars()
    )


def director_pending_requests(db: Session, director_id: str) -> list[LeaveRequest]:
    _require_user_role(db, director_id, UserRole.director, "Director")
    return _requests_with_status(db, LeaveStatus.pending_director)


def director_approved_requests(db: Session, director_id: str) -> list[LeaveRequest]:
    _require_user_role(db, director_id, UserRole.director, "Director")
    return _requests_with_status(db, LeaveStatus.approved)
