from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.notification import Notification, NotificationType
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    *,
    user_id: str,
    leave_request_id: str,
    notification_type: NotificationType,
    title: str,
    message: str,
) -> Notification | None:
    """Insert one notification inside a savepoint; failures are logged and swallowed."""
    try:
        with db.begin_nested():
            record = Notification(
                user_id=user_id,
                leave_request_id=leave_request_id,
                notification_type=notification_type,
                title=title,
                message=message,
            )
            db.add(record)
    except Exception:
        logger.exception(
            "Unable to record %s notification for user %s (leave request %s)",
            notification_type.value,
            user_id,
            leave_request_id,
        )
        return None
    return record


def notify_users(
    db: Session,
    *,
    user_ids: list[str] | set[str] | tuple[str, ...],
    leave_request_id: str,
    notification_type: NotificationType,
    title: str,
    message: str,
) -> list[Notification]:
    results: list[Notification] = []
    for user_id in dict.fromkeys(user_ids):
        if not user_id:
            continue
        record = create_notification(
            db,
            user_id=user_id,
            leave_request_id=leave_request_id,
            notification_type=notification_type,
            title=title,
            message=message,
        )
        if record is not None:
            results.append(record)
    return results


def notify_roles(
    db: Session,
    *,
    roles: list[UserRole] | set[UserRole] | tuple[UserRole, ...],
    leave_request_id: str,
    notification_type: NotificationType,
    title: str,
    message: str,
    department_id: str | None = None,
) -> list[Notification]:
    if not roles:
        return []
    query = select(User.id).where(User.role.in_(list(roles)), User.is_active.is_(True))
    if department_id is not None:
        query = query.where(User.department_id == department_id)
    try:
        recipient_ids = list(db.execute(query).scalars())
    except Exception:
        logger.exception("Unable to resolve %s recipients for leave request %s", list(roles), leave_request_id)
        return []
    return notify_users(
        db,
        user_ids=recipient_ids,
        leave_request_id=leave_request_id,
        notification_type=notification_type,
        title=title,
        message=message,
    )


def list_notifications(
    db: Session,
    *,
    user_id: str,
    is_read: bool | None = None,
    limit: int = 50,
) -> list[Notification]:
    query = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
    )
    if is_read is not None:
        query = query.where(Notification.is_read.is_(is_read))
    return list(db.execute(query.limit(limit)).scalars())


def mark_all_read(db: Session, *, user_id: str) -> int:
    notifications = list(
        db.execute(
            select(Notification).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        ).scalars()
    )
    for notification in notifications:
        notification.is_read = True
    return len(notifications)
