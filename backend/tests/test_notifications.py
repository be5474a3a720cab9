from app.models.notification import NotificationType
from app.models.user import UserRole
from app.services import notifications


def test_notify_users_dedupes_and_skips_blank(db_session, make_user):
    user = make_user("Asha Rao", UserRole.teaching)

    created = notifications.notify_users(
        db_session,
        user_ids=[user.id, user.id, ""],
        leave_request_id="leave-1",
        notification_type=NotificationType.leave_requested,
        title="Leave Request Submitted",
        message="Submitted",
    )

    assert len(created) == 1
    assert created[0].user_id == user.id


def test_notify_roles_filters_department_and_activity(db_session, make_department, make_user):
    cse = make_department()
    mech = make_department(name="Mechanical")
    cse_hod = make_user("Chitra Nair", UserRole.hod, cse)
    make_user("Mech Hod", UserRole.hod, mech)
    retired = make_user("Retired Hod", UserRole.hod, cse)
    retired.is_active = False
    db_session.flush()

    created = notifications.notify_roles(
        db_session,
        roles=[UserRole.hod],
        department_id=cse.id,
        leave_request_id="leave-1",
        notification_type=NotificationType.leave_requested,
        title="New Leave Request",
        message="Asha Rao has applied for 2 day(s) leave",
    )

    assert [item.user_id for item in created] == [cse_hod.id]


def test_list_and_mark_all_read(db_session, make_user):
    user = make_user("Asha Rao", UserRole.teaching)
    for index in range(3):
        notifications.create_notification(
            db_session,
            user_id=user.id,
            leave_request_id=f"leave-{index}",
            notification_type=NotificationType.leave_approved,
            title="Leave Request Approved",
            message="Approved",
        )

    assert len(notifications.list_notifications(db_session, user_id=user.id, limit=2)) == 2
    assert notifications.mark_all_read(db_session, user_id=user.id) == 3
    db_session.flush()
    assert notifications.list_notifications(db_session, user_id=user.id, is_read=False) == []
    assert len(notifications.list_notifications(db_session, user_id=user.id, is_read=True)) == 3


def test_create_notification_swallows_store_errors(db_session, make_user, monkeypatch):
    user = make_user("Asha Rao", UserRole.teaching)

    def broken_notification(**kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(notifications, "Notification", broken_notification)

    assert (
        notifications.create_notification(
            db_session,
            user_id=user.id,
            leave_request_id="leave-1",
            notification_type=NotificationType.leave_requested,
            title="Leave Request Submitted",
            message="Submitted",
        )
        is None
    )
