from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.config import get_settings
from app.core.exceptions import ResourceNotFoundError
from app.models.notification import Notification
from app.schemas.notification import NotificationOut
from app.services import notifications as notification_service

router = APIRouter()


@router.get("/notifications/{user_id}", response_model=list[NotificationOut])
def list_notifications(
    user_id: str,
    is_read: bool | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=500),
    db: Session = Depends(get_db),
) -> list[NotificationOut]:
    return notification_service.list_notifications(
        db,
        user_id=user_id,
        is_read=is_read,
        limit=limit or get_settings().notification_list_limit,
    )


@router.put("/notifications/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(notification_id: str, db: Session = Depends(get_db)) -> NotificationOut:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise ResourceNotFoundError("Notification", notification_id)
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


@router.put("/notifications/{user_id}/read-all")
def mark_all_notifications_read(user_id: str, db: Session = Depends(get_db)) -> dict:
    updated = notification_service.mark_all_read(db, user_id=user_id)
    db.commit()
    return {"message": "All notifications marked as read", "updated": updated}
