"""Notification API routes — stored in-app messages."""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from schedula.database import get_db
from schedula.schemas.notification import NotificationOut, UnreadCount
from schedula.services import notification_service
from schedula.services.access import get_profile

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[NotificationOut])
def list_notifications(
    user_id: str = Query(...),
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
):
    """A user's notifications, newest first."""
    get_profile(db, user_id)
    return notification_service.list_for_user(db, user_id, unread_only=unread_only)


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(user_id: str = Query(...), db: Session = Depends(get_db)):
    get_profile(db, user_id)
    return {"user_id": user_id, "unread": notification_service.unread_count(db, user_id)}


@router.post("/read-all")
def mark_all_read(user_id: str = Query(...), db: Session = Depends(get_db)):
    get_profile(db, user_id)
    return {"status": "ok", "updated": notification_service.mark_all_read(db, user_id)}


@router.post("/{notification_id}/read", response_model=NotificationOut)
def mark_read(
    notification_id: str,
    actor_user_id: str = Query(..., description="Recipient marking the notification read"),
    db: Session = Depends(get_db),
):
    return notification_service.mark_read(db, notification_id, actor_user_id)
