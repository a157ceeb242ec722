"""Notification records for ledger events.

``notify`` only adds to the session; the caller's transaction decides
whether the notification is committed together with the change it
describes.
"""
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from schedula.errors import Forbidden, NotFound
from schedula.models.event import Event
from schedula.models.notification import Notification, NotificationType
from schedula.models.profile import Profile
from schedula.models.rsvp import RSVP, RSVPStatus
from schedula.timeutils import format_local

logger = logging.getLogger(__name__)


def notify(
    db: Session,
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.info,
    action_url: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=title,
        message=message,
        action_url=action_url,
        extra=extra,
    )
    db.add(notification)
    return notification


def _starts_at(db: Session, event: Event, user_id: str) -> str:
    profile = db.query(Profile).filter(Profile.user_id == user_id).first()
    return format_local(event.start_time_utc, profile.timezone if profile else "UTC")


def notify_registration(db: Session, event: Event, rsvp: RSVP) -> Notification:
    """Tell the user how their registration landed."""
    when = _starts_at(db, event, rsvp.user_id)
    extra = {"event_id": event.event_id, "rsvp_id": rsvp.rsvp_id}
    url = f"/events/{event.event_id}"
    if rsvp.status == RSVPStatus.confirmed:
        return notify(db, rsvp.user_id, "Registration confirmed",
                      f"You're registered for {event.title} on {when}.",
                      NotificationType.success, url, extra)
    if rsvp.status == RSVPStatus.waitlisted:
        return notify(db, rsvp.user_id, "Added to waitlist",
                      f"{event.title} is full. You're on the waitlist and will be notified if a seat opens.",
                      NotificationType.warning, url, extra)
    return notify(db, rsvp.user_id, "Registration pending",
                  f"Your registration for {event.title} is awaiting organizer approval.",
                  NotificationType.info, url, extra)


def notify_promotion(db: Session, event: Event, rsvp: RSVP) -> Notification:
    when = _starts_at(db, event, rsvp.user_id)
    return notify(
        db, rsvp.user_id, "A seat opened up",
        f"You've been moved off the waitlist for {event.title} on {when}.",
        NotificationType.success, f"/events/{event.event_id}",
        {"event_id": event.event_id, "rsvp_id": rsvp.rsvp_id},
    )


def notify_check_in(db: Session, event: Event, rsvp: RSVP) -> Notification:
    return notify(
        db, rsvp.user_id, "Checked in",
        f"Welcome to {event.title}!",
        NotificationType.success, f"/events/{event.event_id}",
        {"event_id": event.event_id, "rsvp_id": rsvp.rsvp_id},
    )


def notify_event_cancelled(db: Session, event: Event, user_ids: list[str]) -> int:
    """Notify every holder of an active RSVP that the event is off."""
    reason = f" Reason: {event.cancel_reason}" if event.cancel_reason else ""
    for uid in user_ids:
        notify(
            db, uid, "Event cancelled",
            f"{event.title} has been cancelled.{reason}",
            NotificationType.error, f"/events/{event.event_id}",
            {"event_id": event.event_id},
        )
    return len(user_ids)


# ── Queries and read-state ─────────────────────────────────────────


def list_for_user(db: Session, user_id: str, unread_only: bool = False) -> list[Notification]:
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.read.is_(False))
    return query.order_by(Notification.created_at.desc()).all()


def unread_count(db: Session, user_id: str) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .count()
    )


def mark_read(db: Session, notification_id: str, actor_user_id: str) -> Notification:
    notification = (
        db.query(Notification).filter(Notification.notification_id == notification_id).first()
    )
    if not notification:
        raise NotFound("Notification not found", notification_id=notification_id)
    if notification.user_id != actor_user_id:
        raise Forbidden("Notifications can only be read by their recipient", notification_id=notification_id)
    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: str) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.commit()
    logger.info("Marked %d notifications read for user %s", updated, user_id)
    return updated
