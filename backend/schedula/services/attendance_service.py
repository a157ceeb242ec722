"""Attendance Recorder — append-only check-in records."""
import logging
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from schedula.errors import DuplicateAttendance
from schedula.models.attendance import Attendance
from schedula.models.rsvp import RSVP, RSVPStatus, CheckInMethod
from schedula.timeutils import utcnow

logger = logging.getLogger(__name__)


def record(
    db: Session,
    event_id: str,
    user_id: str,
    rsvp_id: str,
    operator_id: str,
    method: CheckInMethod,
    location: Optional[str] = None,
    notes: Optional[str] = None,
) -> Attendance:
    """Append one attendance record inside the caller's transaction.

    Checked independently of the RSVP flag; the unique constraint on
    (event_id, user_id) backs this up for writers in other processes.
    """
    existing = (
        db.query(Attendance.attendance_id)
        .filter(Attendance.event_id == event_id, Attendance.user_id == user_id)
        .first()
    )
    if existing:
        raise DuplicateAttendance(
            "Attendance already recorded for this user",
            event_id=event_id, user_id=user_id, attendance_id=existing.attendance_id,
        )

    attendance = Attendance(
        event_id=event_id,
        user_id=user_id,
        rsvp_id=rsvp_id,
        checked_in_at=utcnow(),
        checked_in_by=operator_id,
        method=method,
        location=location,
        notes=notes,
    )
    db.add(attendance)
    try:
        db.flush()
    except IntegrityError as exc:
        raise DuplicateAttendance(
            "Attendance already recorded for this user", event_id=event_id, user_id=user_id,
        ) from exc
    logger.info("Recorded attendance %s for user %s at event %s (%s)",
                attendance.attendance_id, user_id, event_id, method.value)
    return attendance


def list_by_event(db: Session, event_id: str) -> list[Attendance]:
    return (
        db.query(Attendance)
        .filter(Attendance.event_id == event_id)
        .order_by(Attendance.checked_in_at)
        .all()
    )


def list_by_user(db: Session, user_id: str) -> list[Attendance]:
    return (
        db.query(Attendance)
        .filter(Attendance.user_id == user_id)
        .order_by(Attendance.checked_in_at.desc())
        .all()
    )


def attendance_stats(db: Session, event_id: str) -> dict[str, Any]:
    """Turnout for one event: total, rate against confirmed seats, split by method."""
    records = list_by_event(db, event_id)
    confirmed = (
        db.query(RSVP)
        .filter(RSVP.event_id == event_id, RSVP.status == RSVPStatus.confirmed)
        .count()
    )
    by_method = {m.value: 0 for m in CheckInMethod}
    for rec in records:
        by_method[rec.method.value] += 1
    return {
        "event_id": event_id,
        "total_attendees": len(records),
        "attendance_rate": (len(records) / confirmed * 100) if confirmed else 0.0,
        "checked_in_by_method": by_method,
    }
