"""RSVP Ledger — registrations, waitlist promotion and check-in.

Every mutation runs inside :func:`schedula.services.locks.event_transaction`,
so reading the confirmed count, deciding the new status, promoting from
the waitlist and appending attendance are one atomic unit per event.

Invariants kept here:
- confirmed RSVPs for an event never exceed its capacity;
- at most one pending/confirmed/waitlisted RSVP per (event, user);
- an RSVP is checked in at most once, with exactly one attendance record.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from schedula.config import settings
from schedula.errors import AlreadyCheckedIn, DuplicateRegistration, Forbidden, InvalidState
from schedula.models.event import Event, EventStatus
from schedula.models.rsvp import ACTIVE_STATUSES, RSVP, RSVPStatus, CheckInMethod
from schedula.services import attendance_service, notification_service
from schedula.services.access import can_manage, ensure_can_manage, get_active_profile, get_profile, get_rsvp
from schedula.services.locks import event_transaction
from schedula.timeutils import ensure_utc, utcnow

logger = logging.getLogger(__name__)


def confirmed_count(db: Session, event_id: str) -> int:
    return (
        db.query(RSVP)
        .filter(RSVP.event_id == event_id, RSVP.status == RSVPStatus.confirmed)
        .count()
    )


def _seats_left(db: Session, event: Event) -> int:
    return max(event.capacity - confirmed_count(db, event.event_id), 0)


def _confirm(rsvp: RSVP, now: datetime) -> None:
    rsvp.status = RSVPStatus.confirmed
    rsvp.confirmed_at = now


def promote_waitlisted(db: Session, event: Event, limit: Optional[int] = None) -> list[RSVP]:
    """Move the earliest-registered waitlisted RSVPs into free seats.

    Must be called inside the event's transaction. Fills at most
    ``limit`` seats (default: every free seat).
    """
    seats = _seats_left(db, event)
    if limit is not None:
        seats = min(seats, limit)
    if seats <= 0:
        return []

    waiting = (
        db.query(RSVP)
        .filter(RSVP.event_id == event.event_id, RSVP.status == RSVPStatus.waitlisted)
        .order_by(RSVP.registered_at, RSVP.rsvp_id)
        .limit(seats)
        .all()
    )
    now = utcnow()
    for rsvp in waiting:
        _confirm(rsvp, now)
        notification_service.notify_promotion(db, event, rsvp)
        logger.info("Promoted RSVP %s (user %s) off the waitlist for event %s",
                    rsvp.rsvp_id, rsvp.user_id, event.event_id)
    db.flush()
    return waiting


def register(db: Session, event_id: str, user_id: str) -> RSVP:
    """Register ``user_id`` for an event: confirmed, waitlisted, or pending approval."""
    get_active_profile(db, user_id)

    with event_transaction(db, event_id) as event:
        if event.status != EventStatus.published:
            raise InvalidState(
                f"Event is {event.status.value}; registration is closed",
                event_id=event_id,
            )
        now = utcnow()
        deadline = ensure_utc(event.registration_deadline)
        if deadline is not None and now > deadline:
            raise InvalidState("Registration deadline has passed", event_id=event_id)

        existing = (
            db.query(RSVP)
            .filter(
                RSVP.event_id == event_id,
                RSVP.user_id == user_id,
                RSVP.status.in_(ACTIVE_STATUSES),
            )
            .first()
        )
        if existing:
            raise DuplicateRegistration(
                "User already has an active registration for this event",
                event_id=event_id, user_id=user_id, rsvp_id=existing.rsvp_id,
            )

        rsvp = RSVP(event_id=event_id, user_id=user_id, registered_at=now)
        if event.requires_approval:
            rsvp.status = RSVPStatus.pending
        elif _seats_left(db, event) > 0:
            _confirm(rsvp, now)
        else:
            rsvp.status = RSVPStatus.waitlisted
        db.add(rsvp)
        try:
            db.flush()
        except IntegrityError as exc:
            # Another process won the race on the partial unique index.
            raise DuplicateRegistration(
                "User already has an active registration for this event",
                event_id=event_id, user_id=user_id,
            ) from exc
        notification_service.notify_registration(db, event, rsvp)

    db.refresh(rsvp)
    logger.info("User %s registered for event %s as %s (RSVP %s)",
                user_id, event_id, rsvp.status.value, rsvp.rsvp_id)
    return rsvp


def cancel(db: Session, rsvp_id: str, actor_user_id: str) -> RSVP:
    """Cancel a registration; a freed seat goes to the head of the waitlist."""
    actor = get_profile(db, actor_user_id)
    rsvp = get_rsvp(db, rsvp_id)

    with event_transaction(db, rsvp.event_id) as event:
        db.refresh(rsvp)
        if rsvp.user_id != actor.user_id and not can_manage(event, actor):
            raise Forbidden("Only the attendee or the organizer may cancel this RSVP",
                            rsvp_id=rsvp_id, user_id=actor_user_id)
        if rsvp.status == RSVPStatus.cancelled:
            raise InvalidState("RSVP is already cancelled", rsvp_id=rsvp_id)
        # The attendance record stays tied to a confirmed, checked-in RSVP.
        if rsvp.checked_in:
            raise InvalidState("Checked-in RSVPs cannot be cancelled", rsvp_id=rsvp_id)

        freed_seat = rsvp.status == RSVPStatus.confirmed
        rsvp.status = RSVPStatus.cancelled
        rsvp.cancelled_at = utcnow()
        db.flush()

        promoted = []
        if freed_seat and settings.AUTO_PROMOTE_WAITLIST:
            promoted = promote_waitlisted(db, event, limit=1)

    db.refresh(rsvp)
    logger.info("Cancelled RSVP %s for event %s by %s; promoted %s",
                rsvp_id, rsvp.event_id, actor_user_id, [r.rsvp_id for r in promoted] or "none")
    return rsvp


def confirm(db: Session, rsvp_id: str, actor_user_id: str) -> RSVP:
    """Organizer approval of a pending RSVP; waitlists it when the event is full."""
    actor = get_profile(db, actor_user_id)
    rsvp = get_rsvp(db, rsvp_id)

    with event_transaction(db, rsvp.event_id) as event:
        db.refresh(rsvp)
        ensure_can_manage(event, actor)
        if rsvp.status != RSVPStatus.pending:
            raise InvalidState(f"Only pending RSVPs can be confirmed (status is {rsvp.status.value})",
                               rsvp_id=rsvp_id)
        if _seats_left(db, event) > 0:
            _confirm(rsvp, utcnow())
        else:
            rsvp.status = RSVPStatus.waitlisted
        db.flush()
        notification_service.notify_registration(db, event, rsvp)

    db.refresh(rsvp)
    logger.info("Organizer %s approved RSVP %s as %s", actor_user_id, rsvp_id, rsvp.status.value)
    return rsvp


def promote(db: Session, event_id: str, actor_user_id: str) -> Optional[RSVP]:
    """Manually promote the earliest waitlisted RSVP if a seat is free."""
    actor = get_profile(db, actor_user_id)

    with event_transaction(db, event_id) as event:
        ensure_can_manage(event, actor)
        promoted = promote_waitlisted(db, event, limit=1)

    if not promoted:
        logger.info("No waitlisted RSVP promoted for event %s", event_id)
        return None
    db.refresh(promoted[0])
    return promoted[0]


def check_in(
    db: Session,
    rsvp_id: str,
    operator_id: str,
    method: CheckInMethod = CheckInMethod.manual,
    location: Optional[str] = None,
    notes: Optional[str] = None,
) -> RSVP:
    """Mark a confirmed RSVP as attended and append its attendance record.

    Exactly once: a retry on a checked-in RSVP fails with AlreadyCheckedIn
    and leaves the single attendance record untouched.
    """
    operator = get_profile(db, operator_id)
    rsvp = get_rsvp(db, rsvp_id)

    with event_transaction(db, rsvp.event_id) as event:
        db.refresh(rsvp)
        if method == CheckInMethod.self_service:
            if rsvp.user_id != operator.user_id:
                raise Forbidden("Self check-in is only for the attendee", rsvp_id=rsvp_id)
        else:
            ensure_can_manage(event, operator)

        if rsvp.checked_in:
            raise AlreadyCheckedIn("RSVP is already checked in", rsvp_id=rsvp_id,
                                   event_id=rsvp.event_id, user_id=rsvp.user_id)
        if rsvp.status != RSVPStatus.confirmed:
            raise InvalidState(f"Only confirmed RSVPs can check in (status is {rsvp.status.value})",
                               rsvp_id=rsvp_id)
        if event.status != EventStatus.published:
            raise InvalidState(f"Event is {event.status.value}; check-in is closed",
                               event_id=event.event_id)

        attendance = attendance_service.record(
            db,
            event_id=rsvp.event_id,
            user_id=rsvp.user_id,
            rsvp_id=rsvp.rsvp_id,
            operator_id=operator.user_id,
            method=method,
            location=location,
            notes=notes,
        )
        rsvp.checked_in = True
        rsvp.checked_in_at = attendance.checked_in_at
        rsvp.checked_in_by = operator.user_id
        rsvp.check_in_method = method
        db.flush()
        notification_service.notify_check_in(db, event, rsvp)

    db.refresh(rsvp)
    logger.info("Checked in RSVP %s (user %s) at event %s via %s by %s",
                rsvp_id, rsvp.user_id, rsvp.event_id, method.value, operator_id)
    return rsvp


def get_by_event(db: Session, event_id: str, status: Optional[RSVPStatus] = None) -> list[RSVP]:
    query = db.query(RSVP).filter(RSVP.event_id == event_id)
    if status:
        query = query.filter(RSVP.status == status)
    return query.order_by(RSVP.registered_at).all()


def get_by_user(db: Session, user_id: str, include_cancelled: bool = True) -> list[RSVP]:
    query = db.query(RSVP).filter(RSVP.user_id == user_id)
    if not include_cancelled:
        query = query.filter(RSVP.status != RSVPStatus.cancelled)
    return query.order_by(RSVP.registered_at.desc()).all()
