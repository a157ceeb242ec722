"""Event Record Store — event definitions and their lifecycle.

Responsibilities:
- Authorization hook: only the organizer (or an admin) may change an event
- Status state machine: draft → published → completed, draft|published → cancelled
- Capacity updates that never drop below the confirmed count
- Optional optimistic locking via the version field
- Mutation log (EventMutations) for every write
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from schedula.config import settings
from schedula.errors import CapacityBelowConfirmed, Forbidden, InvalidState, VersionConflict
from schedula.models.event import Event, EventStatus, PricingType
from schedula.models.event_mutation import EventMutation, ActionType
from schedula.models.profile import Profile, ProfileRole
from schedula.models.rsvp import ACTIVE_STATUSES, RSVP
from schedula.services import notification_service, rsvp_ledger
from schedula.services.access import ensure_can_manage, ensure_organizer_approved, get_active_profile, get_profile
from schedula.services.locks import event_transaction
from schedula.timeutils import ensure_utc, utcnow

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[EventStatus, set[EventStatus]] = {
    EventStatus.draft: {EventStatus.published, EventStatus.cancelled},
    EventStatus.published: {EventStatus.completed, EventStatus.cancelled},
    EventStatus.cancelled: set(),
    EventStatus.completed: set(),
}


def _event_snapshot(event: Event) -> dict[str, Any]:
    """Serialize an event to a JSON-safe dict for the mutation log."""
    return {
        "event_id": event.event_id,
        "title": event.title,
        "capacity": event.capacity,
        "status": event.status.value if event.status else None,
        "pricing_type": event.pricing_type.value if event.pricing_type else None,
        "price_amount": str(event.price_amount) if event.price_amount is not None else None,
        "start_time_utc": event.start_time_utc.isoformat() if event.start_time_utc else None,
        "end_time_utc": event.end_time_utc.isoformat() if event.end_time_utc else None,
        "registration_deadline": (
            event.registration_deadline.isoformat() if event.registration_deadline else None
        ),
        "location_text": event.location_text,
        "requires_approval": event.requires_approval,
        "version": event.version,
    }


def _check_version(event: Event, version: Optional[int]) -> None:
    if version is not None and event.version != version:
        raise VersionConflict(
            f"Version mismatch: expected {event.version}, got {version}. Re-fetch and retry.",
            event_id=event.event_id,
        )


def _record_mutation(
    db: Session,
    event: Event,
    actor_user_id: str,
    action: ActionType,
    before: Optional[dict[str, Any]],
) -> None:
    db.add(EventMutation(
        event_id=event.event_id,
        actor_user_id=actor_user_id,
        action_type=action,
        before_snapshot=before,
        after_snapshot=_event_snapshot(event),
    ))


def _transition(event: Event, target: EventStatus) -> None:
    if target not in _TRANSITIONS[event.status]:
        raise InvalidState(
            f"Cannot move event from {event.status.value} to {target.value}",
            event_id=event.event_id,
        )
    event.status = target


def _validate_details(
    start_utc: datetime,
    end_utc: datetime,
    registration_deadline: Optional[datetime],
    pricing_type: PricingType,
    price_amount: Optional[Decimal],
) -> Optional[Decimal]:
    """Schedule and pricing rules shared by create and update; returns the price to store."""
    if end_utc <= start_utc:
        raise InvalidState("Event must end after it starts")
    if registration_deadline is not None and registration_deadline > end_utc:
        raise InvalidState("Registration deadline must not be after the event ends")
    if pricing_type == PricingType.paid:
        if price_amount is None or price_amount <= 0:
            raise InvalidState("Paid events need a positive price")
        return price_amount
    return None


def create_event(
    db: Session,
    organizer_id: str,
    title: str,
    start_utc: datetime,
    end_utc: datetime,
    capacity: int,
    pricing_type: PricingType = PricingType.free,
    price_amount: Optional[Decimal] = None,
    currency: str = "USD",
    registration_deadline: Optional[datetime] = None,
    requires_approval: bool = False,
    description: Optional[str] = None,
    location_text: Optional[str] = None,
) -> Event:
    """Create an event in draft. Only organizers and admins may create events."""
    organizer: Profile = get_active_profile(db, organizer_id)
    if organizer.role not in (ProfileRole.organizer, ProfileRole.admin):
        raise Forbidden("Only organizers can create events", user_id=organizer_id)
    ensure_organizer_approved(organizer)

    start_utc, end_utc = ensure_utc(start_utc), ensure_utc(end_utc)
    registration_deadline = ensure_utc(registration_deadline)
    if capacity < 0:
        raise InvalidState("Capacity cannot be negative")
    price_amount = _validate_details(start_utc, end_utc, registration_deadline, pricing_type, price_amount)

    event = Event(
        organizer_id=organizer_id,
        title=title,
        description=description,
        location_text=location_text,
        start_time_utc=start_utc,
        end_time_utc=end_utc,
        registration_deadline=registration_deadline,
        capacity=capacity,
        pricing_type=pricing_type,
        price_amount=price_amount,
        currency=currency,
        requires_approval=requires_approval,
        status=EventStatus.draft,
        version=1,
    )
    db.add(event)
    db.flush()
    _record_mutation(db, event, organizer_id, ActionType.create, None)
    db.commit()
    db.refresh(event)
    logger.info("Created event '%s' (%s) by organizer %s", title, event.event_id, organizer_id)
    return event


_EDITABLE_FIELDS = frozenset({
    "title", "description", "location_text", "start_time_utc", "end_time_utc",
    "registration_deadline", "pricing_type", "price_amount", "currency", "requires_approval",
})
_REQUIRED_FIELDS = frozenset({
    "title", "start_time_utc", "end_time_utc", "pricing_type", "currency", "requires_approval",
})


def update_event(
    db: Session,
    event_id: str,
    actor_user_id: str,
    updates: dict[str, Any],
    version: Optional[int] = None,
) -> Event:
    """Edit event details. Capacity and status have their own operations."""
    actor = get_profile(db, actor_user_id)
    unknown = set(updates) - _EDITABLE_FIELDS
    if unknown:
        raise InvalidState(f"Fields cannot be edited here: {', '.join(sorted(unknown))}", event_id=event_id)
    cleared = sorted(f for f in _REQUIRED_FIELDS if f in updates and updates[f] is None)
    if cleared:
        raise InvalidState(f"Fields cannot be cleared: {', '.join(cleared)}", event_id=event_id)

    with event_transaction(db, event_id) as event:
        ensure_can_manage(event, actor)
        _check_version(event, version)
        if event.status in (EventStatus.cancelled, EventStatus.completed):
            raise InvalidState(f"Event is {event.status.value}; details are frozen", event_id=event_id)

        merged = {field: getattr(event, field) for field in _EDITABLE_FIELDS}
        merged.update(updates)
        for field in ("start_time_utc", "end_time_utc", "registration_deadline"):
            merged[field] = ensure_utc(merged[field])
        try:
            merged["price_amount"] = _validate_details(
                merged["start_time_utc"], merged["end_time_utc"], merged["registration_deadline"],
                merged["pricing_type"], merged["price_amount"],
            )
        except InvalidState as exc:
            raise InvalidState(exc.message, event_id=event_id) from exc

        before = _event_snapshot(event)
        for field, value in merged.items():
            setattr(event, field, value)
        event.version += 1
        event.updated_at = utcnow()
        _record_mutation(db, event, actor_user_id, ActionType.update, before)

    db.refresh(event)
    logger.info("Updated event %s to version %d (%s)", event_id, event.version, ", ".join(sorted(updates)))
    return event


def publish_event(db: Session, event_id: str, actor_user_id: str, version: Optional[int] = None) -> Event:
    """Open an event for registrations."""
    actor = get_profile(db, actor_user_id)
    with event_transaction(db, event_id) as event:
        ensure_can_manage(event, actor)
        _check_version(event, version)
        before = _event_snapshot(event)
        _transition(event, EventStatus.published)
        event.version += 1
        _record_mutation(db, event, actor_user_id, ActionType.publish, before)

    db.refresh(event)
    logger.info("Published event %s", event_id)
    return event


def cancel_event(
    db: Session,
    event_id: str,
    actor_user_id: str,
    version: Optional[int] = None,
    cancel_reason: Optional[str] = None,
) -> Event:
    """Cancel an event. RSVPs keep their status as history; holders are notified."""
    actor = get_profile(db, actor_user_id)
    with event_transaction(db, event_id) as event:
        ensure_can_manage(event, actor)
        _check_version(event, version)
        before = _event_snapshot(event)
        _transition(event, EventStatus.cancelled)
        event.cancelled_at = utcnow()
        event.cancel_reason = cancel_reason
        event.version += 1
        _record_mutation(db, event, actor_user_id, ActionType.cancel, before)

        holders = [
            uid for (uid,) in db.query(RSVP.user_id)
            .filter(RSVP.event_id == event_id, RSVP.status.in_(ACTIVE_STATUSES))
            .all()
        ]
        notified = notification_service.notify_event_cancelled(db, event, holders)

    db.refresh(event)
    logger.info("Cancelled event %s (reason: %s); notified %d attendees", event_id, cancel_reason, notified)
    return event


def complete_event(
    db: Session,
    event_id: str,
    actor_user_id: str,
    version: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Event:
    """Mark a published event completed once its end time has passed."""
    actor = get_profile(db, actor_user_id)
    now = ensure_utc(now) if now else utcnow()
    with event_transaction(db, event_id) as event:
        ensure_can_manage(event, actor)
        _check_version(event, version)
        if ensure_utc(event.end_time_utc) > now:
            raise InvalidState("Event has not ended yet", event_id=event_id)
        before = _event_snapshot(event)
        _transition(event, EventStatus.completed)
        event.version += 1
        _record_mutation(db, event, actor_user_id, ActionType.complete, before)

    db.refresh(event)
    logger.info("Completed event %s", event_id)
    return event


def update_capacity(
    db: Session,
    event_id: str,
    actor_user_id: str,
    new_capacity: int,
    version: Optional[int] = None,
) -> Event:
    """Change capacity; never below the confirmed count. New seats go to the waitlist."""
    actor = get_profile(db, actor_user_id)
    with event_transaction(db, event_id) as event:
        ensure_can_manage(event, actor)
        _check_version(event, version)
        if event.status in (EventStatus.cancelled, EventStatus.completed):
            raise InvalidState(f"Event is {event.status.value}; capacity is frozen", event_id=event_id)
        if new_capacity < 0:
            raise InvalidState("Capacity cannot be negative", event_id=event_id)

        confirmed = rsvp_ledger.confirmed_count(db, event_id)
        if new_capacity < confirmed:
            raise CapacityBelowConfirmed(
                f"Capacity {new_capacity} is below the {confirmed} confirmed registrations",
                event_id=event_id,
            )

        before = _event_snapshot(event)
        event.capacity = new_capacity
        event.version += 1
        db.flush()
        _record_mutation(db, event, actor_user_id, ActionType.update_capacity, before)

        promoted = []
        if settings.AUTO_PROMOTE_WAITLIST and event.status == EventStatus.published:
            promoted = rsvp_ledger.promote_waitlisted(db, event)

    db.refresh(event)
    logger.info("Event %s capacity %s -> %d (promoted %d)", event_id, before["capacity"], new_capacity, len(promoted))
    return event


def list_events(
    db: Session,
    organizer_id: Optional[str] = None,
    status: Optional[EventStatus] = None,
    start_after: Optional[datetime] = None,
    start_before: Optional[datetime] = None,
) -> list[Event]:
    query = db.query(Event)
    if organizer_id:
        query = query.filter(Event.organizer_id == organizer_id)
    if status:
        query = query.filter(Event.status == status)
    if start_after:
        query = query.filter(Event.start_time_utc >= start_after)
    if start_before:
        query = query.filter(Event.start_time_utc <= start_before)
    return query.order_by(Event.start_time_utc).all()


def get_mutations(db: Session, event_id: str) -> list[EventMutation]:
    return (
        db.query(EventMutation)
        .filter(EventMutation.event_id == event_id)
        .order_by(EventMutation.created_at)
        .all()
    )
