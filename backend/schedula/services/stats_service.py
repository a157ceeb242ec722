"""Statistics Aggregator — read-only counts derived from the ledger on demand.

Nothing is cached, so there is no incremental state to keep correct.
Unknown events or organizers produce zeroed statistics rather than errors.
"""
import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from schedula.models.event import Event, PricingType
from schedula.models.rsvp import RSVP, RSVPStatus

logger = logging.getLogger(__name__)


def _empty_counts() -> dict[str, int]:
    return {
        "confirmed": 0,
        "waitlisted": 0,
        "pending": 0,
        "cancelled": 0,
        "checked_in": 0,
    }


def _counts_by_event(db: Session, event_ids: list[str]) -> dict[str, dict[str, int]]:
    counts = {eid: _empty_counts() for eid in event_ids}
    if not event_ids:
        return counts

    rows = (
        db.query(RSVP.event_id, RSVP.status, func.count(RSVP.rsvp_id))
        .filter(RSVP.event_id.in_(event_ids))
        .group_by(RSVP.event_id, RSVP.status)
        .all()
    )
    for event_id, rsvp_status, n in rows:
        counts[event_id][rsvp_status.value] = n

    checked_in = (
        db.query(RSVP.event_id, func.count(RSVP.rsvp_id))
        .filter(RSVP.event_id.in_(event_ids), RSVP.checked_in.is_(True))
        .group_by(RSVP.event_id)
        .all()
    )
    for event_id, n in checked_in:
        counts[event_id]["checked_in"] = n
    return counts


def _fill_rate(confirmed: int, capacity: int) -> float:
    return confirmed / capacity if capacity > 0 else 0.0


def event_stats(db: Session, event_id: str) -> dict[str, Any]:
    """Counts for one event plus fill rate (confirmed / capacity, 0 when capacity is 0)."""
    event = db.query(Event).filter(Event.event_id == event_id).first()
    capacity = event.capacity if event else 0
    counts = _counts_by_event(db, [event_id])[event_id] if event else _empty_counts()
    return {
        "event_id": event_id,
        "capacity": capacity,
        **counts,
        "fill_rate": _fill_rate(counts["confirmed"], capacity),
    }


def organizer_totals(db: Session, organizer_id: str) -> dict[str, Any]:
    """Sums across every event owned by the organizer, plus revenue from paid events."""
    events = db.query(Event).filter(Event.organizer_id == organizer_id).all()
    per_event = _counts_by_event(db, [e.event_id for e in events])

    totals = _empty_counts()
    capacity = 0
    revenue = Decimal("0")
    for event in events:
        counts = per_event[event.event_id]
        for key, value in counts.items():
            totals[key] += value
        capacity += event.capacity
        if event.pricing_type == PricingType.paid and event.price_amount is not None:
            revenue += Decimal(event.price_amount) * counts["confirmed"]

    logger.debug("Organizer %s totals over %d events", organizer_id, len(events))
    return {
        "organizer_id": organizer_id,
        "event_count": len(events),
        "capacity": capacity,
        **totals,
        "fill_rate": _fill_rate(totals["confirmed"], capacity),
        "revenue": float(revenue),
    }
