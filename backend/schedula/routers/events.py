"""Event API routes — delegates to event_service for lifecycle and capacity rules."""
import logging
from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from schedula.database import get_db
from schedula.models.event import EventStatus
from schedula.schemas.event import (
    CapacityUpdate, EventCancelRequest, EventCreate, EventMutationOut, EventOut, EventTransition, EventUpdate,
)
from schedula.services import event_service
from schedula.services.access import get_event

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    """Create a new event in draft."""
    return event_service.create_event(
        db=db,
        organizer_id=payload.organizer_id,
        title=payload.title,
        start_utc=payload.start_time_utc,
        end_utc=payload.end_time_utc,
        capacity=payload.capacity,
        pricing_type=payload.pricing_type,
        price_amount=payload.price_amount,
        currency=payload.currency,
        registration_deadline=payload.registration_deadline,
        requires_approval=payload.requires_approval,
        description=payload.description,
        location_text=payload.location_text,
    )


@router.get("/", response_model=list[EventOut])
def list_events(
    organizer_id: Optional[str] = Query(None),
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    start_after: Optional[datetime] = Query(None),
    start_before: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    """List events with optional filters."""
    return event_service.list_events(
        db,
        organizer_id=organizer_id,
        status=status_filter,
        start_after=start_after,
        start_before=start_before,
    )


@router.get("/{event_id}", response_model=EventOut)
def get_event_route(event_id: str, db: Session = Depends(get_db)):
    """Fetch a single event by ID."""
    return get_event(db, event_id)


@router.patch("/{event_id}", response_model=EventOut)
def update_event(event_id: str, payload: EventUpdate, db: Session = Depends(get_db)):
    """Edit event details (organizer only); capacity and status have their own routes."""
    updates = payload.model_dump(exclude_unset=True, exclude={"actor_user_id", "version"})
    return event_service.update_event(db, event_id, payload.actor_user_id, updates, version=payload.version)


@router.post("/{event_id}/publish", response_model=EventOut)
def publish_event(event_id: str, payload: EventTransition, db: Session = Depends(get_db)):
    """Open the event for registrations (organizer only)."""
    return event_service.publish_event(db, event_id, payload.actor_user_id, version=payload.version)


@router.post("/{event_id}/cancel", response_model=EventOut)
def cancel_event(event_id: str, payload: EventCancelRequest, db: Session = Depends(get_db)):
    """Cancel the event (organizer only); RSVPs are kept as history."""
    return event_service.cancel_event(
        db,
        event_id,
        payload.actor_user_id,
        version=payload.version,
        cancel_reason=payload.cancel_reason,
    )


@router.post("/{event_id}/complete", response_model=EventOut)
def complete_event(event_id: str, payload: EventTransition, db: Session = Depends(get_db)):
    """Close a published event after it has ended (organizer only)."""
    return event_service.complete_event(db, event_id, payload.actor_user_id, version=payload.version)


@router.put("/{event_id}/capacity", response_model=EventOut)
def update_capacity(event_id: str, payload: CapacityUpdate, db: Session = Depends(get_db)):
    """Change capacity; rejected below the confirmed count."""
    return event_service.update_capacity(
        db, event_id, payload.actor_user_id, payload.capacity, version=payload.version,
    )


@router.get("/{event_id}/mutations", response_model=list[EventMutationOut])
def list_mutations(event_id: str, db: Session = Depends(get_db)):
    """Audit trail of every write to the event."""
    get_event(db, event_id)
    return event_service.get_mutations(db, event_id)
