"""Event-scoped ledger routes: register, list, promote, door scan, attendance."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from schedula.database import get_db
from schedula.models.rsvp import RSVPStatus
from schedula.schemas.attendance import AttendanceOut, AttendanceStats
from schedula.schemas.rsvp import PromoteResult, RegisterRequest, RSVPAction, RSVPOut, ScanRequest
from schedula.services import attendance_service, rsvp_ledger, ticket_service
from schedula.services.access import get_event

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{event_id}/rsvps", response_model=RSVPOut, status_code=status.HTTP_201_CREATED)
def register(event_id: str, payload: RegisterRequest, db: Session = Depends(get_db)):
    """Register a user; the RSVP comes back confirmed, waitlisted or pending."""
    return rsvp_ledger.register(db, event_id, payload.user_id)


@router.get("/{event_id}/rsvps", response_model=list[RSVPOut])
def list_event_rsvps(
    event_id: str,
    status_filter: Optional[RSVPStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    """Every RSVP held against the event, oldest registration first."""
    get_event(db, event_id)
    return rsvp_ledger.get_by_event(db, event_id, status=status_filter)


@router.post("/{event_id}/promote", response_model=PromoteResult)
def promote(event_id: str, payload: RSVPAction, db: Session = Depends(get_db)):
    """Move the head of the waitlist into a free seat (organizer only)."""
    return {"promoted": rsvp_ledger.promote(db, event_id, payload.actor_user_id)}


@router.post("/{event_id}/check-in/scan", response_model=RSVPOut)
def scan_ticket(event_id: str, payload: ScanRequest, db: Session = Depends(get_db)):
    """Check in by scanning a QR ticket at this event's door."""
    return ticket_service.scan(
        db,
        event_id=event_id,
        token=payload.token,
        operator_id=payload.operator_id,
        location=payload.location,
        notes=payload.notes,
    )


@router.get("/{event_id}/attendance", response_model=list[AttendanceOut])
def list_attendance(event_id: str, db: Session = Depends(get_db)):
    get_event(db, event_id)
    return attendance_service.list_by_event(db, event_id)


@router.get("/{event_id}/attendance/stats", response_model=AttendanceStats)
def attendance_stats(event_id: str, db: Session = Depends(get_db)):
    get_event(db, event_id)
    return attendance_service.attendance_stats(db, event_id)
