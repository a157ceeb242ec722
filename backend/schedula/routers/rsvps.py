"""RSVP API routes — per-registration actions."""
import logging
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from schedula.database import get_db
from schedula.schemas.rsvp import CheckInRequest, RSVPAction, RSVPOut, TicketOut
from schedula.services import rsvp_ledger, ticket_service
from schedula.services.access import get_rsvp

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{rsvp_id}", response_model=RSVPOut)
def get_rsvp_route(rsvp_id: str, db: Session = Depends(get_db)):
    return get_rsvp(db, rsvp_id)


@router.post("/{rsvp_id}/cancel", response_model=RSVPOut)
def cancel_rsvp(rsvp_id: str, payload: RSVPAction, db: Session = Depends(get_db)):
    """Cancel a registration (attendee or organizer); frees a seat for the waitlist."""
    return rsvp_ledger.cancel(db, rsvp_id, payload.actor_user_id)


@router.post("/{rsvp_id}/confirm", response_model=RSVPOut)
def confirm_rsvp(rsvp_id: str, payload: RSVPAction, db: Session = Depends(get_db)):
    """Approve a pending registration (organizer only)."""
    return rsvp_ledger.confirm(db, rsvp_id, payload.actor_user_id)


@router.post("/{rsvp_id}/check-in", response_model=RSVPOut)
def check_in(rsvp_id: str, payload: CheckInRequest, db: Session = Depends(get_db)):
    """Manual or self check-in; exactly once per RSVP."""
    return rsvp_ledger.check_in(
        db,
        rsvp_id=rsvp_id,
        operator_id=payload.operator_id,
        method=payload.method,
        location=payload.location,
        notes=payload.notes,
    )


@router.get("/{rsvp_id}/ticket", response_model=TicketOut)
def get_ticket(
    rsvp_id: str,
    actor_user_id: str = Query(..., description="ID of the user requesting the ticket"),
    db: Session = Depends(get_db),
):
    """Signed QR ticket payload for a confirmed RSVP."""
    return ticket_service.issue_ticket(db, rsvp_id, actor_user_id)


@router.get("/{rsvp_id}/ticket.png")
def get_ticket_png(
    rsvp_id: str,
    actor_user_id: str = Query(..., description="ID of the user requesting the ticket"),
    db: Session = Depends(get_db),
):
    """The same ticket rendered as a QR code image."""
    ticket = ticket_service.issue_ticket(db, rsvp_id, actor_user_id)
    return Response(content=ticket_service.render_ticket_png(ticket["token"]), media_type="image/png")
