"""QR tickets — signed, time-limited check-in payloads.

A ticket carries the event, user and RSVP ids, signed with
``TICKET_SECRET``. The signer embeds the issue time, so tickets older
than ``TICKET_MAX_AGE_SECONDS`` are rejected at the door.
"""
import io
import logging
from typing import Any, Optional

import qrcode
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.orm import Session

from schedula.config import settings
from schedula.errors import Forbidden, InvalidState, InvalidTicket
from schedula.models.rsvp import RSVP, RSVPStatus, CheckInMethod
from schedula.services import rsvp_ledger
from schedula.services.access import can_manage, get_event, get_profile, get_rsvp

logger = logging.getLogger(__name__)

_SALT = "schedula-ticket"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.TICKET_SECRET, salt=_SALT)


def issue_ticket(db: Session, rsvp_id: str, actor_user_id: str) -> dict[str, Any]:
    """Sign a ticket for a confirmed RSVP. The attendee or the organizer may ask for it."""
    actor = get_profile(db, actor_user_id)
    rsvp = get_rsvp(db, rsvp_id)
    event = get_event(db, rsvp.event_id)
    if rsvp.user_id != actor.user_id and not can_manage(event, actor):
        raise Forbidden("Tickets are only issued to the attendee or the organizer", rsvp_id=rsvp_id)
    if rsvp.status != RSVPStatus.confirmed:
        raise InvalidState(f"Only confirmed RSVPs get a ticket (status is {rsvp.status.value})",
                           rsvp_id=rsvp_id)

    payload = {"event_id": rsvp.event_id, "user_id": rsvp.user_id, "rsvp_id": rsvp.rsvp_id}
    token = _serializer().dumps(payload)
    logger.info("Issued ticket for RSVP %s", rsvp_id)
    return {**payload, "token": token}


def read_ticket(token: str, max_age: Optional[int] = None) -> dict[str, str]:
    """Verify a scanned token and return its payload."""
    max_age = settings.TICKET_MAX_AGE_SECONDS if max_age is None else max_age
    try:
        data = _serializer().loads(token, max_age=max_age)
    except SignatureExpired as exc:
        logger.warning("Rejected expired ticket")
        raise InvalidTicket("Ticket has expired") from exc
    except BadSignature as exc:
        logger.warning("Rejected ticket with a bad signature")
        raise InvalidTicket("Ticket signature is invalid") from exc

    if not isinstance(data, dict) or not all(data.get(k) for k in ("event_id", "user_id", "rsvp_id")):
        raise InvalidTicket("Ticket payload is incomplete")
    return data


def render_ticket_png(token: str) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=2,
    )
    qr.add_data(token)
    qr.make(fit=True)
    img = qr.make_image(fill_color="#262883", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def scan(
    db: Session,
    event_id: str,
    token: str,
    operator_id: str,
    location: Optional[str] = None,
    notes: Optional[str] = None,
) -> RSVP:
    """Door scan: verify the ticket belongs to this event, then check in via QR."""
    data = read_ticket(token)
    if data["event_id"] != event_id:
        logger.warning("Ticket for event %s scanned at event %s", data["event_id"], event_id)
        raise InvalidTicket("Ticket is for a different event", event_id=event_id,
                            ticket_event_id=data["event_id"])

    rsvp = get_rsvp(db, data["rsvp_id"])
    if rsvp.user_id != data["user_id"] or rsvp.event_id != event_id:
        raise InvalidTicket("Ticket does not match the registration", rsvp_id=rsvp.rsvp_id)

    return rsvp_ledger.check_in(
        db,
        rsvp_id=rsvp.rsvp_id,
        operator_id=operator_id,
        method=CheckInMethod.qr,
        location=location,
        notes=notes,
    )
