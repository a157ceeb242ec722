"""Lookups and authorization checks shared by the services.

The caller's user id is always passed in explicitly; it is trusted as
given and resolved to a profile here.
"""
from sqlalchemy.orm import Session

from schedula.errors import Forbidden, NotFound
from schedula.models.event import Event
from schedula.models.profile import Profile, ProfileRole, ProfileStatus
from schedula.models.rsvp import RSVP


def get_profile(db: Session, user_id: str) -> Profile:
    profile = db.query(Profile).filter(Profile.user_id == user_id).first()
    if not profile:
        raise NotFound("User not found", user_id=user_id)
    return profile


def get_active_profile(db: Session, user_id: str) -> Profile:
    profile = get_profile(db, user_id)
    if profile.status == ProfileStatus.suspended:
        raise Forbidden("User is suspended", user_id=user_id)
    return profile


def get_event(db: Session, event_id: str) -> Event:
    event = db.query(Event).filter(Event.event_id == event_id).first()
    if not event:
        raise NotFound("Event not found", event_id=event_id)
    return event


def get_rsvp(db: Session, rsvp_id: str) -> RSVP:
    rsvp = db.query(RSVP).filter(RSVP.rsvp_id == rsvp_id).first()
    if not rsvp:
        raise NotFound("RSVP not found", rsvp_id=rsvp_id)
    return rsvp


def ensure_organizer_approved(actor: Profile) -> None:
    """Organizer accounts waiting for admin approval cannot act as organizers yet."""
    if actor.status == ProfileStatus.pending and actor.role == ProfileRole.organizer:
        raise Forbidden("Organizer account is pending approval", user_id=actor.user_id)


def can_manage(event: Event, actor: Profile) -> bool:
    if actor.status != ProfileStatus.active:
        return False
    return actor.role == ProfileRole.admin or event.organizer_id == actor.user_id


def ensure_can_manage(event: Event, actor: Profile) -> None:
    """Only the event's organizer (or an admin) may change it or operate its door."""
    ensure_organizer_approved(actor)
    if not can_manage(event, actor):
        raise Forbidden(
            "Only the organizer may manage this event",
            event_id=event.event_id, user_id=actor.user_id,
        )
