"""Pydantic schemas for RSVPs, check-in and tickets."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from schedula.models.rsvp import RSVPStatus, CheckInMethod


class RegisterRequest(BaseModel):
    user_id: str


class RSVPAction(BaseModel):
    actor_user_id: str


class RSVPOut(BaseModel):
    rsvp_id: str
    event_id: str
    user_id: str
    status: RSVPStatus
    registered_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    checked_in: bool
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[str] = None
    check_in_method: Optional[CheckInMethod] = None

    model_config = {"from_attributes": True}


class CheckInRequest(BaseModel):
    operator_id: str
    method: CheckInMethod = CheckInMethod.manual
    location: Optional[str] = None
    notes: Optional[str] = None


class ScanRequest(BaseModel):
    operator_id: str
    token: str
    location: Optional[str] = None
    notes: Optional[str] = None


class TicketOut(BaseModel):
    event_id: str
    user_id: str
    rsvp_id: str
    token: str


class PromoteResult(BaseModel):
    promoted: Optional[RSVPOut] = None
