"""Pydantic schemas for attendance records and statistics."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from schedula.models.rsvp import CheckInMethod


class AttendanceOut(BaseModel):
    attendance_id: str
    event_id: str
    user_id: str
    rsvp_id: str
    checked_in_at: datetime
    checked_in_by: str
    method: CheckInMethod
    location: Optional[str] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class AttendanceStats(BaseModel):
    event_id: str
    total_attendees: int
    attendance_rate: float
    checked_in_by_method: dict[str, int]


class EventStats(BaseModel):
    event_id: str
    capacity: int
    confirmed: int
    waitlisted: int
    pending: int
    cancelled: int
    checked_in: int
    fill_rate: float


class OrganizerTotals(BaseModel):
    organizer_id: str
    event_count: int
    capacity: int
    confirmed: int
    waitlisted: int
    pending: int
    cancelled: int
    checked_in: int
    fill_rate: float
    revenue: float
