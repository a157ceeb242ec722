"""Attendance ORM model — immutable record of one check-in."""
import uuid
from sqlalchemy import Column, DateTime, Enum as SAEnum, ForeignKey, String, UniqueConstraint
from schedula.database import Base
from schedula.models.rsvp import CheckInMethod
from schedula.timeutils import utcnow


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_attendance_event_user"),
    )

    attendance_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.user_id"), nullable=False, index=True)
    rsvp_id = Column(String(36), ForeignKey("rsvps.rsvp_id"), nullable=False, unique=True)
    checked_in_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    checked_in_by = Column(String(36), ForeignKey("profiles.user_id"), nullable=False)
    method = Column(SAEnum(CheckInMethod, native_enum=False, values_callable=lambda e: [m.value for m in e]), nullable=False)
    location = Column(String(255), nullable=True)
    notes = Column(String(500), nullable=True)
