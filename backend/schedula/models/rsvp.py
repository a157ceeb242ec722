"""RSVP ORM model — one registration of a user against an event."""
import uuid
import enum
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Enum as SAEnum, ForeignKey, Index, String, text
from sqlalchemy.orm import relationship
from schedula.database import Base
from schedula.timeutils import utcnow


class RSVPStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    waitlisted = "waitlisted"
    cancelled = "cancelled"


ACTIVE_STATUSES = (RSVPStatus.pending, RSVPStatus.confirmed, RSVPStatus.waitlisted)


class CheckInMethod(str, enum.Enum):
    qr = "qr"
    manual = "manual"
    self_service = "self"


class RSVP(Base):
    __tablename__ = "rsvps"
    __table_args__ = (
        # At most one non-cancelled RSVP per (event, user).
        Index(
            "uq_rsvps_active_event_user",
            "event_id",
            "user_id",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
        Index("ix_rsvps_event_status_registered", "event_id", "status", "registered_at"),
        CheckConstraint("NOT checked_in OR checked_in_at IS NOT NULL", name="ck_rsvps_checked_in_timestamp"),
    )

    rsvp_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False)
    user_id = Column(String(36), ForeignKey("profiles.user_id"), nullable=False, index=True)
    status = Column(SAEnum(RSVPStatus, native_enum=False), nullable=False)
    # Client-side default keeps microseconds, which FIFO promotion orders by.
    registered_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    checked_in = Column(Boolean, nullable=False, default=False)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    checked_in_by = Column(String(36), ForeignKey("profiles.user_id"), nullable=True)
    check_in_method = Column(
        SAEnum(CheckInMethod, native_enum=False, values_callable=lambda e: [m.value for m in e]), nullable=True,
    )
    notes = Column(String(500), nullable=True)

    event = relationship("Event", back_populates="rsvps")
