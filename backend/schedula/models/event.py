"""Event ORM model — capacity, pricing, schedule and lifecycle status."""
import uuid
import enum
from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Enum as SAEnum, ForeignKey, Integer, Numeric, String, Text,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from schedula.database import Base


class EventStatus(str, enum.Enum):
    draft = "draft"
    published = "published"
    cancelled = "cancelled"
    completed = "completed"


class PricingType(str, enum.Enum):
    free = "free"
    paid = "paid"


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("capacity >= 0", name="ck_events_capacity_non_negative"),
    )

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    organizer_id = Column(String(36), ForeignKey("profiles.user_id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location_text = Column(String(500), nullable=True)
    start_time_utc = Column(DateTime(timezone=True), nullable=False)
    end_time_utc = Column(DateTime(timezone=True), nullable=False)
    registration_deadline = Column(DateTime(timezone=True), nullable=True)
    capacity = Column(Integer, nullable=False, default=0)
    pricing_type = Column(SAEnum(PricingType, native_enum=False), nullable=False, default=PricingType.free)
    price_amount = Column(Numeric(10, 2), nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    requires_approval = Column(Boolean, nullable=False, default=False)
    status = Column(SAEnum(EventStatus, native_enum=False), nullable=False, default=EventStatus.draft)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancel_reason = Column(String(500), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    rsvps = relationship("RSVP", back_populates="event")
