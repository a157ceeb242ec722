"""Notification ORM model — stored in-app messages (delivery is out of scope)."""
import uuid
import enum
from sqlalchemy import Boolean, Column, DateTime, Enum as SAEnum, ForeignKey, JSON, String
from schedula.database import Base
from schedula.timeutils import utcnow


class NotificationType(str, enum.Enum):
    info = "info"
    success = "success"
    warning = "warning"
    error = "error"


class Notification(Base):
    __tablename__ = "notifications"

    notification_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("profiles.user_id"), nullable=False, index=True)
    type = Column(SAEnum(NotificationType, native_enum=False), nullable=False, default=NotificationType.info)
    title = Column(String(255), nullable=False)
    message = Column(String(1000), nullable=False)
    action_url = Column(String(500), nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    # "metadata" is reserved on declarative classes
    extra = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
