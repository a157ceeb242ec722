"""Profile ORM model — who a caller is and what role they hold."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Enum as SAEnum
from sqlalchemy.sql import func
from schedula.database import Base


class ProfileRole(str, enum.Enum):
    attendee = "attendee"
    organizer = "organizer"
    admin = "admin"


class ProfileStatus(str, enum.Enum):
    active = "active"
    pending = "pending"
    suspended = "suspended"


class Profile(Base):
    __tablename__ = "profiles"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), nullable=False, unique=True)
    display_name = Column(String(100), nullable=False)
    role = Column(SAEnum(ProfileRole, native_enum=False), nullable=False, default=ProfileRole.attendee)
    status = Column(SAEnum(ProfileStatus, native_enum=False), nullable=False, default=ProfileStatus.active)
    timezone = Column(String(50), nullable=False, default="UTC")  # IANA tz
    created_at = Column(DateTime(timezone=True), server_default=func.now())
