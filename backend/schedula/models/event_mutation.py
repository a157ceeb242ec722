"""EventMutation ORM model — audit trail of every Event Record Store write."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Enum as SAEnum
from schedula.database import Base
from schedula.timeutils import utcnow


class ActionType(str, enum.Enum):
    create = "create"
    publish = "publish"
    cancel = "cancel"
    complete = "complete"
    update = "update"
    update_capacity = "update_capacity"


class EventMutation(Base):
    __tablename__ = "event_mutations"

    mutation_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False, index=True)
    actor_user_id = Column(String(36), ForeignKey("profiles.user_id"), nullable=False)
    action_type = Column(SAEnum(ActionType, native_enum=False), nullable=False)
    before_snapshot = Column(JSON, nullable=True)
    after_snapshot = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
