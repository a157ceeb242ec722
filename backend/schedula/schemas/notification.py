"""Pydantic schemas for Notifications."""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field

from schedula.models.notification import NotificationType


class NotificationOut(BaseModel):
    notification_id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    action_url: Optional[str] = None
    read: bool
    metadata: Optional[dict[str, Any]] = Field(default=None, validation_alias="extra")
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCount(BaseModel):
    user_id: str
    unread: int
