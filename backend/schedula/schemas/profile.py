"""Pydantic schemas for Profiles."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from schedula.models.profile import ProfileRole, ProfileStatus


class ProfileCreate(BaseModel):
    email: str
    display_name: str
    role: ProfileRole = ProfileRole.attendee
    timezone: str = "UTC"


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    role: Optional[ProfileRole] = None
    status: Optional[ProfileStatus] = None
    timezone: Optional[str] = None


class ProfileOut(BaseModel):
    user_id: str
    email: str
    display_name: str
    role: ProfileRole
    status: ProfileStatus
    timezone: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ProfileAction(BaseModel):
    actor_user_id: str
