"""Pydantic schemas for Events."""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from schedula.models.event import EventStatus, PricingType
from schedula.models.event_mutation import ActionType


class EventCreate(BaseModel):
    organizer_id: str
    title: str
    description: Optional[str] = None
    location_text: Optional[str] = None
    start_time_utc: datetime
    end_time_utc: datetime
    registration_deadline: Optional[datetime] = None
    capacity: int = Field(ge=0)
    pricing_type: PricingType = PricingType.free
    price_amount: Optional[Decimal] = None
    currency: str = "USD"
    requires_approval: bool = False


class EventUpdate(BaseModel):
    actor_user_id: str
    version: Optional[int] = None  # optimistic locking, optional
    title: Optional[str] = None
    description: Optional[str] = None
    location_text: Optional[str] = None
    start_time_utc: Optional[datetime] = None
    end_time_utc: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    pricing_type: Optional[PricingType] = None
    price_amount: Optional[Decimal] = None
    currency: Optional[str] = None
    requires_approval: Optional[bool] = None


class EventOut(BaseModel):
    event_id: str
    organizer_id: str
    title: str
    description: Optional[str] = None
    location_text: Optional[str] = None
    start_time_utc: datetime
    end_time_utc: datetime
    registration_deadline: Optional[datetime] = None
    capacity: int
    pricing_type: PricingType
    price_amount: Optional[Decimal] = None
    currency: str
    requires_approval: bool
    status: EventStatus
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EventTransition(BaseModel):
    actor_user_id: str
    version: Optional[int] = None  # optimistic locking, optional


class EventCancelRequest(EventTransition):
    cancel_reason: Optional[str] = None


class CapacityUpdate(EventTransition):
    capacity: int


class EventMutationOut(BaseModel):
    mutation_id: str
    actor_user_id: str
    action_type: ActionType
    before_snapshot: Optional[dict] = None
    after_snapshot: dict
    created_at: datetime

    model_config = {"from_attributes": True}
