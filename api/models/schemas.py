"""Pydantic models for event and swap request payloads."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from database.models import EventStatus


class EventCreateRequest(BaseModel):
    """Body of POST /api/events."""
    model_config = ConfigDict(populate_by_name=True)

    title: str
    start_time: datetime = Field(alias="startTime")
    end_time: datetime = Field(alias="endTime")
    status: EventStatus | None = None  # BUSY when omitted


class EventUpdateRequest(BaseModel):
    """Body of PUT /api/events/{id}. Omitted fields are left unchanged."""
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    start_time: datetime | None = Field(default=None, alias="startTime")
    end_time: datetime | None = Field(default=None, alias="endTime")
    status: EventStatus | None = None


class SwapRequestCreate(BaseModel):
    """Body of POST /api/swap-request."""
    model_config = ConfigDict(populate_by_name=True)

    my_slot_id: UUID = Field(alias="mySlotId")
    their_slot_id: UUID = Field(alias="theirSlotId")


class SwapResponseRequest(BaseModel):
    """Body of POST /api/swap-response/{request_id}."""

    accepted: bool
