"""
API routes for the caller's own calendar events.

All endpoints are scoped to the authenticated user. Domain errors raised by
EventService are turned into responses by the handlers in api.main.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from api.dependencies import CurrentUserId, get_event_service
from api.models.schemas import EventCreateRequest, EventUpdateRequest
from database.models import EventStatus
from swaps.services.event_service import EventPatch, EventService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events", tags=["events"])

EventServiceDep = Annotated[EventService, Depends(get_event_service)]


@router.get("")
async def list_events(caller_id: CurrentUserId, service: EventServiceDep) -> list[dict]:
    """List the caller's events ordered by start time."""
    events = await service.list_events(caller_id)
    return [event.to_dict() for event in events]


@router.get("/{event_id}")
async def get_event(event_id: UUID, caller_id: CurrentUserId, service: EventServiceDep) -> dict:
    """
    Get one of the caller's events.

    **Errors:**
    - **404**: Event not found (or owned by another user)
    """
    event = await service.get_event(event_id, caller_id)
    return event.to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event(
    body: EventCreateRequest, caller_id: CurrentUserId, service: EventServiceDep
) -> dict:
    """
    Create an event. Status defaults to BUSY.

    **Errors:**
    - **400**: Empty title, end time not after start time, or status not BUSY/SWAPPABLE
    """
    event = await service.create_event(
        caller_id,
        title=body.title,
        start_time=body.start_time,
        end_time=body.end_time,
        status=body.status or EventStatus.BUSY,
    )
    return event.to_dict()


@router.put("/{event_id}")
async def update_event(
    event_id: UUID, body: EventUpdateRequest, caller_id: CurrentUserId, service: EventServiceDep
) -> dict:
    """
    Update an event's title, time range or status.

    **Errors:**
    - **400**: Invalid title, status or time range
    - **404**: Event not found
    - **409**: Event has a pending swap request and the update touches status or time
    """
    patch = EventPatch(
        title=body.title,
        start_time=body.start_time,
        end_time=body.end_time,
        status=body.status,
    )
    event = await service.update_event(event_id, caller_id, patch)
    return event.to_dict()


@router.delete("/{event_id}")
async def delete_event(event_id: UUID, caller_id: CurrentUserId, service: EventServiceDep) -> dict:
    """
    Delete an event.

    **Errors:**
    - **404**: Event not found
    - **409**: Event has a pending swap request
    """
    await service.delete_event(event_id, caller_id)
    return {"message": "Event deleted successfully"}
