"""
Event service - Owner-facing calendar event operations.

Every operation is scoped to the calling user: an event that exists but
belongs to someone else is reported as not found, so a caller can never
observe another user's private event through this path (the marketplace
listing is the sanctioned exception).

Status and time changes go through EventStatusMachine. While an event is
SWAP_PENDING its owner may still rename it, but any status/time change or
deletion fails with ConflictError naming the blocking swap request.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.connection import transaction
from database.models import Event, EventStatus
from shared.exceptions import NotFoundError, ValidationError
from swaps.fsm.status_machine import EventStatusMachine
from swaps.repositories.event_repository import EventRepository
from swaps.repositories.swap_request_repository import SwapRequestRepository
from swaps.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

# Matches the events.title column length
MAX_TITLE_LENGTH = 200


@dataclass
class EventPatch:
    """
    Partial update for an event. ``None`` means "leave unchanged".

    Attributes:
        title: New title (must not be blank)
        start_time: New start (naive values are read as UTC)
        end_time: New end (naive values are read as UTC)
        status: BUSY or SWAPPABLE
    """
    title: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: EventStatus | None = None

    @property
    def touches_schedule(self) -> bool:
        """True if the patch changes anything locked by a pending swap."""
        return self.status is not None or self.start_time is not None or self.end_time is not None


def ensure_aware(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and normalize aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def validate_time_range(start_time: datetime, end_time: datetime) -> None:
    if ensure_aware(end_time) <= ensure_aware(start_time):
        raise ValidationError("End time must be after start time")


def clean_title(title: str | None) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title is required")
    if len(cleaned) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
    return cleaned


def coerce_status(status: EventStatus | str) -> EventStatus:
    try:
        return EventStatus(status)
    except ValueError:
        raise ValidationError("Status must be BUSY or SWAPPABLE") from None


class EventService:
    """Service layer for event business logic"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory
        self.repo = EventRepository()

    async def list_events(self, caller_id: UUID) -> list[Event]:
        """Caller's events ordered by start time ascending."""
        async with transaction(self._session_factory) as session:
            return await self.repo.list_by_owner(session, caller_id)

    async def get_event(self, event_id: UUID, caller_id: UUID) -> Event:
        """
        Get one of the caller's events.

        Raises:
            NotFoundError: If the event does not exist or is owned by someone else
        """
        async with transaction(self._session_factory) as session:
            event = await self.repo.get_owned(session, event_id, caller_id)
            if event is None:
                raise NotFoundError("Event not found")
            return event

    async def create_event(
        self,
        caller_id: UUID,
        title: str,
        start_time: datetime,
        end_time: datetime,
        status: EventStatus | str = EventStatus.BUSY,
    ) -> Event:
        """
        Create an event owned by the caller.

        Raises:
            ValidationError: Blank title, end_time <= start_time, or a status
                other than BUSY/SWAPPABLE
            NotFoundError: The caller has no user row
        """
        title = clean_title(title)
        initial_status = EventStatusMachine.validate_initial_status(coerce_status(status))
        start_time = ensure_aware(start_time)
        end_time = ensure_aware(end_time)
        validate_time_range(start_time, end_time)

        async with transaction(self._session_factory) as session:
            if await UserRepository.get(session, caller_id) is None:
                raise NotFoundError("User not found")
            event = await self.repo.add(
                session,
                owner_id=caller_id,
                title=title,
                start_time=start_time,
                end_time=end_time,
                status=initial_status,
            )

        logger.info(
            f"Event created: {event.id}",
            extra={"user_id": str(caller_id), "event_id": str(event.id)},
        )
        return event

    async def update_event(self, event_id: UUID, caller_id: UUID, patch: EventPatch) -> Event:
        """
        Apply a partial update to one of the caller's events.

        The event row is locked for the duration so the update cannot
        interleave with a swap request being created against it.

        Raises:
            NotFoundError: Event absent or owned by someone else
            ValidationError: Blank title, illegal status, or bad time range
            ConflictError: Event is SWAP_PENDING and the patch touches status or time
        """
        new_title = clean_title(patch.title) if patch.title is not None else None
        new_status = coerce_status(patch.status) if patch.status is not None else None
        if new_status is not None and new_status not in EventStatusMachine.OWNER_SETTABLE:
            raise ValidationError("Status must be BUSY or SWAPPABLE")

        async with transaction(self._session_factory) as session:
            event = await self.repo.get_owned(session, event_id, caller_id, for_update=True)
            if event is None:
                raise NotFoundError("Event not found")

            if patch.touches_schedule and not EventStatusMachine.is_owner_editable(event.status):
                await self._raise_pending_conflict(session, event, "update")

            # Re-validate the merged pair, not just the fields that changed
            effective_start = (
                ensure_aware(patch.start_time) if patch.start_time is not None else event.start_time
            )
            effective_end = ensure_aware(patch.end_time) if patch.end_time is not None else event.end_time
            validate_time_range(effective_start, effective_end)

            if new_title is not None:
                event.title = new_title
            if new_status is not None:
                event.status = EventStatusMachine.owner_transition(event.status, new_status)
            if patch.start_time is not None:
                event.start_time = effective_start
            if patch.end_time is not None:
                event.end_time = effective_end
            await session.flush()

        logger.info(
            f"Event updated: {event.id}",
            extra={"user_id": str(caller_id), "event_id": str(event.id)},
        )
        return event

    async def delete_event(self, event_id: UUID, caller_id: UUID) -> None:
        """
        Delete one of the caller's events.

        Raises:
            NotFoundError: Event absent or owned by someone else
            ConflictError: Event is SWAP_PENDING
        """
        async with transaction(self._session_factory) as session:
            event = await self.repo.get_owned(session, event_id, caller_id, for_update=True)
            if event is None:
                raise NotFoundError("Event not found")

            if not EventStatusMachine.is_owner_editable(event.status):
                await self._raise_pending_conflict(session, event, "delete")

            await self.repo.delete(session, event)

        logger.info(
            f"Event deleted: {event_id}",
            extra={"user_id": str(caller_id), "event_id": str(event_id)},
        )

    @staticmethod
    async def _raise_pending_conflict(session: AsyncSession, event: Event, action: str) -> None:
        blocking = await SwapRequestRepository.find_pending_for_event(session, event.id)
        blocking_id = blocking.id if blocking else None
        logger.warning(
            f"Refused to {action} SWAP_PENDING event {event.id}",
            extra={
                "event_id": str(event.id),
                "swap_request_id": str(blocking_id) if blocking_id else None,
            },
        )
        EventStatusMachine.ensure_owner_editable(event.status, action, blocking_id)
