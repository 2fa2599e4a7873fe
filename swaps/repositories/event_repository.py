"""Event repository - Database operations for events"""

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models import Event, EventStatus


class EventRepository:
    """Repository for event database operations"""

    @staticmethod
    async def list_by_owner(session: AsyncSession, owner_id: UUID) -> list[Event]:
        """All events owned by a user, earliest first"""
        result = await session.execute(
            select(Event)
            .where(Event.owner_id == owner_id)
            .order_by(Event.start_time.asc(), Event.id.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_owned(
        session: AsyncSession, event_id: UUID, owner_id: UUID, for_update: bool = False
    ) -> Event | None:
        """Get an event only if it belongs to ``owner_id``"""
        stmt = select(Event).where(Event.id == event_id, Event.owner_id == owner_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def lock_many(session: AsyncSession, event_ids: Iterable[UUID]) -> dict[UUID, Event]:
        """
        Lock a set of event rows with SELECT ... FOR UPDATE.

        Rows are locked in ascending id order so two transactions locking the
        same pair in opposite roles queue up instead of deadlocking. Missing
        ids are simply absent from the returned mapping.

        populate_existing() makes sure the values come from this read and not
        from objects already loaded in the session.
        """
        ids = sorted(set(event_ids))
        result = await session.execute(
            select(Event)
            .where(Event.id.in_(ids))
            .order_by(Event.id.asc())
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {event.id: event for event in result.scalars().all()}

    @staticmethod
    async def list_swappable_excluding_owner(session: AsyncSession, owner_id: UUID) -> list[Event]:
        """SWAPPABLE events owned by anyone but ``owner_id``, with owners loaded"""
        result = await session.execute(
            select(Event)
            .options(selectinload(Event.owner))
            .where(Event.status == EventStatus.SWAPPABLE, Event.owner_id != owner_id)
            .order_by(Event.start_time.asc(), Event.id.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_by_status(session: AsyncSession, status: EventStatus) -> list[Event]:
        result = await session.execute(select(Event).where(Event.status == status))
        return list(result.scalars().all())

    @staticmethod
    async def add(
        session: AsyncSession,
        owner_id: UUID,
        title: str,
        start_time: datetime,
        end_time: datetime,
        status: EventStatus,
    ) -> Event:
        """Insert a new event and flush to obtain its id"""
        event = Event(
            owner_id=owner_id,
            title=title,
            start_time=start_time,
            end_time=end_time,
            status=status,
        )
        session.add(event)
        await session.flush()
        return event

    @staticmethod
    async def delete(session: AsyncSession, event: Event) -> None:
        await session.delete(event)
        await session.flush()
