"""Marketplace service - read-only listing of tradeable slots."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.connection import transaction
from database.models import Event
from swaps.repositories.event_repository import EventRepository

logger = logging.getLogger(__name__)


class MarketplaceService:
    """SWAPPABLE events offered by other users."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory

    async def list_marketplace(self, caller_id: UUID) -> list[Event]:
        """
        SWAPPABLE events not owned by the caller, earliest first.

        Each event has ``owner`` loaded; expose it only through
        ``User.to_public_dict()`` (id, name, email).
        """
        async with transaction(self._session_factory) as session:
            events = await EventRepository.list_swappable_excluding_owner(session, caller_id)

        logger.debug(
            f"Marketplace listing returned {len(events)} slots",
            extra={"user_id": str(caller_id)},
        )
        return events

    @staticmethod
    def to_listing(event: Event) -> dict:
        """Event dict annotated with the owner's public identity."""
        return {**event.to_dict(), "owner": event.owner.to_public_dict()}
