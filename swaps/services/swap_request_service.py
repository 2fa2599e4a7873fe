"""
Swap request service - Creation, listing and resolution of swap requests.

Creation and resolution are session-level operations: they only make sense
as steps of the swap protocol (SwapTransaction), which also moves the two
events. Listing is a standalone read for the caller.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.connection import transaction
from database.models import SwapRequest, SwapRequestStatus
from shared.exceptions import ConflictError, ValidationError
from swaps.fsm.status_machine import SwapRequestStatusMachine
from swaps.repositories.swap_request_repository import SwapRequestRepository

logger = logging.getLogger(__name__)


@dataclass
class SwapRequestListing:
    """
    Swap requests involving one user, newest first.

    Attributes:
        incoming: Requests where the user is the recipient
        outgoing: Requests where the user is the requester
    """
    incoming: list[SwapRequest] = field(default_factory=list)
    outgoing: list[SwapRequest] = field(default_factory=list)


class SwapRequestService:
    """Service layer for swap request records"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory
        self.repo = SwapRequestRepository()

    async def list_swap_requests(self, user_id: UUID) -> SwapRequestListing:
        """Incoming and outgoing requests for a user, each newest first."""
        async with transaction(self._session_factory) as session:
            incoming = await self.repo.list_incoming(session, user_id)
            outgoing = await self.repo.list_outgoing(session, user_id)

        return SwapRequestListing(incoming=incoming, outgoing=outgoing)

    @staticmethod
    async def create(
        session: AsyncSession,
        requester_id: UUID,
        recipient_id: UUID,
        my_slot_id: UUID,
        their_slot_id: UUID,
    ) -> SwapRequest:
        """
        Insert a PENDING request inside the caller's transaction.

        Raises:
            ValidationError: If both slot ids are the same
        """
        if my_slot_id == their_slot_id:
            raise ValidationError("Cannot swap a slot with itself")

        return await SwapRequestRepository.add(
            session,
            requester_id=requester_id,
            recipient_id=recipient_id,
            my_slot_id=my_slot_id,
            their_slot_id=their_slot_id,
        )

    @staticmethod
    async def resolve(
        session: AsyncSession, swap_request: SwapRequest, outcome: SwapRequestStatus
    ) -> SwapRequest:
        """
        Set a terminal status on a locked PENDING request.

        Double resolution is rejected rather than treated as a no-op.

        Raises:
            ConflictError: If the request is no longer PENDING
        """
        try:
            swap_request.status = SwapRequestStatusMachine.resolve(swap_request.status, outcome)
        except ConflictError as e:
            raise ConflictError(e.message, swap_request_id=swap_request.id) from None

        await session.flush()

        logger.info(
            f"Swap request resolved: {swap_request.id} -> {outcome.value}",
            extra={"swap_request_id": str(swap_request.id)},
        )
        return swap_request
