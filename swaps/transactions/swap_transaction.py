"""
Swap Transaction Handler - the swap protocol engine.

Two protocol operations, each a single atomic unit of work:

create_swap_request:
    lock both events -> check mySlot (owned, SWAPPABLE) -> check theirSlot
    (someone else's, SWAPPABLE) -> insert PENDING request -> both events
    SWAP_PENDING -> commit

respond_to_swap_request:
    lock request -> check recipient -> check PENDING -> lock both events ->
    ACCEPTED: owners exchanged, both BUSY / REJECTED: both SWAPPABLE -> commit

Row locks are what keep concurrent calls honest: two offers racing for the
same slot serialize on its row and the second one sees SWAP_PENDING; two
responses racing on the same request serialize on the request row and the
second one sees a terminal status. Any failure rolls back every write, so
no event is ever left SWAP_PENDING without a matching PENDING request.

The engine never retries. Domain errors go back to the caller unchanged;
storage failures surface as StorageError.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.connection import transaction
from database.models import SwapRequest, SwapRequestStatus
from shared.exceptions import (
    ConflictError,
    InvariantViolationError,
    NotFoundError,
    ValidationError,
)
from swaps.fsm.status_machine import EventStatusMachine, SwapRequestStatusMachine, SwapTrigger
from swaps.repositories.event_repository import EventRepository
from swaps.repositories.swap_request_repository import SwapRequestRepository
from swaps.services.swap_request_service import SwapRequestService
from swaps.validators.swap_validators import (
    validate_offered_slot,
    validate_requested_slot,
    validate_responder,
)

logger = logging.getLogger(__name__)

ACCEPTED_MESSAGE = "Swap request accepted successfully. Slots have been exchanged."
REJECTED_MESSAGE = "Swap request rejected. Both slots are now available for swapping again."


@dataclass
class SwapResponseResult:
    """
    Outcome of answering a swap request.

    Attributes:
        status: ACCEPTED or REJECTED
        message: Human-readable summary
        swap_request: The resolved request with both slots loaded
    """
    status: SwapRequestStatus
    message: str
    swap_request: SwapRequest


class SwapTransaction:
    """
    Atomic transaction handler for the swap protocol.

    The session factory is injected so tests (and alternative deployments)
    can bind the protocol to their own database.

    Example:
        >>> swaps = SwapTransaction(session_factory)
        >>> request = await swaps.create_swap_request(alice_id, alice_slot, bob_slot)
        >>> result = await swaps.respond_to_swap_request(request.id, bob_id, accept=True)
        >>> result.status
        <SwapRequestStatus.ACCEPTED: 'ACCEPTED'>
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory

    async def create_swap_request(
        self, requester_id: UUID, my_slot_id: UUID, their_slot_id: UUID
    ) -> SwapRequest:
        """
        Propose exchanging ``my_slot_id`` for ``their_slot_id``.

        Args:
            requester_id: Caller, must own my_slot
            my_slot_id: Caller's SWAPPABLE event
            their_slot_id: Another user's SWAPPABLE event

        Returns:
            The new PENDING SwapRequest with requester, recipient and both slots loaded

        Raises:
            ValidationError: Same slot twice, a slot missing or not SWAPPABLE,
                or their_slot owned by the requester
            AuthorizationError: my_slot owned by someone else
        """
        trace_id = f"{requester_id}_{my_slot_id}"

        if my_slot_id == their_slot_id:
            logger.warning(f"[{trace_id}] Rejected self-swap of slot {my_slot_id}")
            raise ValidationError("Cannot swap a slot with itself")

        logger.info(
            f"[{trace_id}] Starting swap request transaction",
            extra={
                "trace_id": trace_id,
                "user_id": str(requester_id),
                "event_id": str(their_slot_id),
            },
        )

        async with transaction(self._session_factory) as session:
            # Step 1: Lock both event rows (ascending id order)
            slots = await EventRepository.lock_many(session, [my_slot_id, their_slot_id])

            # Step 2: Validate the offered slot
            my_slot = validate_offered_slot(slots.get(my_slot_id), requester_id)

            # Step 3: Validate the requested slot
            their_slot = validate_requested_slot(slots.get(their_slot_id), requester_id)

            # Step 4: Create the PENDING request addressed to theirSlot's owner
            swap_request = await SwapRequestService.create(
                session,
                requester_id=requester_id,
                recipient_id=their_slot.owner_id,
                my_slot_id=my_slot.id,
                their_slot_id=their_slot.id,
            )

            # Step 5: Lock both slots inside the request
            for slot in (my_slot, their_slot):
                slot.status = EventStatusMachine.system_transition(
                    slot.status, SwapTrigger.REQUEST_CREATED
                )
            await session.flush()

            created = await SwapRequestRepository.get_with_details(session, swap_request.id)

        logger.info(
            f"[{trace_id}] Swap request created",
            extra={
                "trace_id": trace_id,
                "swap_request_id": str(created.id),
                "user_id": str(requester_id),
            },
        )
        return created

    async def respond_to_swap_request(
        self, request_id: UUID, responder_id: UUID, accept: bool
    ) -> SwapResponseResult:
        """
        Accept or reject a PENDING swap request.

        Accepting exchanges the owners of the two events and marks both BUSY;
        a swapped-in slot is not re-offered automatically. Rejecting returns
        both events to the marketplace (SWAPPABLE) with owners unchanged.

        Raises:
            NotFoundError: Request does not exist
            AuthorizationError: Responder is not the recipient
            ConflictError: Request already ACCEPTED or REJECTED
        """
        trace_id = f"{responder_id}_{request_id}"
        outcome = SwapRequestStatusMachine.outcome_for(accept)

        logger.info(
            f"[{trace_id}] Starting swap response transaction ({outcome.value})",
            extra={
                "trace_id": trace_id,
                "user_id": str(responder_id),
                "swap_request_id": str(request_id),
            },
        )

        async with transaction(self._session_factory) as session:
            # Step 1: Lock the request row
            swap_request = await SwapRequestRepository.get_for_update(session, request_id)
            if swap_request is None:
                raise NotFoundError("Swap request not found")

            # Step 2: Only the recipient answers
            validate_responder(swap_request, responder_id)

            # Step 3: Exactly once
            if swap_request.status != SwapRequestStatus.PENDING:
                logger.warning(
                    f"[{trace_id}] Swap request already {swap_request.status.value}",
                    extra={"swap_request_id": str(request_id)},
                )
                raise ConflictError(
                    "This swap request has already been processed",
                    swap_request_id=swap_request.id,
                )

            # Step 4: Lock both events
            slots = await EventRepository.lock_many(
                session, [swap_request.my_slot_id, swap_request.their_slot_id]
            )
            my_slot = slots.get(swap_request.my_slot_id)
            their_slot = slots.get(swap_request.their_slot_id)
            if my_slot is None or their_slot is None:
                raise InvariantViolationError(
                    f"PENDING swap request {swap_request.id} references a missing event"
                )

            # Step 5: Resolve the request and move both events
            await SwapRequestService.resolve(session, swap_request, outcome)

            if accept:
                trigger = SwapTrigger.REQUEST_ACCEPTED
                my_slot.owner_id = swap_request.recipient_id
                their_slot.owner_id = swap_request.requester_id
            else:
                trigger = SwapTrigger.REQUEST_REJECTED

            for slot in (my_slot, their_slot):
                slot.status = EventStatusMachine.system_transition(slot.status, trigger)
            await session.flush()

            resolved = await SwapRequestRepository.get_with_details(session, swap_request.id)

        logger.info(
            f"[{trace_id}] Swap request {outcome.value}",
            extra={"trace_id": trace_id, "swap_request_id": str(request_id)},
        )
        return SwapResponseResult(
            status=outcome,
            message=ACCEPTED_MESSAGE if accept else REJECTED_MESSAGE,
            swap_request=resolved,
        )
