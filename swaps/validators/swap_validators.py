"""
Swap Validators for the swap protocol.

Checks run on rows already locked by SwapTransaction, so the outcome holds
until the transaction commits. Each validator raises the error the caller
sees; nothing is returned on success.
"""

import logging
from uuid import UUID

from database.models import Event, EventStatus, SwapRequest
from shared.exceptions import AuthorizationError, ValidationError

logger = logging.getLogger(__name__)


def validate_offered_slot(slot: Event | None, requester_id: UUID) -> Event:
    """
    Validate the slot the requester offers (mySlot).

    Args:
        slot: Locked event row, or None if it does not exist
        requester_id: Caller proposing the swap

    Returns:
        The validated event

    Raises:
        ValidationError: Slot missing or not SWAPPABLE
        AuthorizationError: Slot owned by someone else
    """
    if slot is None:
        raise ValidationError("Your slot not found")

    if slot.owner_id != requester_id:
        logger.warning(
            f"Swap offered with a slot the requester does not own: {slot.id}",
            extra={"user_id": str(requester_id), "event_id": str(slot.id)},
        )
        raise AuthorizationError("You do not own this slot")

    if slot.status != EventStatus.SWAPPABLE:
        raise ValidationError("Your slot must be SWAPPABLE")

    return slot


def validate_requested_slot(slot: Event | None, requester_id: UUID) -> Event:
    """
    Validate the slot the requester asks for (theirSlot).

    Raises:
        ValidationError: Slot missing, owned by the requester, or no longer SWAPPABLE
    """
    if slot is None:
        raise ValidationError("The requested slot not found")

    if slot.owner_id == requester_id:
        raise ValidationError("Cannot swap with your own slot")

    if slot.status != EventStatus.SWAPPABLE:
        logger.info(
            f"Requested slot {slot.id} is {slot.status.value}, not SWAPPABLE",
            extra={"user_id": str(requester_id), "event_id": str(slot.id)},
        )
        raise ValidationError("The requested slot is no longer available for swapping")

    return slot


def validate_responder(swap_request: SwapRequest, responder_id: UUID) -> None:
    """
    Only the recipient may accept or reject.

    Raises:
        AuthorizationError: If the responder is not the recipient
    """
    if swap_request.recipient_id != responder_id:
        logger.warning(
            f"User {responder_id} tried to answer swap request {swap_request.id}",
            extra={"user_id": str(responder_id), "swap_request_id": str(swap_request.id)},
        )
        raise AuthorizationError("You are not authorized to respond to this request")
