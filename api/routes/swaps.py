"""
API routes for the marketplace and the swap protocol.

Endpoints:
- GET  /api/swappable-slots            - Other users' SWAPPABLE events
- POST /api/swap-request               - Propose a one-for-one swap
- GET  /api/swap-requests              - Incoming and outgoing requests
- POST /api/swap-response/{request_id} - Accept or reject an incoming request
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from api.dependencies import (
    CurrentUserId,
    get_marketplace_service,
    get_swap_request_service,
    get_swap_transaction,
)
from api.models.schemas import SwapRequestCreate, SwapResponseRequest
from swaps.services.marketplace_service import MarketplaceService
from swaps.services.swap_request_service import SwapRequestService
from swaps.transactions.swap_transaction import SwapTransaction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["swaps"])


@router.get("/swappable-slots")
async def list_swappable_slots(
    caller_id: CurrentUserId,
    service: Annotated[MarketplaceService, Depends(get_marketplace_service)],
) -> list[dict]:
    """SWAPPABLE events owned by other users, each with the owner's id, name and email."""
    events = await service.list_marketplace(caller_id)
    return [MarketplaceService.to_listing(event) for event in events]


@router.post("/swap-request", status_code=status.HTTP_201_CREATED)
async def create_swap_request(
    body: SwapRequestCreate,
    caller_id: CurrentUserId,
    swaps: Annotated[SwapTransaction, Depends(get_swap_transaction)],
) -> dict:
    """
    Offer one of the caller's SWAPPABLE slots for another user's SWAPPABLE slot.

    Both slots become SWAP_PENDING until the recipient answers.

    **Errors:**
    - **400**: Same slot twice, slot not found, slot not SWAPPABLE, or own slot requested
    - **403**: The offered slot belongs to someone else
    """
    swap_request = await swaps.create_swap_request(caller_id, body.my_slot_id, body.their_slot_id)
    return {
        "message": "Swap request created successfully",
        "swapRequest": swap_request.to_detail_dict(),
    }


@router.get("/swap-requests")
async def list_swap_requests(
    caller_id: CurrentUserId,
    service: Annotated[SwapRequestService, Depends(get_swap_request_service)],
) -> dict:
    """Requests received (incoming) and sent (outgoing) by the caller, newest first."""
    listing = await service.list_swap_requests(caller_id)
    return {
        "incoming": [swap_request.to_detail_dict() for swap_request in listing.incoming],
        "outgoing": [swap_request.to_detail_dict() for swap_request in listing.outgoing],
    }


@router.post("/swap-response/{request_id}")
async def respond_to_swap_request(
    request_id: UUID,
    body: SwapResponseRequest,
    caller_id: CurrentUserId,
    swaps: Annotated[SwapTransaction, Depends(get_swap_transaction)],
) -> dict:
    """
    Accept (slots change owners, both BUSY) or reject (both SWAPPABLE again).

    **Errors:**
    - **403**: Caller is not the recipient
    - **404**: Swap request not found
    - **409**: Swap request already processed
    """
    result = await swaps.respond_to_swap_request(request_id, caller_id, accept=body.accepted)
    return {
        "status": result.status.value,
        "message": result.message,
        "swapRequest": result.swap_request.to_detail_dict(),
    }
