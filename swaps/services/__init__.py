"""
Swap services.

Services:
- event_service: owner-scoped event CRUD guarded by the status machine
- swap_request_service: swap request creation, listing and resolution
- marketplace_service: read-only listing of other users' SWAPPABLE slots
- consistency_service: audit of the SWAP_PENDING <-> PENDING invariant
- user_service: first-sight provisioning of authenticated callers
"""

from swaps.services.consistency_service import ConsistencyReport, audit_swap_consistency
from swaps.services.event_service import EventPatch, EventService
from swaps.services.marketplace_service import MarketplaceService
from swaps.services.swap_request_service import SwapRequestListing, SwapRequestService
from swaps.services.user_service import UserService

__all__ = [
    "ConsistencyReport",
    "EventPatch",
    "EventService",
    "MarketplaceService",
    "SwapRequestListing",
    "SwapRequestService",
    "UserService",
    "audit_swap_consistency",
]
