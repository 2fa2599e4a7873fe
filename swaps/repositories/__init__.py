"""
Row-level data access for users, events and swap requests.

Repositories run on a session the caller already holds, so the swap
protocol can compose several of them inside one transaction. They never
commit.
"""

from swaps.repositories.event_repository import EventRepository
from swaps.repositories.swap_request_repository import SwapRequestRepository
from swaps.repositories.user_repository import UserRepository

__all__ = ["EventRepository", "SwapRequestRepository", "UserRepository"]
