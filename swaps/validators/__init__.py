"""
Swap validators.

Precondition checks run by SwapTransaction on rows it has already locked:
- validate_offered_slot: requester's own slot (exists, owned, SWAPPABLE)
- validate_requested_slot: counterpart slot (exists, not self-owned, SWAPPABLE)
- validate_responder: only the recipient may answer a PENDING request
"""

from swaps.validators.swap_validators import (
    validate_offered_slot,
    validate_requested_slot,
    validate_responder,
)

__all__ = [
    "validate_offered_slot",
    "validate_requested_slot",
    "validate_responder",
]
