"""
Error taxonomy shared by the swap services and the HTTP boundary.

Domain errors (ValidationError, NotFoundError, AuthorizationError,
ConflictError) describe a decision the caller has to revisit; retrying them
unchanged never succeeds. StorageError wraps infrastructure failures
(connection loss, lock/statement timeouts, serialization aborts) and is the
only class a caller may retry.
"""

from uuid import UUID


class SlotSwapError(Exception):
    """Base exception for all slot marketplace errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SlotSwapError):
    """Malformed or semantically invalid input (bad time range, self-swap, slot not SWAPPABLE)."""
    pass


class NotFoundError(SlotSwapError):
    """Entity is absent or not visible to the caller."""
    pass


class AuthorizationError(SlotSwapError):
    """Caller lacks rights over the entity."""
    pass


class ConflictError(SlotSwapError):
    """
    State-machine violation.

    Raised when acting on a SWAP_PENDING event or resolving a swap request
    that is no longer PENDING. ``swap_request_id`` names the blocking request
    when one is known.
    """

    def __init__(self, message: str, swap_request_id: UUID | None = None):
        super().__init__(message)
        self.swap_request_id = swap_request_id


class StorageError(SlotSwapError):
    """Transaction aborted by the backing store. Safe to retry."""
    pass


class InvariantViolationError(RuntimeError):
    """Programming error: a status transition outside the allowed graph was attempted."""
    pass
