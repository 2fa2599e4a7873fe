"""
Status machines for events and swap requests.

Pure logic, no storage access. Callers load the current status inside their
transaction and ask the machine what the next status may be; the machine
raises instead of returning a flag so an illegal transition can never be
written by accident.

Event transitions:
    Owner-initiated:   BUSY <-> SWAPPABLE (any time the event is not SWAP_PENDING)
    System-initiated:  SWAPPABLE    --REQUEST_CREATED-->  SWAP_PENDING
                       SWAP_PENDING --REQUEST_ACCEPTED--> BUSY       (owners swapped)
                       SWAP_PENDING --REQUEST_REJECTED--> SWAPPABLE  (owners kept)

Swap request transitions:
    PENDING -> ACCEPTED | REJECTED, terminal afterwards.
"""

import logging
from enum import Enum
from typing import ClassVar
from uuid import UUID

from database.models import EventStatus, SwapRequestStatus
from shared.exceptions import ConflictError, InvariantViolationError, ValidationError

logger = logging.getLogger(__name__)


class SwapTrigger(str, Enum):
    """Swap protocol steps that move an event's status."""

    REQUEST_CREATED = "request_created"
    REQUEST_ACCEPTED = "request_accepted"
    REQUEST_REJECTED = "request_rejected"


class EventStatusMachine:
    """
    Transition rules for Event.status.

    Example:
        >>> EventStatusMachine.owner_transition(EventStatus.BUSY, EventStatus.SWAPPABLE)
        <EventStatus.SWAPPABLE: 'SWAPPABLE'>
        >>> EventStatusMachine.system_transition(EventStatus.SWAPPABLE, SwapTrigger.REQUEST_CREATED)
        <EventStatus.SWAP_PENDING: 'SWAP_PENDING'>
    """

    # Statuses an owner may set directly
    OWNER_SETTABLE: ClassVar[frozenset[EventStatus]] = frozenset(
        {EventStatus.BUSY, EventStatus.SWAPPABLE}
    )

    # Statuses from which the owner may edit status/time or delete
    OWNER_EDITABLE: ClassVar[frozenset[EventStatus]] = frozenset(
        {EventStatus.BUSY, EventStatus.SWAPPABLE}
    )

    SYSTEM_TRANSITIONS: ClassVar[dict[tuple[EventStatus, SwapTrigger], EventStatus]] = {
        (EventStatus.SWAPPABLE, SwapTrigger.REQUEST_CREATED): EventStatus.SWAP_PENDING,
        (EventStatus.SWAP_PENDING, SwapTrigger.REQUEST_ACCEPTED): EventStatus.BUSY,
        (EventStatus.SWAP_PENDING, SwapTrigger.REQUEST_REJECTED): EventStatus.SWAPPABLE,
    }

    @classmethod
    def validate_initial_status(cls, status: EventStatus) -> EventStatus:
        """New events start BUSY or SWAPPABLE; SWAP_PENDING is system-only."""
        if status not in cls.OWNER_SETTABLE:
            raise ValidationError("Status must be BUSY or SWAPPABLE")
        return status

    @classmethod
    def is_owner_editable(cls, status: EventStatus) -> bool:
        return status in cls.OWNER_EDITABLE

    @classmethod
    def ensure_owner_editable(
        cls,
        current: EventStatus,
        action: str,
        blocking_request_id: UUID | None = None,
    ) -> None:
        """
        Guard owner-initiated status/time changes and deletions.

        Args:
            current: Status currently stored for the event
            action: Human-readable action for the error message ("update", "delete")
            blocking_request_id: PENDING swap request holding the event, if known

        Raises:
            ConflictError: If the event is locked in a pending swap
        """
        if cls.is_owner_editable(current):
            return

        if blocking_request_id is not None:
            message = (
                f"Cannot {action} an event with a pending swap request "
                f"(swap request {blocking_request_id})"
            )
        else:
            message = f"Cannot {action} an event with a pending swap request"
        raise ConflictError(message, swap_request_id=blocking_request_id)

    @classmethod
    def owner_transition(
        cls,
        current: EventStatus,
        target: EventStatus,
        blocking_request_id: UUID | None = None,
    ) -> EventStatus:
        """
        Validate an owner-requested status change and return the new status.

        Raises:
            ValidationError: If the owner asks for SWAP_PENDING
            ConflictError: If the event is currently SWAP_PENDING
        """
        if target not in cls.OWNER_SETTABLE:
            raise ValidationError("Status must be BUSY or SWAPPABLE")
        cls.ensure_owner_editable(current, "change the status of", blocking_request_id)
        return target

    @classmethod
    def system_transition(cls, current: EventStatus, trigger: SwapTrigger) -> EventStatus:
        """
        Next status for a swap protocol step.

        Raises:
            InvariantViolationError: If the step is not defined for ``current``.
                The protocol checks preconditions before calling this, so reaching
                the error means the caller skipped a check.
        """
        target = cls.SYSTEM_TRANSITIONS.get((current, trigger))
        if target is None:
            logger.error(f"Illegal system transition: {current.value} --{trigger.value}-->")
            raise InvariantViolationError(
                f"No transition from {current.value} on {trigger.value}"
            )
        return target


class SwapRequestStatusMachine:
    """Transition rules for SwapRequest.status."""

    TRANSITIONS: ClassVar[dict[SwapRequestStatus, frozenset[SwapRequestStatus]]] = {
        SwapRequestStatus.PENDING: frozenset(
            {SwapRequestStatus.ACCEPTED, SwapRequestStatus.REJECTED}
        ),
        SwapRequestStatus.ACCEPTED: frozenset(),
        SwapRequestStatus.REJECTED: frozenset(),
    }

    @classmethod
    def resolve(cls, current: SwapRequestStatus, outcome: SwapRequestStatus) -> SwapRequestStatus:
        """
        Validate a resolution and return the terminal status.

        Raises:
            InvariantViolationError: If ``outcome`` is not a terminal status
            ConflictError: If the request was already resolved
        """
        if not outcome.is_terminal:
            raise InvariantViolationError(f"{outcome.value} is not a resolution outcome")
        if outcome not in cls.TRANSITIONS[current]:
            raise ConflictError("This swap request has already been processed")
        return outcome

    @staticmethod
    def outcome_for(accept: bool) -> SwapRequestStatus:
        return SwapRequestStatus.ACCEPTED if accept else SwapRequestStatus.REJECTED
