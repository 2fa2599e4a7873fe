"""
Consistency audit for the swap protocol.

Checks, from one snapshot, that:
- every SWAP_PENDING event is referenced by exactly one PENDING swap request
- every PENDING swap request references two SWAP_PENDING events that still
  belong to its requester and recipient respectively
- every event has end_time > start_time

Used by database/scripts/check_swap_consistency.py and by the test suite after
protocol sequences. Read-only.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.connection import transaction
from database.models import Event, EventStatus
from swaps.repositories.swap_request_repository import SwapRequestRepository

logger = logging.getLogger(__name__)


@dataclass
class ConsistencyReport:
    """
    Result of a consistency audit.

    Attributes:
        events_checked: Number of events scanned
        pending_requests_checked: Number of PENDING requests scanned
        violations: Human-readable description of each broken invariant
    """
    events_checked: int = 0
    pending_requests_checked: int = 0
    violations: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations


async def audit_swap_consistency(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> ConsistencyReport:
    """Scan events and PENDING swap requests and report every violation found."""
    report = ConsistencyReport()

    async with transaction(session_factory) as session:
        events = list((await session.execute(select(Event))).scalars().all())
        pending = await SwapRequestRepository.list_pending(session)

    events_by_id: dict[UUID, Event] = {event.id: event for event in events}
    report.events_checked = len(events)
    report.pending_requests_checked = len(pending)

    references: Counter[UUID] = Counter()
    for swap_request in pending:
        for slot_id in (swap_request.my_slot_id, swap_request.their_slot_id):
            references[slot_id] += 1

        my_slot = events_by_id.get(swap_request.my_slot_id)
        their_slot = events_by_id.get(swap_request.their_slot_id)
        if my_slot is None or their_slot is None:
            report.violations.append(
                f"PENDING swap request {swap_request.id} references a missing event"
            )
            continue
        if my_slot.owner_id != swap_request.requester_id:
            report.violations.append(
                f"PENDING swap request {swap_request.id}: mySlot {my_slot.id} "
                f"no longer owned by requester"
            )
        if their_slot.owner_id != swap_request.recipient_id:
            report.violations.append(
                f"PENDING swap request {swap_request.id}: theirSlot {their_slot.id} "
                f"no longer owned by recipient"
            )

    for event in events:
        count = references.get(event.id, 0)
        if event.status == EventStatus.SWAP_PENDING and count != 1:
            report.violations.append(
                f"Event {event.id} is SWAP_PENDING but referenced by {count} PENDING requests"
            )
        if event.status != EventStatus.SWAP_PENDING and count:
            report.violations.append(
                f"Event {event.id} is {event.status.value} but referenced by {count} PENDING requests"
            )
        if event.end_time <= event.start_time:
            report.violations.append(f"Event {event.id} ends before it starts")

    if report.violations:
        logger.error(f"Swap consistency audit found {len(report.violations)} violations")
    else:
        logger.info(
            f"Swap consistency audit passed: {report.events_checked} events, "
            f"{report.pending_requests_checked} pending requests"
        )
    return report
