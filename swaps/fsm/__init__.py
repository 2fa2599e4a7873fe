"""
Status machines for marketplace entities.

Public exports:
    - EventStatusMachine: owner and system transition rules for events
    - SwapRequestStatusMachine: PENDING -> ACCEPTED | REJECTED lifecycle
    - SwapTrigger: system events that move an event's status
"""

from swaps.fsm.status_machine import EventStatusMachine, SwapRequestStatusMachine, SwapTrigger

__all__ = [
    "EventStatusMachine",
    "SwapRequestStatusMachine",
    "SwapTrigger",
]
