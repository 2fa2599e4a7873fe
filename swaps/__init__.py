"""
Slot marketplace domain layer.

Subpackages:
- fsm: pure status rules for events and swap requests
- repositories: row-level data access on an open session
- services: owner-facing event operations, swap request listing, marketplace
- transactions: the swap protocol (create / accept / reject) as atomic units
"""
