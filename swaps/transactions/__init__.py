"""
Atomic swap protocol.

SwapTransaction wraps each protocol step (create, accept, reject) in a single
database transaction:
1. Row locks (SELECT ... FOR UPDATE) on every event/request touched, in
   ascending id order
2. Preconditions re-read inside the transaction, never from a cache
3. Complete rollback on any failure, domain or storage
4. Logging with a trace_id per protocol call
"""

from swaps.transactions.swap_transaction import SwapResponseResult, SwapTransaction

__all__ = ["SwapResponseResult", "SwapTransaction"]
