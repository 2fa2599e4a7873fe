"""
Audit script for the swap invariants.

Scans events and PENDING swap requests and reports every event that is
SWAP_PENDING without exactly one PENDING request (or the reverse), every
PENDING request whose slots changed owner, and every inverted time range.

Run with:
    DATABASE_URL="postgresql+asyncpg://..." python -m database.scripts.check_swap_consistency

Exit code is 1 when at least one violation is found.
"""

import asyncio
import logging
import sys

from swaps.services.consistency_service import audit_swap_consistency

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


async def main() -> int:
    report = await audit_swap_consistency()

    logger.info("=" * 60)
    logger.info(f"Events checked: {report.events_checked}")
    logger.info(f"PENDING swap requests checked: {report.pending_requests_checked}")
    logger.info("=" * 60)

    for violation in report.violations:
        logger.error(violation)

    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
