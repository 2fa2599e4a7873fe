"""Swap request repository - Database operations for swap requests"""

from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models import SwapRequest, SwapRequestStatus

# Eager loads used whenever a request is returned to a caller
_DETAIL_OPTIONS = (
    selectinload(SwapRequest.requester),
    selectinload(SwapRequest.recipient),
    selectinload(SwapRequest.my_slot),
    selectinload(SwapRequest.their_slot),
)


class SwapRequestRepository:
    """Repository for swap request database operations"""

    @staticmethod
    async def add(
        session: AsyncSession,
        requester_id: UUID,
        recipient_id: UUID,
        my_slot_id: UUID,
        their_slot_id: UUID,
    ) -> SwapRequest:
        """Insert a PENDING swap request and flush to obtain its id"""
        swap_request = SwapRequest(
            requester_id=requester_id,
            recipient_id=recipient_id,
            my_slot_id=my_slot_id,
            their_slot_id=their_slot_id,
            status=SwapRequestStatus.PENDING,
        )
        session.add(swap_request)
        await session.flush()
        return swap_request

    @staticmethod
    async def get_for_update(session: AsyncSession, request_id: UUID) -> SwapRequest | None:
        """Lock a swap request row for the rest of the transaction"""
        result = await session.execute(
            select(SwapRequest)
            .where(SwapRequest.id == request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_with_details(session: AsyncSession, request_id: UUID) -> SwapRequest | None:
        result = await session.execute(
            select(SwapRequest)
            .options(*_DETAIL_OPTIONS)
            .where(SwapRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_incoming(session: AsyncSession, user_id: UUID) -> list[SwapRequest]:
        """Requests where the user is the recipient, newest first"""
        result = await session.execute(
            select(SwapRequest)
            .options(*_DETAIL_OPTIONS)
            .where(SwapRequest.recipient_id == user_id)
            .order_by(SwapRequest.created_at.desc(), SwapRequest.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_outgoing(session: AsyncSession, user_id: UUID) -> list[SwapRequest]:
        """Requests where the user is the requester, newest first"""
        result = await session.execute(
            select(SwapRequest)
            .options(*_DETAIL_OPTIONS)
            .where(SwapRequest.requester_id == user_id)
            .order_by(SwapRequest.created_at.desc(), SwapRequest.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def find_pending_for_event(session: AsyncSession, event_id: UUID) -> SwapRequest | None:
        """The PENDING request referencing an event as either slot, if any"""
        result = await session.execute(
            select(SwapRequest)
            .where(
                SwapRequest.status == SwapRequestStatus.PENDING,
                or_(SwapRequest.my_slot_id == event_id, SwapRequest.their_slot_id == event_id),
            )
            .order_by(SwapRequest.created_at.asc())
        )
        return result.scalars().first()

    @staticmethod
    async def list_pending(session: AsyncSession) -> list[SwapRequest]:
        result = await session.execute(
            select(SwapRequest).where(SwapRequest.status == SwapRequestStatus.PENDING)
        )
        return list(result.scalars().all())
