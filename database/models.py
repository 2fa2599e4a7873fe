"""
SQLAlchemy ORM models for the slot marketplace.

This module defines the tables:
- users: public identity of marketplace participants (no credentials)
- events: time-blocked calendar slots with their tradeable status
- swap_requests: one-for-one exchange proposals between two slots

All models use:
- UUID primary keys (auto-generated)
- Timezone-aware UTC timestamps
- CHECK constraints for the time range and distinct-slot invariants
"""

from datetime import UTC, datetime
from enum import Enum as PyEnum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    TypeDecorator,
    Uuid,
    text,
)
from sqlalchemy import (
    Enum as SQLEnum,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# ============================================================================
# Base Class
# ============================================================================


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def utcnow() -> datetime:
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp stored as UTC.

    PostgreSQL keeps the offset natively (TIMESTAMP WITH TIME ZONE); SQLite
    drops it, so values are normalized to UTC on the way in and tagged as
    UTC on the way out. Naive values are interpreted as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


# ============================================================================
# Enums
# ============================================================================


class EventStatus(str, PyEnum):
    """Tradeable status of a calendar event."""

    BUSY = "BUSY"                  # Owner keeps the slot
    SWAPPABLE = "SWAPPABLE"        # Offered on the marketplace
    SWAP_PENDING = "SWAP_PENDING"  # Locked inside an unresolved swap request

    def __str__(self):
        return self.value


class SwapRequestStatus(str, PyEnum):
    """Swap request lifecycle status. ACCEPTED and REJECTED are terminal."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self is not SwapRequestStatus.PENDING

    def __str__(self):
        return self.value


# ============================================================================
# Core Models
# ============================================================================


class User(Base):
    """
    User model - public identity of a marketplace participant.

    Identities are issued by the external auth service; this table only
    carries what other users may see (id, name, email).
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    events: Mapped[list["Event"]] = relationship(
        "Event", back_populates="owner", foreign_keys="[Event.owner_id]"
    )

    def to_public_dict(self) -> dict:
        return {"id": str(self.id), "name": self.name, "email": self.email}

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name='{self.name}')>"


class Event(Base):
    """
    Event model - a time-blocked calendar slot, the unit of exchange.

    Ownership changes only through an accepted swap request. While status is
    SWAP_PENDING exactly one PENDING swap request references the event.
    """

    __tablename__ = "events"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    start_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    status: Mapped[EventStatus] = mapped_column(
        SQLEnum(
            EventStatus,
            name="event_status",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=EventStatus.BUSY,
        nullable=False,
        index=True,
    )

    owner_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False
    )

    owner: Mapped["User"] = relationship("User", back_populates="events", foreign_keys=[owner_id])

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="check_event_time_range"),
        CheckConstraint("length(title) > 0", name="check_event_title_not_empty"),
        # Marketplace listing: SWAPPABLE events ordered by start time
        Index("idx_events_status_start_time", "status", "start_time"),
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "title": self.title,
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "status": self.status.value,
            "ownerId": str(self.owner_id),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title='{self.title}', status='{self.status.value}')>"


class SwapRequest(Base):
    """
    SwapRequest model - proposed exchange of my_slot (requester's) for
    their_slot (recipient's).

    Rows are never deleted and never change once ACCEPTED or REJECTED, so
    the table doubles as the trade audit trail. Slot ids are plain UUID
    references without a foreign key: deleting an event after its swaps are
    resolved leaves the recorded ids untouched (my_slot/their_slot then load
    as None).
    """

    __tablename__ = "swap_requests"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    status: Mapped[SwapRequestStatus] = mapped_column(
        SQLEnum(
            SwapRequestStatus,
            name="swap_request_status",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=SwapRequestStatus.PENDING,
        nullable=False,
        index=True,
    )

    requester_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipient_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    my_slot_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    their_slot_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False
    )

    requester: Mapped["User"] = relationship("User", foreign_keys=[requester_id])
    recipient: Mapped["User"] = relationship("User", foreign_keys=[recipient_id])
    # Read-only: the event may have been deleted since the request was resolved
    my_slot: Mapped[Optional["Event"]] = relationship(
        "Event", primaryjoin="foreign(SwapRequest.my_slot_id) == Event.id", viewonly=True
    )
    their_slot: Mapped[Optional["Event"]] = relationship(
        "Event", primaryjoin="foreign(SwapRequest.their_slot_id) == Event.id", viewonly=True
    )

    __table_args__ = (
        CheckConstraint("my_slot_id <> their_slot_id", name="check_swap_distinct_slots"),
        Index("idx_swap_requests_recipient_created", "recipient_id", "created_at"),
        Index("idx_swap_requests_requester_created", "requester_id", "created_at"),
        # At most one open request per slot, per column
        Index(
            "uq_swap_requests_pending_my_slot",
            "my_slot_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
        Index(
            "uq_swap_requests_pending_their_slot",
            "their_slot_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "status": self.status.value,
            "requesterId": str(self.requester_id),
            "recipientId": str(self.recipient_id),
            "mySlotId": str(self.my_slot_id),
            "theirSlotId": str(self.their_slot_id),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    def to_detail_dict(self) -> dict:
        """Request with both parties' public identity and both slots (relationships must be loaded)."""
        return {
            **self.to_dict(),
            "requester": self.requester.to_public_dict(),
            "recipient": self.recipient.to_public_dict(),
            "mySlot": self.my_slot.to_dict() if self.my_slot else None,
            "theirSlot": self.their_slot.to_dict() if self.their_slot else None,
        }

    def __repr__(self) -> str:
        return f"<SwapRequest(id={self.id}, status='{self.status.value}')>"
