"""
Test configuration and fixtures.

Every test that touches the database gets its own SQLite file under
tmp_path, with the schema created from the ORM metadata. Services and the
HTTP app are bound to that database through an injected session factory.
"""

import os
import tempfile
from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest

# Must be set BEFORE any imports of database.connection or shared.config
_default_db_dir = tempfile.mkdtemp(prefix="slotswap-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_default_db_dir}/default.db"
os.environ["AUTH_JWT_SECRET"] = "test-secret-for-slotswap-unit-tests-0123456789"
os.environ["AUTH_JWT_ALGORITHM"] = "HS256"
os.environ["SKIP_STARTUP_VALIDATION"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

from jose import jwt  # noqa: E402

from database.connection import create_engine_from_url, create_session_factory  # noqa: E402
from database.models import Base, EventStatus, User  # noqa: E402
from swaps.services.event_service import EventService  # noqa: E402
from swaps.services.marketplace_service import MarketplaceService  # noqa: E402
from swaps.services.swap_request_service import SwapRequestService  # noqa: E402
from swaps.transactions.swap_transaction import SwapTransaction  # noqa: E402

# Fixed slot times so ordering assertions are deterministic
BASE_TIME = datetime(2030, 1, 7, 9, 0, tzinfo=UTC)


@pytest.fixture
async def session_factory(tmp_path):
    """Session factory bound to a fresh SQLite database with the full schema."""
    engine = create_engine_from_url(f"sqlite+aiosqlite:///{tmp_path / 'slotswap.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield create_session_factory(engine)

    await engine.dispose()


@pytest.fixture
def make_user(session_factory):
    """Insert a user and return its id."""

    async def _make_user(name: str, email: str | None = None) -> UUID:
        async with session_factory() as session:
            async with session.begin():
                user = User(name=name, email=email or f"{name.lower()}@example.com")
                session.add(user)
            return user.id

    return _make_user


@pytest.fixture
async def alice(make_user) -> UUID:
    return await make_user("Alice")


@pytest.fixture
async def bob(make_user) -> UUID:
    return await make_user("Bob")


@pytest.fixture
async def carol(make_user) -> UUID:
    return await make_user("Carol")


@pytest.fixture
def event_service(session_factory) -> EventService:
    return EventService(session_factory)


@pytest.fixture
def marketplace_service(session_factory) -> MarketplaceService:
    return MarketplaceService(session_factory)


@pytest.fixture
def swap_request_service(session_factory) -> SwapRequestService:
    return SwapRequestService(session_factory)


@pytest.fixture
def swap_transaction(session_factory) -> SwapTransaction:
    return SwapTransaction(session_factory)


@pytest.fixture
def make_event(event_service):
    """Create an event one hour long, ``offset_hours`` after BASE_TIME."""

    async def _make_event(
        owner_id: UUID,
        title: str = "Shift",
        status: EventStatus = EventStatus.SWAPPABLE,
        offset_hours: int = 0,
    ):
        start = BASE_TIME + timedelta(hours=offset_hours)
        return await event_service.create_event(
            owner_id, title, start, start + timedelta(hours=1), status
        )

    return _make_event


@pytest.fixture
def auth_headers():
    """Bearer header carrying a token signed with the test secret."""

    def _auth_headers(user_id: UUID, **claims) -> dict[str, str]:
        token = jwt.encode(
            {"sub": str(user_id), "exp": datetime.now(UTC) + timedelta(hours=1), **claims},
            os.environ["AUTH_JWT_SECRET"],
            algorithm="HS256",
        )
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture(scope="function", autouse=True)
async def cleanup_engine():
    """
    Dispose the module-level engine after each test.

    Health checks and startup validation use it; pooled connections must not
    leak into the next test's event loop.
    """
    yield
    from database.connection import engine

    await engine.dispose()
