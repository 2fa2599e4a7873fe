"""
FastAPI dependencies: caller identity and service wiring.

Caller identity comes from a bearer JWT issued by the external auth service.
This module only verifies the signature/expiry and reads the user id from
the ``sub`` claim (``userId`` is accepted for older tokens). A caller seen
for the first time gets a users row built from the ``name``/``email`` claims.

Services are built per request from get_session_factory(), which tests
override through app.dependency_overrides.
"""

import logging
from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.config import get_settings
from swaps.services.event_service import EventService
from swaps.services.marketplace_service import MarketplaceService
from swaps.services.swap_request_service import SwapRequestService
from swaps.services.user_service import UserService
from swaps.transactions.swap_transaction import SwapTransaction

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def verify_token(token: str) -> dict[str, Any]:
    """Verify JWT signature and expiry and return its payload."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.AUTH_JWT_SECRET, algorithms=[settings.AUTH_JWT_ALGORITHM])
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    from database.connection import AsyncSessionLocal

    return AsyncSessionLocal


SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


async def get_current_user_id(
    session_factory: SessionFactory,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)] = None,
) -> UUID:
    """
    Dependency returning the verified caller's user id.

    The caller's users row is provisioned on first sight, so every id handed
    to the services references an existing user.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(credentials.credentials)
    subject = payload.get("sub") or payload.get("userId")
    try:
        user_id = UUID(str(subject))
    except (TypeError, ValueError):
        logger.warning("Token accepted but carries no usable user id")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
            headers={"WWW-Authenticate": "Bearer"},
        )

    await UserService(session_factory).ensure_user(user_id, payload)
    return user_id


CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]


def get_event_service(session_factory: SessionFactory) -> EventService:
    return EventService(session_factory)


def get_marketplace_service(session_factory: SessionFactory) -> MarketplaceService:
    return MarketplaceService(session_factory)


def get_swap_request_service(session_factory: SessionFactory) -> SwapRequestService:
    return SwapRequestService(session_factory)


def get_swap_transaction(session_factory: SessionFactory) -> SwapTransaction:
    return SwapTransaction(session_factory)
