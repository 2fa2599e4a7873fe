"""
User service - Provisioning of marketplace participants.

Identities are issued by the external auth service, so a user row is
created the first time a verified caller reaches the API. The public
profile (name, email) is taken from the token claims when present.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.connection import transaction
from database.models import User
from shared.exceptions import AuthorizationError
from swaps.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

# Matches the users.name / users.email column lengths
MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 255

# Reserved TLD: placeholder addresses can never collide with a real inbox
PLACEHOLDER_EMAIL_DOMAIN = "users.invalid"


def profile_from_claims(user_id: UUID, claims: dict[str, Any]) -> tuple[str, str]:
    """
    Build (name, email) for a new user from token claims.

    Falls back to the email's local part for the name, and to a placeholder
    address derived from the id when the token carries no email.
    """
    email = str(claims.get("email") or "").strip()
    if not email or len(email) > MAX_EMAIL_LENGTH:
        email = f"{user_id}@{PLACEHOLDER_EMAIL_DOMAIN}"

    name = str(claims.get("name") or "").strip()
    if not name and not email.endswith(f"@{PLACEHOLDER_EMAIL_DOMAIN}"):
        name = email.split("@", 1)[0]
    if not name:
        name = f"User {str(user_id)[:8]}"

    return name[:MAX_NAME_LENGTH], email


class UserService:
    """Service layer for user provisioning"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory
        self.repo = UserRepository()

    async def ensure_user(self, user_id: UUID, claims: dict[str, Any] | None = None) -> User:
        """
        Return the caller's user row, creating it on first sight.

        Raises:
            AuthorizationError: The token's email already belongs to another user
        """
        name, email = profile_from_claims(user_id, claims or {})

        async with transaction(self._session_factory) as session:
            user = await self.repo.ensure(session, user_id, name, email)
            if user is None:
                logger.warning(
                    "User provisioning refused: email already registered to another id",
                    extra={"user_id": str(user_id)},
                )
                raise AuthorizationError("Email is already registered to another account")

        return user
