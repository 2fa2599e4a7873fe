"""User repository - Database operations for marketplace participants"""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import User


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    async def get(session: AsyncSession, user_id: UUID) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def ensure(session: AsyncSession, user_id: UUID, name: str, email: str) -> User | None:
        """
        Return the user row for ``user_id``, inserting it if missing.

        The insert runs in a savepoint so a unique violation (a concurrent
        first request for the same id, or the email already belonging to
        another id) leaves the outer transaction usable. Existing rows are
        returned as stored, never updated.

        Returns:
            The user, or None if the email is taken by a different id
        """
        user = await session.get(User, user_id)
        if user is not None:
            return user

        try:
            async with session.begin_nested():
                user = User(id=user_id, name=name, email=email)
                session.add(user)
                await session.flush()
            return user
        except IntegrityError:
            return await session.get(User, user_id)
