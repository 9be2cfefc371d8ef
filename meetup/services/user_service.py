"""User Service — minimal user directory (authentication is out of scope).

Invariants:
    - username unique, stripped, 1-64 chars (length checked at schema boundary)
    - Users only update/delete themselves (enforced by the route via X-User-Id)
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meetup.core.domain_types import ResourceType, UserId
from meetup.core.errors import BadValuesError, NotFoundError
from meetup.infrastructure.database import store_operation
from meetup.models.user import User

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, username: str) -> User:
        await self._require_free(username)
        async with store_operation(self.db, "create_user"):
            user = User(username=username)
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        logger.info("User created", extra={"user_id": user.id})
        return user

    async def find(self) -> list[User]:
        async with store_operation(self.db, "read_users"):
            result = await self.db.execute(
                select(User).order_by(User.username),
            )
            return list(result.scalars().all())

    async def get(self, user_id: UserId) -> User:
        async with store_operation(self.db, "read_user"):
            user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(ResourceType.USER, user_id)
        return user

    async def get_by_username(self, username: str) -> User:
        async with store_operation(self.db, "read_user"):
            result = await self.db.execute(
                select(User).where(User.username == username),
            )
            user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(ResourceType.USER, username)
        return user

    async def update(self, user_id: UserId, username: str) -> User:
        user = await self.get(user_id)
        if username != user.username:
            await self._require_free(username)
        async with store_operation(self.db, "update_user"):
            user.username = username
            await self.db.commit()
        return user

    async def delete(self, user_id: UserId) -> None:
        user = await self.get(user_id)
        async with store_operation(self.db, "delete_user"):
            await self.db.delete(user)
            await self.db.commit()
        logger.info("User deleted", extra={"user_id": user_id})

    async def _require_free(self, username: str) -> None:
        async with store_operation(self.db, "read_user"):
            result = await self.db.execute(
                select(User.id).where(User.username == username),
            )
            taken = result.scalar_one_or_none() is not None
        if taken:
            raise BadValuesError(f"username '{username}' is already taken")
