"""Message Service — authored messages with author-only edits.

Invariants:
    - Content is non-empty after stripping
    - Only the author may update or delete a message
    - Only content is updatable (author and date are fixed at creation)
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meetup.core.domain_types import MessageId, ResourceType, UserId
from meetup.core.errors import BadValuesError, NotAllowedError, NotFoundError
from meetup.infrastructure.database import store_operation
from meetup.models.message import Message

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, content: str, author: UserId) -> Message:
        content = self._clean(content)
        async with store_operation(self.db, "create_message"):
            message = Message(author_id=author, content=content)
            self.db.add(message)
            await self.db.commit()
            await self.db.refresh(message)
        return message

    async def find(self, author: UserId | None = None) -> list[Message]:
        query = select(Message).order_by(Message.date.desc())
        if author:
            query = query.where(Message.author_id == author)
        async with store_operation(self.db, "read_messages"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def get(self, message_id: MessageId) -> Message:
        async with store_operation(self.db, "read_message"):
            message = await self.db.get(Message, message_id)
        if message is None:
            raise NotFoundError(ResourceType.MESSAGE, message_id)
        return message

    async def update(
        self, message_id: MessageId, content: str, user: UserId,
    ) -> Message:
        message = await self.require_author(message_id, user)
        content = self._clean(content)
        async with store_operation(self.db, "update_message"):
            message.content = content
            await self.db.commit()
        return message

    async def delete(self, message_id: MessageId, user: UserId) -> None:
        message = await self.require_author(message_id, user)
        async with store_operation(self.db, "delete_message"):
            await self.db.delete(message)
            await self.db.commit()

    async def require_author(self, message_id: MessageId, user: UserId) -> Message:
        message = await self.get(message_id)
        if message.author_id != user:
            raise NotAllowedError(
                f"{user} is not the author of message {message_id}",
            )
        return message

    @staticmethod
    def _clean(content: str) -> str:
        content = content.strip()
        if not content:
            raise BadValuesError("messages cannot be empty")
        return content
