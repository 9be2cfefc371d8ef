"""Chatroom Service — message streams attached to groups.

Invariants:
    - A chatroom references an existing group
    - messages: newest first, no duplicates, every id refers to an existing message
      at the time it was added
    - remove_message removes exactly the named message id
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meetup.core.domain_types import ChatroomId, GroupId, MessageId, ResourceType
from meetup.core.errors import BadValuesError, NotFoundError
from meetup.infrastructure.database import store_operation
from meetup.models.chatroom import Chatroom
from meetup.models.group import Group
from meetup.services.message_service import MessageService

logger = logging.getLogger(__name__)


def message_ids(chatroom: Chatroom) -> list[UUID]:
    return [UUID(str(m)) for m in (chatroom.messages or [])]


class ChatroomService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.message_service = MessageService(db)

    async def create(
        self, group_id: GroupId, messages: list[MessageId] | None = None,
    ) -> Chatroom:
        await self._require_group(group_id)
        ordered = list(dict.fromkeys(messages or []))
        for message_id in ordered:
            await self.message_service.get(message_id)
        return await self._insert(group_id, ordered)

    async def find(self, group_id: GroupId | None = None) -> list[Chatroom]:
        query = select(Chatroom).order_by(Chatroom.created_at)
        if group_id:
            query = query.where(Chatroom.group_id == group_id)
        async with store_operation(self.db, "read_chatrooms"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def get(self, chatroom_id: ChatroomId) -> Chatroom:
        async with store_operation(self.db, "read_chatroom"):
            chatroom = await self.db.get(
                Chatroom, chatroom_id, populate_existing=True,
            )
        if chatroom is None:
            raise NotFoundError(ResourceType.CHATROOM, chatroom_id)
        return chatroom

    async def update(
        self, chatroom_id: ChatroomId, group_id: GroupId,
    ) -> Chatroom:
        chatroom = await self.get(chatroom_id)
        await self._require_group(group_id)
        async with store_operation(self.db, "update_chatroom"):
            chatroom.group_id = group_id
            await self.db.commit()
        return chatroom

    async def copy(self, chatroom_id: ChatroomId, group_id: GroupId) -> Chatroom:
        """Clone a chatroom's message list into a new chatroom for another group."""
        source = await self.get(chatroom_id)
        await self._require_group(group_id)
        return await self._insert(group_id, message_ids(source))

    async def add_message(
        self, chatroom_id: ChatroomId, message_id: MessageId,
    ) -> Chatroom:
        chatroom = await self.get(chatroom_id)
        await self.message_service.get(message_id)
        current = message_ids(chatroom)
        if message_id in current:
            raise BadValuesError(
                f"chatroom already contains message {message_id}",
            )
        return await self._write(chatroom, [message_id, *current])

    async def remove_message(
        self, chatroom_id: ChatroomId, message_id: MessageId,
    ) -> Chatroom:
        chatroom = await self.get(chatroom_id)
        current = message_ids(chatroom)
        if message_id not in current:
            raise NotFoundError(ResourceType.MESSAGE, message_id)
        return await self._write(chatroom, [m for m in current if m != message_id])

    async def delete(self, chatroom_id: ChatroomId) -> None:
        chatroom = await self.get(chatroom_id)
        async with store_operation(self.db, "delete_chatroom"):
            await self.db.delete(chatroom)
            await self.db.commit()

    async def _insert(self, group_id: GroupId, messages: list[UUID]) -> Chatroom:
        async with store_operation(self.db, "create_chatroom"):
            chatroom = Chatroom(
                group_id=group_id, messages=[str(m) for m in messages],
            )
            self.db.add(chatroom)
            await self.db.commit()
            await self.db.refresh(chatroom)
        return chatroom

    async def _write(self, chatroom: Chatroom, messages: list[UUID]) -> Chatroom:
        async with store_operation(self.db, "update_chatroom"):
            chatroom.messages = [str(m) for m in messages]
            await self.db.commit()
        return chatroom

    async def _require_group(self, group_id: GroupId) -> None:
        async with store_operation(self.db, "read_group"):
            group = await self.db.get(Group, group_id)
        if group is None:
            raise NotFoundError(ResourceType.GROUP, group_id)
