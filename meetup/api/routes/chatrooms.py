"""Chatrooms Routes — chatroom CRUD, copy, and message add/remove."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from meetup.core.domain_types import ChatroomId, GroupId, MessageId
from meetup.infrastructure.database import get_db
from meetup.schemas.chatroom import (
    ChatroomCopy, ChatroomCreate, ChatroomMessageAdd, ChatroomResponse,
    ChatroomUpdate,
)
from meetup.services.chatroom_service import ChatroomService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/chatrooms", tags=["chatrooms"])


@router.get("", response_model=list[ChatroomResponse])
async def list_chatrooms(
    group_id: UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    chatrooms = await ChatroomService(db).find(
        GroupId(group_id) if group_id else None,
    )
    return [ChatroomResponse.from_model(c) for c in chatrooms]


@router.post(
    "", response_model=ChatroomResponse, status_code=status.HTTP_201_CREATED,
)
async def create_chatroom(
    body: ChatroomCreate, db: AsyncSession = Depends(get_db),
):
    chatroom = await ChatroomService(db).create(
        GroupId(body.group_id), [MessageId(m) for m in body.messages],
    )
    return ChatroomResponse.from_model(chatroom)


@router.get("/{chatroom_id}", response_model=ChatroomResponse)
async def get_chatroom(chatroom_id: UUID, db: AsyncSession = Depends(get_db)):
    chatroom = await ChatroomService(db).get(ChatroomId(chatroom_id))
    return ChatroomResponse.from_model(chatroom)


@router.patch("/{chatroom_id}", response_model=ChatroomResponse)
async def update_chatroom(
    chatroom_id: UUID,
    body: ChatroomUpdate,
    db: AsyncSession = Depends(get_db),
):
    chatroom = await ChatroomService(db).update(
        ChatroomId(chatroom_id), GroupId(body.group_id),
    )
    return ChatroomResponse.from_model(chatroom)


@router.delete("/{chatroom_id}")
async def delete_chatroom(
    chatroom_id: UUID, db: AsyncSession = Depends(get_db),
):
    await ChatroomService(db).delete(ChatroomId(chatroom_id))
    return {"message": "Chatroom deleted"}


@router.post(
    "/{chatroom_id}/copy", response_model=ChatroomResponse,
    status_code=status.HTTP_201_CREATED,
)
async def copy_chatroom(
    chatroom_id: UUID,
    body: ChatroomCopy,
    db: AsyncSession = Depends(get_db),
):
    chatroom = await ChatroomService(db).copy(
        ChatroomId(chatroom_id), GroupId(body.group_id),
    )
    return ChatroomResponse.from_model(chatroom)


@router.post("/{chatroom_id}/messages", response_model=ChatroomResponse)
async def add_chatroom_message(
    chatroom_id: UUID,
    body: ChatroomMessageAdd,
    db: AsyncSession = Depends(get_db),
):
    chatroom = await ChatroomService(db).add_message(
        ChatroomId(chatroom_id), MessageId(body.message_id),
    )
    return ChatroomResponse.from_model(chatroom)


@router.delete(
    "/{chatroom_id}/messages/{message_id}", response_model=ChatroomResponse,
)
async def remove_chatroom_message(
    chatroom_id: UUID,
    message_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    chatroom = await ChatroomService(db).remove_message(
        ChatroomId(chatroom_id), MessageId(message_id),
    )
    return ChatroomResponse.from_model(chatroom)
