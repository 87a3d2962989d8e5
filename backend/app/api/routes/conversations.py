"""Conversations — persisted assistant chat history for signed-in and anonymous guests.

Invariants:
    - Owner = bearer-token user when present, else the anonymous client_id
    - A conversation owned by a user is invisible (404) to everyone else;
      anonymous conversations are addressed by id (ids are unguessable UUIDs)
    - Listing never returns archived conversations; 50 most recently updated
    - Saving a message bumps updated_at and fills title/first_message once

Design Decisions:
    - DELETE archives (archived_at) instead of deleting: history stays auditable
    - get_conversation_or_404 shared by every /{id} route
"""

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_optional_user_id
from app.core.chat_messages import (
    conversation_title, persisted_content, sanitize_message_parts,
)
from app.core.dates import iso_or_none
from app.core.errors import ResourceNotFoundError
from app.infrastructure.database import get_db
from app.models.conversation import AIConversation, AIMessage
from app.schemas.conversation import ConversationCreate, MessageCreate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/conversations", tags=["conversations"])

LIST_LIMIT = 50


def _conversation_payload(conv: AIConversation) -> dict:
    return {
        "id": str(conv.id),
        "user_id": str(conv.user_id) if conv.user_id else None,
        "client_id": conv.client_id,
        "title": conv.title,
        "first_message": conv.first_message,
        "user_location": conv.user_location,
        "created_at": iso_or_none(conv.created_at),
        "updated_at": iso_or_none(conv.updated_at),
        "archived_at": iso_or_none(conv.archived_at),
    }


def _message_payload(msg: AIMessage) -> dict:
    return {
        "id": str(msg.id),
        "conversation_id": str(msg.conversation_id),
        "role": msg.role,
        "content": msg.content,
        "parts": msg.parts,
        "metadata": msg.message_metadata,
        "created_at": iso_or_none(msg.created_at),
    }


async def get_conversation_or_404(
    conversation_id: uuid.UUID, user_id: uuid.UUID | None, db: AsyncSession,
) -> AIConversation:
    conv = await db.get(AIConversation, conversation_id)
    if conv is None or (conv.user_id is not None and conv.user_id != user_id):
        raise ResourceNotFoundError("Conversation", str(conversation_id))
    return conv


@router.post("")
async def create_conversation(
    body: ConversationCreate,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID | None = Depends(get_optional_user_id),
):
    conv = AIConversation(
        id=uuid.uuid4(),
        user_id=user_id,
        client_id=body.client_id or None,
        user_location=body.user_location or None,
    )
    db.add(conv)
    await db.commit()
    return {"conversation": {"id": str(conv.id), "created_at": iso_or_none(conv.created_at)}}


@router.get("")
async def list_conversations(
    client_id: str | None = Query(None, alias="clientId"),
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID | None = Depends(get_optional_user_id),
):
    stmt = select(AIConversation).where(AIConversation.archived_at.is_(None))
    if user_id is not None:
        stmt = stmt.where(AIConversation.user_id == user_id)
    elif client_id:
        stmt = stmt.where(
            AIConversation.client_id == client_id,
            AIConversation.user_id.is_(None),
        )
    else:
        return {"conversations": []}

    result = await db.execute(
        stmt.order_by(AIConversation.updated_at.desc()).limit(LIST_LIMIT),
    )
    return {
        "conversations": [
            {
                "id": str(conv.id),
                "title": conv.title,
                "first_message": conv.first_message,
                "created_at": iso_or_none(conv.created_at),
                "updated_at": iso_or_none(conv.updated_at),
            }
            for conv in result.scalars().all()
        ],
    }


@router.get("/{conversation_id}")
async def get_conversation(
    conversation_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID | None = Depends(get_optional_user_id),
):
    conv = await get_conversation_or_404(conversation_id, user_id, db)
    result = await db.execute(
        select(AIMessage)
        .where(AIMessage.conversation_id == conv.id)
        .order_by(AIMessage.created_at),
    )
    return {
        "conversation": _conversation_payload(conv),
        "messages": [_message_payload(m) for m in result.scalars().all()],
    }


@router.delete("/{conversation_id}")
async def archive_conversation(
    conversation_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID | None = Depends(get_optional_user_id),
):
    conv = await get_conversation_or_404(conversation_id, user_id, db)
    conv.archived_at = datetime.now(timezone.utc)
    await db.commit()
    logger.info("Conversation archived", extra={"conversation_id": str(conv.id)})
    return {"success": True}


@router.post("/{conversation_id}/messages")
async def save_message(
    conversation_id: uuid.UUID,
    body: MessageCreate,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID | None = Depends(get_optional_user_id),
):
    conv = await get_conversation_or_404(conversation_id, user_id, db)
    parts = sanitize_message_parts(body.message.parts)
    content = persisted_content(body.message.content, parts)

    now = datetime.now(timezone.utc)
    message = AIMessage(
        id=uuid.uuid4(),
        conversation_id=conv.id,
        role=body.message.role,
        content=content,
        parts=parts,
        message_metadata=body.message.metadata or {},
        created_at=now,
    )
    db.add(message)
    conv.updated_at = now
    if body.message.role == "user" and content and conv.first_message is None:
        conv.first_message = content
        conv.title = conversation_title(content)
    await db.commit()
    return {"message": _message_payload(message)}
