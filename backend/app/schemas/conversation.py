"""Conversation Schemas — persisted chat history endpoints."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ConversationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_id: str | None = Field(None, alias="clientId", max_length=120)
    user_location: dict[str, Any] | None = Field(None, alias="userLocation")


class MessageIn(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: Any = None
    parts: Any = None
    metadata: dict[str, Any] | None = None


class MessageCreate(BaseModel):
    message: MessageIn
