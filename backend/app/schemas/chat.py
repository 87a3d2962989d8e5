"""Chat Schemas — request bodies for the mock, assistant and test-console endpoints.

Invariants:
    - MockChatRequest requires at least one message
    - AgentChatRequest.messages is free-form: non-list input is treated as empty
    - TestChatRequest.message must be non-blank (checked in the route → 400)

Design Decisions:
    - Assistant messages stay untyped (list[Any]): UI clients send several message
      shapes and dedupe/normalization in core/chat_messages.py is the single gate
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MockChatMessage(BaseModel):
    role: str
    content: str


class MockChatRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    messages: list[MockChatMessage] = Field(min_length=1)


class UserLocation(BaseModel):
    lat: float | None = None
    lng: float | None = None


class AgentChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[Any] = Field(default_factory=list)
    session_id: str | None = Field(None, alias="sessionId")
    user_location: UserLocation | None = Field(None, alias="userLocation")
    config_version_id: str | None = Field(None, alias="configVersionId")

    @field_validator("messages", mode="before")
    @classmethod
    def coerce_messages(cls, v: Any) -> list:
        return v if isinstance(v, list) else []

    @field_validator("config_version_id", mode="before")
    @classmethod
    def coerce_version_id(cls, v: Any) -> str | None:
        return v if isinstance(v, str) else None

    @field_validator("user_location", mode="before")
    @classmethod
    def coerce_location(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else None


class TestChatRequest(BaseModel):
    message: str | None = None
    conversation_id: str | None = None
    reset_context: bool = False


class TestResetRequest(BaseModel):
    conversation_id: str | None = None
