"""Agent Config ORM — admin-managed, versioned assistant configuration.

Invariants:
    - AgentConfig.slug is unique; active_version_id points at the served version
    - Versions are immutable once published; edits create a new version_number
    - Every tuning column is nullable: NULL means "use the runtime default"
    - versions is lazy="raise": the loader fetches exactly the version it serves
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import String, Text, Integer, Float, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AgentConfig(Base):
    __tablename__ = "ai_agent_configs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    active_version_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    versions = relationship(
        "AgentConfigVersion",
        back_populates="config",
        cascade="all, delete-orphan",
        lazy="raise",
        passive_deletes=True,
    )


class AgentConfigVersion(Base):
    __tablename__ = "ai_agent_config_versions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    config_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("ai_agent_configs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_steps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    enabled_tools: Mapped[list | None] = mapped_column(JSON, nullable=True)
    system_prompt: Mapped[str | None] = mapped_column(Text, nullable=True)
    system_prompt_variables: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    behavior_rules: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    guardrails: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    fallback_language: Mapped[str | None] = mapped_column(String(10), nullable=True)
    supported_languages: Mapped[list | None] = mapped_column(JSON, nullable=True)
    welcome_messages: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    suggested_prompts: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    config = relationship("AgentConfig", back_populates="versions")

    def as_row(self) -> dict[str, Any]:
        """Column values keyed by attribute name (input to build_runtime_config)."""
        return {
            attr.key: getattr(self, attr.key)
            for attr in self.__mapper__.column_attrs
        }
