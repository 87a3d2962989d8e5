"""Promotion ORM — discounts scoped globally, to a host or to a single experience.

Invariants:
    - discount_value is percentage points for "percentage", MAD cents for "fixed"
    - A promotion with a code is never auto-applied unless auto_apply is also set
    - uses_count is incremented only when a booking carrying the promotion is created
    - Optional conditions (min_*, early_bird_days, last_minute_days, first_booking_only)
      are NULL when they do not apply
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Promotion(Base):
    __tablename__ = "promotions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    promo_type: Mapped[str] = mapped_column(String(30), nullable=False, default="promo_code")
    scope: Mapped[str] = mapped_column(String(20), nullable=False, default="global")
    host_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("hosts.id"), nullable=True,
    )
    experience_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("experiences.id"), nullable=True, index=True,
    )
    code: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    discount_type: Mapped[str] = mapped_column(String(20), nullable=False)
    discount_value: Mapped[float] = mapped_column(Float, nullable=False)
    max_discount_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    min_amount_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    min_nights: Mapped[int | None] = mapped_column(Integer, nullable=True)
    min_guests: Mapped[int | None] = mapped_column(Integer, nullable=True)
    early_bird_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_minute_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    first_booking_only: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    valid_from: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    valid_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    max_uses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_uses_per_user: Mapped[int | None] = mapped_column(Integer, nullable=True)
    uses_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    auto_apply: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    badge_text: Mapped[str | None] = mapped_column(String(80), nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
