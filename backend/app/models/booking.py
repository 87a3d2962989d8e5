"""Booking ORM — a checkout-bound order made of one or more booking items.

Invariants:
    - The booking row summarizes its first item (experience, dates, guests)
    - price_total_cents == subtotal - discount + fees + taxes, on the booking and every item
    - Agent-created bookings and their items start as "draft" (no inventory held)
    - Only pending_payment / confirmed bookings consume inventory

Design Decisions:
    - `metadata` is reserved on declarative models, so the column is mapped as
      booking_metadata / item_metadata (DB column name unchanged)
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, Text, Integer, Date, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    guest_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    experience_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("experiences.id"), nullable=False, index=True,
    )
    host_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    from_date: Mapped[date] = mapped_column(Date, nullable=False)
    to_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    adults: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    children: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    infants: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rooms: Mapped[list | None] = mapped_column(JSON, nullable=True)
    departure_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    session_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    price_subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_discount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_fees_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_taxes_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_total_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MAD")
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="draft", index=True,
    )
    guest_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    promotion_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("promotions.id"), nullable=True,
    )
    booking_metadata: Mapped[dict] = mapped_column(
        "metadata", JSON, nullable=False, default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    items = relationship(
        "BookingItem",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingItem.order_index",
        lazy="selectin",
    )


class BookingItem(Base):
    __tablename__ = "booking_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    booking_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    experience_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("experiences.id"), nullable=False,
    )
    host_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    from_date: Mapped[date] = mapped_column(Date, nullable=False)
    to_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    adults: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    children: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    infants: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rooms: Mapped[list | None] = mapped_column(JSON, nullable=True)
    departure_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    session_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    price_subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_discount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_fees_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_taxes_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_total_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MAD")
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="draft")
    guest_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    item_metadata: Mapped[dict] = mapped_column(
        "metadata", JSON, nullable=False, default=dict,
    )

    booking = relationship("Booking", back_populates="items")
