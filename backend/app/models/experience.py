"""Experience ORM — the bookable catalog unit and its type-specific extensions.

Invariants:
    - type is one of lodging | trip | activity; only the matching extension row exists
    - Soft-deleted rows (deleted_at set) are invisible to every catalog read
    - Prices are integer cents (MAD); departures/sessions may override the trip price
    - Media columns hold storage paths or absolute URLs (resolve_storage_url at read time)

Design Decisions:
    - JSON columns for tags/languages/equipments/photos instead of ARRAY: keeps models
      portable to the in-memory SQLite test engine (ADR: same choice as the graph models)
    - Extension tables keyed by experience_id (1:1) mirror the hosted schema
    - Relationships eager-load with selectin: async sessions cannot lazy-load
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Text, Integer, Float, DateTime, ForeignKey, JSON,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Experience(Base):
    __tablename__ = "experiences"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    host_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("hosts.id"), nullable=True, index=True,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    short_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    long_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="draft", index=True,
    )
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    region: Mapped[str | None] = mapped_column(String(120), nullable=True)
    city_slug: Mapped[str | None] = mapped_column(String(120), nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    languages: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    cancellation_policy: Mapped[str | None] = mapped_column(Text, nullable=True)
    avg_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    reviews_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bookings_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    thumbnail_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    host = relationship("Host", lazy="selectin")
    trip = relationship(
        "ExperienceTrip", uselist=False, lazy="selectin",
        cascade="all, delete-orphan",
    )
    lodging = relationship(
        "ExperienceLodging", uselist=False, lazy="selectin",
        cascade="all, delete-orphan",
    )
    room_types = relationship(
        "LodgingRoomType", lazy="selectin", cascade="all, delete-orphan",
        order_by="LodgingRoomType.price_cents",
    )

    @property
    def is_published(self) -> bool:
        return self.status == "published" and self.deleted_at is None

    @property
    def active_rooms(self) -> list["LodgingRoomType"]:
        return [r for r in self.room_types if r.deleted_at is None]


class ExperienceTrip(Base):
    __tablename__ = "experiences_trip"

    experience_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("experiences.id", ondelete="CASCADE"),
        primary_key=True,
    )
    price_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MAD")
    duration_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    duration_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    min_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)


class ExperienceLodging(Base):
    __tablename__ = "experiences_lodging"

    experience_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("experiences.id", ondelete="CASCADE"),
        primary_key=True,
    )
    min_stay_nights: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    check_in_time: Mapped[str | None] = mapped_column(String(10), nullable=True)
    check_out_time: Mapped[str | None] = mapped_column(String(10), nullable=True)


class LodgingRoomType(Base):
    __tablename__ = "lodging_room_types"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    experience_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("experiences.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    room_type: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    capacity_beds: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_persons: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MAD")
    total_rooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    equipments: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    photos: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )


class TripItineraryItem(Base):
    __tablename__ = "trip_itinerary"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    experience_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("experiences.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    location_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)


class TripDeparture(Base):
    __tablename__ = "trip_departures"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    experience_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("experiences.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    depart_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    return_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    seats_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    seats_available: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_override_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")


class ActivitySession(Base):
    __tablename__ = "activity_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    experience_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("experiences.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    capacity_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    capacity_available: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_override_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")


class ExperienceLink(Base):
    """Host-curated link between two experiences (e.g. trip → lodging nearby)."""
    __tablename__ = "experience_links"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    source_experience_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("experiences.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    target_experience_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("experiences.id", ondelete="CASCADE"),
        nullable=False,
    )
    label: Mapped[str | None] = mapped_column(String(120), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )

    target = relationship(
        "Experience", foreign_keys=[target_experience_id], lazy="selectin",
    )
