"""Boundary Protocols — structural contracts between core and the ORM shell.

Invariants:
    - Core NEVER imports from models/ or services/ — dependency arrows point inward only
    - ORM rows satisfy these Protocols structurally; tests may pass simple namespaces

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Attribute-only contracts: core functions read rows, the shell owns every write
"""

from datetime import date, datetime
from typing import Any, Protocol


class HostLike(Protocol):
    id: Any
    name: str
    avatar_url: str | None
    profile_photo_url: str | None
    verified: bool


class RoomLike(Protocol):
    """Contract for lodging_room_types rows."""
    id: Any
    room_type: str
    name: str | None
    description: str | None
    capacity_beds: int
    max_persons: int
    price_cents: int
    currency: str
    total_rooms: int
    equipments: list


class HeldRoomsLike(Protocol):
    """Anything that holds rooms over a stay (booking items)."""
    from_date: date
    to_date: date | None
    rooms: list | None


class TripPricingLike(Protocol):
    price_cents: int | None
    currency: str
    duration_days: int | None
    duration_hours: float | None


class ExperienceLike(Protocol):
    """Contract for experiences rows with their eager-loaded extensions."""
    id: Any
    title: str
    short_description: str | None
    long_description: str | None
    type: str
    city: str | None
    region: str | None
    tags: list
    avg_rating: float | None
    reviews_count: int
    bookings_count: int
    thumbnail_url: str | None
    created_at: datetime
    host: HostLike | None
    trip: TripPricingLike | None
    lodging: Any

    @property
    def active_rooms(self) -> list[RoomLike]: ...


class PromotionLike(Protocol):
    """Contract for promotions rows consumed by eligibility rules."""
    id: Any
    name: str
    description: str | None
    promo_type: str
    scope: str
    host_id: Any
    experience_id: Any
    code: str | None
    discount_type: str
    discount_value: float
    max_discount_cents: int | None
    min_amount_cents: int | None
    min_nights: int | None
    min_guests: int | None
    early_bird_days: int | None
    last_minute_days: int | None
    first_booking_only: bool
    valid_from: datetime | None
    valid_until: datetime | None
    max_uses: int | None
    max_uses_per_user: int | None
    uses_count: int
    auto_apply: bool
    badge_text: str | None
    priority: int
    is_active: bool
