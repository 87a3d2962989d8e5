"""Booking Schemas — record validation for bookings and booking creation.

Invariants:
    - adults >= 1; children/infants >= 0 (default 0)
    - Every price field is non-negative integer cents, never coerced from str/float;
      currency exactly 3 characters
    - Room selections carry quantity >= 1
    - Accepts camelCase aliases (experienceId, fromDate, roomTypeId, ...)
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.domain_types import BookingStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RoomSelectionIn(_CamelModel):
    room_type_id: UUID
    quantity: int = Field(ge=1)


class CreateBooking(_CamelModel):
    experience_id: UUID
    from_date: date
    to_date: date
    adults: int = Field(ge=1)
    children: int = Field(0, ge=0)
    infants: int = Field(0, ge=0)
    departure_id: UUID | None = None
    rooms: list[RoomSelectionIn] | None = None
    guest_notes: str | None = None


class Booking(CreateBooking):
    id: UUID
    guest_id: UUID
    host_id: UUID
    price_subtotal_cents: int = Field(ge=0, strict=True)
    price_fees_cents: int = Field(0, ge=0, strict=True)
    price_taxes_cents: int = Field(0, ge=0, strict=True)
    price_total_cents: int = Field(ge=0, strict=True)
    currency: str = Field(min_length=3, max_length=3)
    status: BookingStatus
    host_notes: str | None = None
    created_at: datetime
    updated_at: datetime
