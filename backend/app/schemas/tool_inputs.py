"""Tool Inputs — pydantic validation of assistant tool arguments.

Invariants:
    - Every handler receives a validated model, never the raw tool_use input
    - Validation failures raise ToolValidationError (dispatch turns it into a
      success:false tool result the model can read and correct)
    - Unknown keys are ignored: models occasionally add fields of their own

Design Decisions:
    - JSON Schemas in define_*_tools.py stay the contract shown to the model;
      these models enforce it server-side (the model may still send bad input)
"""

from datetime import date
from typing import Literal, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.core.errors import ToolValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class _ToolInput(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ─── Discovery ───────────────────────────────────────────────────

class SearchExperiencesInput(_ToolInput):
    query: str
    type: Literal["lodging", "trip", "activity"] | None = None
    city: str | None = None
    region: str | None = None
    max_price_mad: float | None = None
    min_rating: float | None = Field(None, ge=0, le=5)
    guests: int | None = None
    date_from: str | None = None
    date_to: str | None = None
    user_lat: float | None = None
    user_lng: float | None = None
    max_distance_km: float | None = None
    sort_by_distance: bool | None = None
    only_with_promo: bool | None = None
    only_auto_apply: bool | None = None
    limit: int = Field(10, ge=1, le=50)


class ExperienceRef(_ToolInput):
    experience_id: UUID


class CheckAvailabilityInput(ExperienceRef):
    date_from: date
    date_to: date | None = None
    guests: int | None = None


class FindSimilarInput(ExperienceRef):
    same_region: bool | None = None
    same_type: bool | None = None
    limit: int = Field(5, ge=1, le=20)


class RequestLocationInput(_ToolInput):
    reason: str


# ─── Promotions ──────────────────────────────────────────────────

class ExperiencePromosInput(ExperienceRef):
    user_id: UUID | None = None
    check_in: date | None = None
    nights: int | None = None
    guests: int | None = None
    amount_mad: float | None = None


class ValidatePromoCodeInput(ExperiencePromosInput):
    code: str
    amount_mad: float


# ─── Booking ─────────────────────────────────────────────────────

class RoomSelectionInput(_ToolInput):
    room_type_id: UUID
    quantity: int = Field(ge=1)


class BookingItemInput(_ToolInput):
    experience_id: UUID
    from_date: date
    to_date: date
    adults: int = Field(ge=1)
    children: int = Field(0, ge=0)
    infants: int = Field(0, ge=0)
    rooms: list[RoomSelectionInput] | None = None
    departure_id: UUID | None = None
    session_id: UUID | None = None
    guest_notes: str | None = None


class CreateBookingIntentInput(_ToolInput):
    items: list[BookingItemInput] = Field(min_length=1)
    promotion_code: str | None = None


def parse_tool_input(model: type[ModelT], input_data: dict) -> ModelT:
    """Validate raw tool input; first error becomes a ToolValidationError."""
    try:
        return model.model_validate(input_data or {})
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "input"
        raise ToolValidationError(f"Invalid '{field}': {first.get('msg')}", field)
