"""Experience Schemas — catalog read-models returned by the listing endpoints."""

from pydantic import BaseModel, ConfigDict

from app.core.domain_types import ExperienceType


class HostSummary(BaseModel):
    id: str
    name: str
    avatar_url: str | None = None
    verified: bool = False


class TripSummary(BaseModel):
    price_cents: int | None = None
    currency: str | None = None
    duration_days: int | None = None
    duration_hours: float | None = None


class LodgingSummary(BaseModel):
    min_stay_nights: int | None = None
    price_cents: int | None = None
    currency: str | None = None


class ExperienceListItem(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    id: str
    title: str
    short_description: str | None = None
    city: str | None = None
    region: str | None = None
    type: ExperienceType
    thumbnail_url: str | None = None
    avg_rating: float | None = None
    reviews_count: int | None = None
    host: HostSummary | None = None
    trip: TripSummary | None = None
    lodging: LodgingSummary | None = None


class CategorySummary(BaseModel):
    id: str
    title: dict
    description: str | None = None
    asset: str | None = None
    is_active: bool = True
    created_at: str | None = None


class CollectionGroup(BaseModel):
    category_id: str
    category_title: str
    category_asset: str | None = None
    experiences: list[ExperienceListItem]
