"""Experience Listing — read-model transform for catalog lists (cards, collections).

Invariants:
    - listing_price_cents: trip price, else cheapest active room, else None
    - Thumbnails and host avatars always pass through resolve_storage_url
    - Price filters (MAD) never exclude an experience whose price is unknown
    - Sorting is stable; missing ratings/prices sort last

Design Decisions:
    - Price sorts happen here (after the query) because price lives in two
      different tables depending on the experience type
"""

from collections.abc import Iterable

from app.core.domain_types import ExperienceSort
from app.core.repository_protocols import ExperienceLike, RoomLike
from app.core.storage_urls import resolve_storage_url


def cheapest_room(rooms: Iterable[RoomLike]) -> RoomLike | None:
    priced = [r for r in rooms if r.price_cents]
    if not priced:
        return None
    return min(priced, key=lambda r: r.price_cents)


def listing_price_cents(exp: ExperienceLike) -> int | None:
    if exp.trip is not None and exp.trip.price_cents:
        return exp.trip.price_cents
    room = cheapest_room(exp.active_rooms)
    return room.price_cents if room is not None else None


def transform_experience(exp: ExperienceLike, storage_base_url: str | None) -> dict:
    """ORM experience → ExperienceListItem payload."""
    host = exp.host
    trip = exp.trip
    room = cheapest_room(exp.active_rooms)
    lodging = exp.lodging
    return {
        "id": str(exp.id),
        "title": exp.title,
        "short_description": exp.short_description,
        "city": exp.city,
        "region": exp.region,
        "type": exp.type,
        "thumbnail_url": resolve_storage_url(exp.thumbnail_url, storage_base_url),
        "avg_rating": exp.avg_rating,
        "reviews_count": exp.reviews_count,
        "host": {
            "id": str(host.id),
            "name": host.name,
            "avatar_url": resolve_storage_url(host.avatar_url, storage_base_url),
            "verified": host.verified,
        } if host is not None else None,
        "trip": {
            "price_cents": trip.price_cents,
            "currency": trip.currency,
            "duration_days": trip.duration_days,
            "duration_hours": trip.duration_hours,
        } if trip is not None else None,
        "lodging": {
            "min_stay_nights": lodging.min_stay_nights,
            "price_cents": room.price_cents if room is not None else None,
            "currency": room.currency if room is not None else None,
        } if lodging is not None else None,
    }


def within_price_range(
    price_cents: int | None, price_min: float | None, price_max: float | None,
) -> bool:
    if price_cents is None:
        return True
    if price_min is not None and price_cents < price_min * 100:
        return False
    if price_max is not None and price_cents > price_max * 100:
        return False
    return True


def sort_by_price(
    experiences: list[ExperienceLike], sort: ExperienceSort,
) -> list[ExperienceLike]:
    """Price sorts only; other orders are applied in SQL."""
    if sort not in (ExperienceSort.PRICE_LOW, ExperienceSort.PRICE_HIGH):
        return experiences
    priced = [e for e in experiences if listing_price_cents(e) is not None]
    unpriced = [e for e in experiences if listing_price_cents(e) is None]
    priced.sort(
        key=listing_price_cents, reverse=sort == ExperienceSort.PRICE_HIGH,
    )
    return priced + unpriced
