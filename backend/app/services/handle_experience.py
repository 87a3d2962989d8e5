"""Experience Handlers — full experience details and live availability.

Invariants:
    - getExperienceDetails only exposes visible experiences (published, not deleted)
    - Details list at most 10 upcoming departures/sessions and 5 latest published reviews
    - checkAvailability (lodging): a room type is available only if every night in
      [date_from, date_to) has a free room after pending/confirmed booking items
    - checkAvailability (trip/activity): scheduled slots starting on/after date_from
      with seats >= max(1, guests), 20 max
    - Unknown experience → ResourceNotFoundError (dispatch turns it into a tool error)

Design Decisions:
    - Occupancy is derived from booking_items instead of a precomputed availability
      table: one source of truth, no nightly sync job
"""

from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.core.availability import booked_rooms_per_night, room_availability, slot_is_bookable
from app.core.dates import iso_or_none, start_of_day_utc, stay_nights
from app.core.domain_types import (
    BLOCKING_BOOKING_STATUSES, ExperienceType, cents_to_mad,
)
from app.core.errors import ResourceNotFoundError
from app.core.promotions import is_live, promotion_summary
from app.core.storage_urls import resolve_storage_url
from app.models.booking import BookingItem
from app.models.catalog import Review
from app.models.experience import Experience, TripItineraryItem
from app.schemas.tool_inputs import CheckAvailabilityInput, ExperienceRef, parse_tool_input
from app.services.catalog_queries import (
    amenities_by_experience, get_experience, upcoming_departures, upcoming_sessions,
)
from app.services.promotion_queries import active_promotions, promotions_for

UPCOMING_LIMIT = 10
RECENT_REVIEWS_LIMIT = 5
AVAILABILITY_SLOT_LIMIT = 20


def _row_dict(row) -> dict:
    """Column values of an ORM row with JSON-friendly ids and timestamps."""
    out = {}
    for attr in row.__mapper__.column_attrs:
        value = getattr(row, attr.key)
        if hasattr(value, "isoformat"):
            value = value.isoformat()
        elif value is not None and not isinstance(value, (str, int, float, bool, list, dict)):
            value = str(value)
        out[attr.key] = value
    return out


def _override_mad(cents: int | None) -> float | None:
    return cents_to_mad(cents) if cents else None


class ExperienceHandlers:
    """getExperienceDetails, checkAvailability."""

    def __init__(self, db: AsyncSession, settings: Settings, now: datetime):
        self.db = db
        self.settings = settings
        self.now = now

    # ─── getExperienceDetails ────────────────────────────────────

    async def get_experience_details(self, input_data: dict) -> dict:
        params = parse_tool_input(ExperienceRef, input_data)
        exp = await get_experience(self.db, params.experience_id, published_only=True)
        if exp is None:
            raise ResourceNotFoundError("Experience", str(params.experience_id))

        amenities = (await amenities_by_experience(self.db, [exp.id])).get(exp.id, [])
        promos = [
            p for p in promotions_for(await active_promotions(self.db), exp)
            if is_live(p, self.now)
        ]
        base_url = self.settings.supabase_url
        host = exp.host

        return {
            "success": True,
            "experience": {
                "id": str(exp.id),
                "title": exp.title,
                "short_description": exp.short_description,
                "long_description": exp.long_description,
                "type": exp.type,
                "city": exp.city,
                "region": exp.region,
                "location": exp.location,
                "languages": exp.languages,
                "cancellation_policy": exp.cancellation_policy,
                "tags": exp.tags,
                "avg_rating": exp.avg_rating,
                "reviews_count": exp.reviews_count,
                "bookings_count": exp.bookings_count,
                "thumbnail_url": resolve_storage_url(exp.thumbnail_url, base_url),
                "video_id": exp.video_id,
            },
            "host": {
                "id": str(host.id),
                "name": host.name,
                "bio": host.bio,
                "profile_photo_url": resolve_storage_url(host.profile_photo_url, base_url),
                "avg_rating": host.avg_rating,
                "total_bookings": host.total_bookings,
                "joined_at": iso_or_none(host.joined_at),
            } if host is not None else None,
            "amenities": [
                {
                    "key": link.amenity.key,
                    "label_fr": link.amenity.label_fr,
                    "category": link.amenity.category,
                    "icon": link.amenity.icon,
                }
                for link in amenities if link.amenity is not None
            ],
            **await self._type_details(exp),
            "recent_reviews": await self._recent_reviews(exp),
            "promotion_info": promotion_summary(promos),
        }

    async def _type_details(self, exp: Experience) -> dict:
        if exp.type == ExperienceType.LODGING.value:
            return {
                "lodging": _row_dict(exp.lodging) if exp.lodging is not None else None,
                "room_types": [
                    {
                        "id": str(room.id),
                        "type": room.room_type,
                        "name": room.name,
                        "description": room.description,
                        "capacity_beds": room.capacity_beds,
                        "max_persons": room.max_persons,
                        "price_mad": cents_to_mad(room.price_cents),
                        "equipments": room.equipments,
                        "photos": [
                            resolve_storage_url(p, self.settings.supabase_url)
                            for p in (room.photos or []) if isinstance(p, str)
                        ],
                    }
                    for room in exp.active_rooms
                ],
            }

        pricing = None
        if exp.trip is not None:
            pricing = {
                **_row_dict(exp.trip),
                "price_mad": _override_mad(exp.trip.price_cents),
            }

        if exp.type == ExperienceType.TRIP.value:
            itinerary = await self.db.execute(
                select(TripItineraryItem)
                .where(TripItineraryItem.experience_id == exp.id)
                .order_by(TripItineraryItem.day_number, TripItineraryItem.order_index),
            )
            departures = (await upcoming_departures(
                self.db, [exp.id], self.now, limit=UPCOMING_LIMIT,
            )).get(exp.id, [])
            return {
                "trip": pricing,
                "itinerary": [
                    {
                        "day_number": item.day_number,
                        "title": item.title,
                        "details": item.details,
                        "location_name": item.location_name,
                        "duration_minutes": item.duration_minutes,
                    }
                    for item in itinerary.scalars().all()
                ],
                "upcoming_departures": [
                    {
                        "id": str(dep.id),
                        "depart_at": iso_or_none(dep.depart_at),
                        "return_at": iso_or_none(dep.return_at),
                        "seats_available": dep.seats_available,
                        "seats_total": dep.seats_total,
                        "price_override_mad": _override_mad(dep.price_override_cents),
                    }
                    for dep in departures
                ],
            }

        if exp.type == ExperienceType.ACTIVITY.value:
            sessions = (await upcoming_sessions(
                self.db, [exp.id], self.now, limit=UPCOMING_LIMIT,
            )).get(exp.id, [])
            return {
                "activity": pricing,
                "upcoming_sessions": [
                    {
                        "id": str(s.id),
                        "start_at": iso_or_none(s.start_at),
                        "end_at": iso_or_none(s.end_at),
                        "capacity_available": s.capacity_available,
                        "capacity_total": s.capacity_total,
                        "price_override_mad": _override_mad(s.price_override_cents),
                    }
                    for s in sessions
                ],
            }
        return {}

    async def _recent_reviews(self, exp: Experience) -> list[dict]:
        result = await self.db.execute(
            select(Review)
            .where(Review.experience_id == exp.id, Review.status == "published")
            .order_by(Review.created_at.desc())
            .limit(RECENT_REVIEWS_LIMIT),
        )
        return [
            {
                "id": str(review.id),
                "rating": review.rating,
                "comment": review.comment,
                "created_at": iso_or_none(review.created_at),
                "user": {
                    "id": str(review.user.id),
                    "full_name": review.user.full_name,
                    "profile_photo_url": resolve_storage_url(
                        review.user.profile_photo_url, self.settings.supabase_url,
                    ),
                } if review.user is not None else None,
            }
            for review in result.scalars().all()
        ]

    # ─── checkAvailability ───────────────────────────────────────

    async def check_availability(self, input_data: dict) -> dict:
        params = parse_tool_input(CheckAvailabilityInput, input_data)
        exp = await get_experience(self.db, params.experience_id)
        if exp is None:
            raise ResourceNotFoundError("Experience", str(params.experience_id))

        if exp.type == ExperienceType.LODGING.value:
            return await self._lodging_availability(exp, params)
        if exp.type == ExperienceType.TRIP.value:
            return await self._departure_availability(exp, params)
        if exp.type == ExperienceType.ACTIVITY.value:
            return await self._session_availability(exp, params)
        return {"success": False, "error": "Unknown experience type"}

    async def _lodging_availability(
        self, exp: Experience, params: CheckAvailabilityInput,
    ) -> dict:
        rooms = exp.active_rooms
        if not rooms:
            return {
                "success": True,
                "type": "lodging",
                "available": False,
                "message": "No room types available",
            }

        nights = stay_nights(params.date_from, params.date_to)
        result = await self.db.execute(
            select(BookingItem).where(
                BookingItem.experience_id == exp.id,
                BookingItem.status.in_(sorted(BLOCKING_BOOKING_STATUSES)),
                BookingItem.from_date <= nights[-1],
                or_(BookingItem.to_date.is_(None), BookingItem.to_date > nights[0]),
            ),
        )
        items = list(result.scalars().all())

        checks = [
            room_availability(
                room, nights, booked_rooms_per_night(items, str(room.id)), params.guests,
            )
            for room in rooms
        ]
        return {
            "success": True,
            "type": "lodging",
            "available": any(c["available"] for c in checks),
            "date_from": params.date_from.isoformat(),
            "date_to": iso_or_none(params.date_to),
            "room_types": checks,
        }

    async def _departure_availability(
        self, exp: Experience, params: CheckAvailabilityInput,
    ) -> dict:
        departures = (await upcoming_departures(
            self.db, [exp.id], start_of_day_utc(params.date_from),
            limit=AVAILABILITY_SLOT_LIMIT,
        )).get(exp.id, [])
        bookable = [
            dep for dep in departures
            if slot_is_bookable(dep.seats_available, params.guests)
        ]
        return {
            "success": True,
            "type": "trip",
            "available": bool(bookable),
            "departures": [
                {
                    "id": str(dep.id),
                    "depart_at": iso_or_none(dep.depart_at),
                    "return_at": iso_or_none(dep.return_at),
                    "seats_available": dep.seats_available,
                    "seats_total": dep.seats_total,
                    "price_mad": _override_mad(dep.price_override_cents),
                    "status": dep.status,
                }
                for dep in bookable
            ],
        }

    async def _session_availability(
        self, exp: Experience, params: CheckAvailabilityInput,
    ) -> dict:
        sessions = (await upcoming_sessions(
            self.db, [exp.id], start_of_day_utc(params.date_from),
            limit=AVAILABILITY_SLOT_LIMIT,
        )).get(exp.id, [])
        bookable = [
            s for s in sessions
            if slot_is_bookable(s.capacity_available, params.guests)
        ]
        return {
            "success": True,
            "type": "activity",
            "available": bool(bookable),
            "sessions": [
                {
                    "id": str(s.id),
                    "start_at": iso_or_none(s.start_at),
                    "end_at": iso_or_none(s.end_at),
                    "capacity_available": s.capacity_available,
                    "capacity_total": s.capacity_total,
                    "price_mad": _override_mad(s.price_override_cents),
                    "status": s.status,
                }
                for s in bookable
            ],
        }
