"""Availability — pure inventory arithmetic for rooms, departures and sessions.

Invariants:
    - A room type is available only if EVERY night of the stay has >= 1 free room
      AND max_persons >= guests
    - Free rooms per night = total_rooms - rooms held by blocking booking items
    - Booking items hold rooms for nights in [from_date, to_date), never the checkout day
    - A departure/session is bookable when seats >= max(1, guests)

Design Decisions:
    - Booked counts aggregated from booking_items rows in Python (portable across
      Postgres and the SQLite test engine)
    - Items without a rooms payload hold nothing (trip/activity items)
"""

from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import date

from app.core.dates import stay_nights
from app.core.domain_types import cents_to_mad
from app.core.repository_protocols import HeldRoomsLike, RoomLike


def required_seats(guests: int | None) -> int:
    return max(1, guests or 0)


def booked_rooms_per_night(
    items: Iterable[HeldRoomsLike], room_type_id: str,
) -> Counter:
    """Rooms of one type held per night by the given booking items."""
    held: Counter = Counter()
    for item in items:
        quantity = sum(
            int(r.get("quantity") or 0)
            for r in (item.rooms or [])
            if isinstance(r, Mapping) and str(r.get("room_type_id")) == room_type_id
        )
        if quantity <= 0:
            continue
        for night in stay_nights(item.from_date, item.to_date):
            held[night] += quantity
    return held


def room_availability(
    room: RoomLike,
    nights: list[date],
    held: Mapping[date, int],
    guests: int | None,
) -> dict:
    """Availability payload of one room type over the requested nights."""
    details = [
        {
            "date": night.isoformat(),
            "rooms_available": max(0, room.total_rooms - held.get(night, 0)),
            "price_mad": cents_to_mad(room.price_cents),
        }
        for night in nights
    ]
    fits_party = room.max_persons >= (guests or 1)
    all_nights_free = all(d["rooms_available"] >= 1 for d in details)
    return {
        "room_type_id": str(room.id),
        "room_type": room.room_type,
        "name": room.name,
        "capacity_beds": room.capacity_beds,
        "max_persons": room.max_persons,
        "base_price_mad": cents_to_mad(room.price_cents),
        "available": fits_party and all_nights_free,
        "availability_details": details,
    }


def slot_is_bookable(seats_available: int, guests: int | None) -> bool:
    return seats_available >= required_seats(guests)
