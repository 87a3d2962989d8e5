"""Catalog Queries — shared SQLAlchemy reads over the published catalog.

Invariants:
    - "Visible" always means status == published AND deleted_at IS NULL
    - Slot queries return scheduled departures/sessions only, earliest first
    - Room summaries list cheapest rooms first and never include soft-deleted rooms

Design Decisions:
    - Statement builders return Select objects so callers add their own filters
      (search, catalog context and listing endpoints share one definition of "visible")
    - Grouping by experience happens in Python: one query per table, never N+1
"""

import uuid
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ExperienceStatus, SlotStatus, cents_to_mad
from app.models.catalog import ExperienceAmenity
from app.models.experience import ActivitySession, Experience, TripDeparture


def visible_experiences() -> Select:
    return select(Experience).where(
        Experience.status == ExperienceStatus.PUBLISHED.value,
        Experience.deleted_at.is_(None),
    )


async def get_experience(
    db: AsyncSession, experience_id: uuid.UUID, published_only: bool = False,
) -> Experience | None:
    """Non-deleted experience by id (optionally published only)."""
    stmt = select(Experience).where(
        Experience.id == experience_id, Experience.deleted_at.is_(None),
    )
    if published_only:
        stmt = stmt.where(Experience.status == ExperienceStatus.PUBLISHED.value)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def upcoming_departures(
    db: AsyncSession, experience_ids: Iterable[uuid.UUID],
    start: datetime, limit: int | None = None,
) -> dict[uuid.UUID, list[TripDeparture]]:
    ids = list(experience_ids)
    if not ids:
        return {}
    stmt = (
        select(TripDeparture)
        .where(
            TripDeparture.experience_id.in_(ids),
            TripDeparture.status == SlotStatus.SCHEDULED.value,
            TripDeparture.depart_at >= start,
        )
        .order_by(TripDeparture.depart_at)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    grouped: dict[uuid.UUID, list[TripDeparture]] = defaultdict(list)
    for dep in result.scalars().all():
        grouped[dep.experience_id].append(dep)
    return grouped


async def upcoming_sessions(
    db: AsyncSession, experience_ids: Iterable[uuid.UUID],
    start: datetime, limit: int | None = None,
) -> dict[uuid.UUID, list[ActivitySession]]:
    ids = list(experience_ids)
    if not ids:
        return {}
    stmt = (
        select(ActivitySession)
        .where(
            ActivitySession.experience_id.in_(ids),
            ActivitySession.status == SlotStatus.SCHEDULED.value,
            ActivitySession.start_at >= start,
        )
        .order_by(ActivitySession.start_at)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    grouped: dict[uuid.UUID, list[ActivitySession]] = defaultdict(list)
    for session in result.scalars().all():
        grouped[session.experience_id].append(session)
    return grouped


async def amenities_by_experience(
    db: AsyncSession, experience_ids: Iterable[uuid.UUID],
) -> dict[uuid.UUID, list[ExperienceAmenity]]:
    ids = list(experience_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(ExperienceAmenity).where(ExperienceAmenity.experience_id.in_(ids)),
    )
    grouped: dict[uuid.UUID, list[ExperienceAmenity]] = defaultdict(list)
    for link in result.scalars().all():
        grouped[link.experience_id].append(link)
    return grouped


def room_summaries(exp: Experience) -> list[dict]:
    """Compact room list attached to lodging results."""
    return [
        {
            "name": room.name or room.room_type,
            "type": room.room_type,
            "price_mad": cents_to_mad(room.price_cents) or 0,
            "capacity_beds": room.capacity_beds,
            "max_persons": room.max_persons,
        }
        for room in exp.active_rooms
    ]
