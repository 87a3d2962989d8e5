"""Catalog Context — loads the published catalog and renders it for the system prompt.

Invariants:
    - Only visible experiences whose title does not contain "test" (any case)
    - Ordered by type, then city
    - Any failure → "" (the assistant still works, just without the catalog)
    - A failed query rolls the session back: tool calls reuse the same session
    - Amenity label falls back to its key
"""

import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.catalog_format import CatalogEntry, format_catalog
from app.models.experience import Experience
from app.services.catalog_queries import (
    amenities_by_experience, upcoming_departures, upcoming_sessions,
    visible_experiences,
)

logger = logging.getLogger(__name__)


async def load_catalog_context(db: AsyncSession, now: datetime) -> str:
    try:
        return format_catalog(await _catalog_entries(db, now))
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to load catalog context: %s", e)
        return ""
    except Exception as e:
        logger.error("Failed to render catalog context: %s", e, exc_info=True)
        return ""


async def _catalog_entries(db: AsyncSession, now: datetime) -> list[CatalogEntry]:
    result = await db.execute(
        visible_experiences()
        .where(func.lower(Experience.title).not_like("%test%"))
        .order_by(Experience.type, Experience.city),
    )
    experiences = list(result.scalars().all())
    ids = [exp.id for exp in experiences]

    departures = await upcoming_departures(db, ids, now)
    sessions = await upcoming_sessions(db, ids, now)
    amenities = await amenities_by_experience(db, ids)

    return [
        CatalogEntry(
            experience=exp,
            host_name=exp.host.name if exp.host is not None else None,
            amenities=[
                link.amenity.label_fr or link.amenity.key
                for link in amenities.get(exp.id, []) if link.amenity is not None
            ],
            rooms=exp.active_rooms,
            trip=exp.trip,
            departures=departures.get(exp.id, []),
            sessions=sessions.get(exp.id, []),
        )
        for exp in experiences
    ]
