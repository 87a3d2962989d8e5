"""Catalog — public experience lists, categories and home-page collections.

Invariants:
    - Read-only; every item is a transformed listing payload (storage URLs resolved)
    - Responses are shaped by the read-models in schemas/experience.py
    - Unknown sort values are rejected by the enum (400)
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.domain_types import ExperienceSort, ExperienceType
from app.infrastructure.database import get_db
from app.schemas.experience import CategorySummary, CollectionGroup, ExperienceListItem
from app.services.catalog_listing import CatalogListing

router = APIRouter(prefix="/api", tags=["catalog"])


def _listing(db: AsyncSession, settings: Settings) -> CatalogListing:
    return CatalogListing(db, settings.supabase_url)


@router.get("/experiences", response_model=list[ExperienceListItem])
async def list_experiences(
    type: ExperienceType | None = None,
    search: str | None = None,
    sort: ExperienceSort = ExperienceSort.NEWEST,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    price_min: float | None = Query(None, ge=0),
    price_max: float | None = Query(None, ge=0),
    featured: bool = False,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await _listing(db, settings).list_experiences(
        type=type.value if type else None,
        search=search.strip() if search else None,
        sort=sort,
        limit=limit,
        offset=offset,
        price_min=price_min,
        price_max=price_max,
        featured=featured,
    )


@router.get("/categories", response_model=list[CategorySummary])
async def list_categories(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await _listing(db, settings).list_categories()


@router.get("/categories/{category_id}/experiences", response_model=list[ExperienceListItem])
async def category_experiences(
    category_id: uuid.UUID,
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await _listing(db, settings).category_experiences(category_id, limit)


@router.get("/collections", response_model=list[CollectionGroup])
async def collections(
    limit_per_category: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await _listing(db, settings).collections(limit_per_category)
