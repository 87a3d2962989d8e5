"""Catalog Listing — server-side reads behind the public catalog pages.

Invariants:
    - Only visible experiences (published, not deleted) are ever listed
    - Every item goes through transform_experience (storage URLs resolved)
    - Categories are listed only when at least one published experience uses them
    - Collections: at most COLLECTION_CATEGORY_LIMIT categories; empty groups skipped

Design Decisions:
    - Text search is a case-insensitive substring match on title and short
      description: portable across Postgres and SQLite, good enough for a card grid
    - Price sorts/filters are applied after the page query, like the web client did
"""

import uuid

from sqlalchemy import desc, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ExperienceSort, ExperienceStatus
from app.core.experience_listing import (
    listing_price_cents, sort_by_price, transform_experience, within_price_range,
)
from app.models.catalog import Category, ExperienceCategory
from app.models.experience import Experience
from app.services.catalog_queries import visible_experiences

COLLECTION_CATEGORY_LIMIT = 6


def _category_title(title) -> str:
    if isinstance(title, dict):
        return title.get("fr") or title.get("en") or "Category"
    return "Category"


def _category_payload(category: Category) -> dict:
    return {
        "id": str(category.id),
        "title": category.title,
        "description": category.description,
        "asset": category.asset,
        "is_active": category.is_active,
        "created_at": category.created_at.isoformat() if category.created_at else None,
    }


class CatalogListing:
    """Experience lists, categories and category collections."""

    def __init__(self, db: AsyncSession, storage_base_url: str | None):
        self.db = db
        self.storage_base_url = storage_base_url

    async def list_experiences(
        self,
        *,
        type: str | None = None,
        search: str | None = None,
        sort: ExperienceSort = ExperienceSort.NEWEST,
        limit: int = 20,
        offset: int = 0,
        price_min: float | None = None,
        price_max: float | None = None,
        featured: bool = False,
    ) -> list[dict]:
        stmt = visible_experiences()
        if type:
            stmt = stmt.where(Experience.type == type)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(
                Experience.title.ilike(pattern),
                Experience.short_description.ilike(pattern),
            ))

        if featured:
            stmt = stmt.order_by(
                desc(Experience.avg_rating).nulls_last(),
                desc(Experience.bookings_count).nulls_last(),
            )
        elif sort == ExperienceSort.POPULAR:
            stmt = stmt.order_by(desc(Experience.bookings_count).nulls_last())
        elif sort == ExperienceSort.RATING:
            stmt = stmt.order_by(desc(Experience.avg_rating).nulls_last())
        else:
            stmt = stmt.order_by(Experience.created_at.desc())

        result = await self.db.execute(stmt.offset(offset).limit(limit))
        experiences = sort_by_price(list(result.scalars().all()), sort)
        return [
            transform_experience(exp, self.storage_base_url)
            for exp in experiences
            if within_price_range(listing_price_cents(exp), price_min, price_max)
        ]

    async def list_categories(self) -> list[dict]:
        categories = (await self.db.execute(
            select(Category)
            .where(Category.is_active.is_(True))
            .order_by(Category.created_at.desc()),
        )).scalars().all()

        used = set((await self.db.execute(
            select(ExperienceCategory.category_id)
            .join(Experience, Experience.id == ExperienceCategory.experience_id)
            .where(Experience.status == ExperienceStatus.PUBLISHED.value),
        )).scalars().all())

        return [_category_payload(c) for c in categories if c.id in used]

    async def category_experiences(self, category_id: uuid.UUID, limit: int = 10) -> list[dict]:
        result = await self.db.execute(
            visible_experiences()
            .join(ExperienceCategory, ExperienceCategory.experience_id == Experience.id)
            .where(ExperienceCategory.category_id == category_id)
            .limit(limit),
        )
        return [
            transform_experience(exp, self.storage_base_url)
            for exp in result.scalars().all()
        ]

    async def collections(self, limit_per_category: int = 10) -> list[dict]:
        categories = (await self.db.execute(
            select(Category)
            .where(
                Category.is_active.is_(True),
                Category.id.in_(
                    select(ExperienceCategory.category_id)
                    .join(Experience, Experience.id == ExperienceCategory.experience_id)
                    .where(Experience.status == ExperienceStatus.PUBLISHED.value),
                ),
            )
            .order_by(Category.created_at.desc())
            .limit(COLLECTION_CATEGORY_LIMIT),
        )).scalars().all()

        groups = []
        for category in categories:
            experiences = await self.category_experiences(category.id, limit_per_category)
            if not experiences:
                continue
            groups.append({
                "category_id": str(category.id),
                "category_title": _category_title(category.title),
                "category_asset": category.asset,
                "experiences": experiences,
            })
        return groups
