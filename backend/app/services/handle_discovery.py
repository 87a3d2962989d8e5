"""Discovery Handlers — catalog search, similar and linked experiences, location requests.

Invariants:
    - Only visible experiences (published, not deleted) ever appear in results
    - requestUserLocation touches no data; the client shows the permission prompt
    - Lodging results carry a room summary (cheapest first) when rooms exist
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.core.domain_types import ExperienceType, cents_to_mad
from app.core.errors import ResourceNotFoundError
from app.core.experience_listing import listing_price_cents
from app.core.storage_urls import resolve_storage_url
from app.models.experience import ExperienceLink
from app.schemas.tool_inputs import (
    ExperienceRef, FindSimilarInput, RequestLocationInput,
    SearchExperiencesInput, parse_tool_input,
)
from app.services.catalog_queries import get_experience, room_summaries
from app.services.experience_search import ExperienceSearch


class DiscoveryHandlers:
    """searchExperiences, findSimilar, getLinkedExperiences, requestUserLocation."""

    def __init__(self, db: AsyncSession, settings: Settings, now: datetime):
        self.db = db
        self.settings = settings
        self.search = ExperienceSearch(db, now, settings.supabase_url)

    async def search_experiences(self, input_data: dict) -> dict:
        params = parse_tool_input(SearchExperiencesInput, input_data)
        return await self.search.search(params)

    async def find_similar(self, input_data: dict) -> dict:
        params = parse_tool_input(FindSimilarInput, input_data)
        reference = await get_experience(self.db, params.experience_id)
        if reference is None:
            raise ResourceNotFoundError("Experience", str(params.experience_id))

        similar = await self.search.similar(
            reference,
            same_region=bool(params.same_region),
            same_type=bool(params.same_type),
            limit=params.limit,
        )
        return {
            "success": True,
            "reference": {
                "id": str(reference.id),
                "title": reference.title,
                "type": reference.type,
                "region": reference.region,
                "city": reference.city,
            },
            "similar_experiences": similar,
            "count": len(similar),
        }

    async def get_linked_experiences(self, input_data: dict) -> dict:
        params = parse_tool_input(ExperienceRef, input_data)
        result = await self.db.execute(
            select(ExperienceLink)
            .where(ExperienceLink.source_experience_id == params.experience_id)
            .order_by(ExperienceLink.created_at),
        )
        linked = []
        for link in result.scalars().all():
            target = link.target
            if target is None or not target.is_published:
                continue
            item = {
                "id": str(target.id),
                "title": target.title,
                "type": target.type,
                "city": target.city,
                "region": target.region,
                "description": target.short_description,
                "price_mad": cents_to_mad(listing_price_cents(target)),
                "rating": target.avg_rating,
                "reviews_count": target.reviews_count,
                "thumbnail_url": resolve_storage_url(
                    target.thumbnail_url, self.settings.supabase_url,
                ),
                "link_label": link.label,
            }
            if target.type == ExperienceType.LODGING.value:
                rooms = room_summaries(target)
                if rooms:
                    item["rooms"] = rooms
            linked.append(item)
        return {"success": True, "count": len(linked), "linked_experiences": linked}

    async def request_user_location(self, input_data: dict) -> dict:
        params = parse_tool_input(RequestLocationInput, input_data)
        return {
            "success": True,
            "type": "location_request",
            "reason": params.reason,
            "message": (
                f"I'd like to access your location {params.reason}. This will help "
                "me show you the most relevant experiences based on your location."
            ),
        }
