"""Experience Search — filtered, BM25-ranked catalog search with progressive fallback.

Invariants:
    - Candidates are visible experiences only (published, not soft-deleted)
    - Relevance ladder 0.3 → 0.15 → 0.0: the first threshold keeping any candidate wins
    - Fallback order: exact → location candidates as city → as region →
      city_slug lookup (city, then region) → no location filter → empty result
    - A "note" key is present on every fallback result, absent on the exact hit
    - has_more == (count >= limit)
    - max_price_mad excludes experiences whose price is unknown
    - max_distance_km (with user coordinates) excludes experiences without coordinates

Design Decisions:
    - Replaces the hosted search_experiences_enhanced RPC + embeddings with SQL filters
      and BM25 (rank_bm25): keyword relevance over a small catalog, no vector store
    - SQL handles the cheap indexed filters (type, city, region, rating); price,
      capacity, distance, promotions and slot filters run in Python over the
      candidate set because they span several tables
    - Availability is NOT a filter: is_available is informational and the
      checkAvailability tool is the source of truth
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.availability import slot_is_bookable
from app.core.city_names import location_candidates, slug_candidates, unique_strings
from app.core.dates import parse_date, start_of_day_utc
from app.core.domain_types import ExperienceType, cents_to_mad, mad_to_cents
from app.core.experience_listing import listing_price_cents
from app.core.promotions import display_discount_value, is_live, promo_badge
from app.core.search_ranking import haversine_km, relevance_scores
from app.core.storage_urls import resolve_storage_url
from app.models.experience import Experience
from app.models.promotion import Promotion
from app.schemas.tool_inputs import SearchExperiencesInput
from app.services.catalog_queries import (
    room_summaries, upcoming_departures, upcoming_sessions, visible_experiences,
)
from app.services.promotion_queries import active_promotions, promotions_for

logger = logging.getLogger(__name__)

RELEVANCE_THRESHOLDS = (0.3, 0.15, 0.0)

NOTE_NOTHING_FOUND = (
    "Aucune expérience ne correspond à votre recherche. "
    "Essayez avec des critères différents."
)


@dataclass
class _Hit:
    exp: Experience
    score: float = 0.0
    distance_km: float | None = None
    promos: list[Promotion] = field(default_factory=list)
    is_available: bool = True

    @property
    def badge(self) -> Promotion | None:
        return promo_badge(self.promos)


def search_document(exp: Experience) -> str:
    """Text indexed for relevance: title, descriptions, location and tags."""
    tags = exp.tags if isinstance(exp.tags, list) else []
    return " ".join(
        str(part) for part in (
            exp.title, exp.short_description, exp.long_description,
            exp.city, exp.region, *tags,
        ) if part
    )


class ExperienceSearch:
    """searchExperiences and findSimilar over the live catalog."""

    def __init__(
        self, db: AsyncSession, now: datetime, storage_base_url: str | None = None,
    ):
        self.db = db
        self.now = now
        self.storage_base_url = storage_base_url
        self._promotions: list[Promotion] | None = None

    # ─── searchExperiences ───────────────────────────────────────

    async def search(self, params: SearchExperiencesInput) -> dict:
        hits = await self._execute(params, params.city, params.region)
        if hits:
            return self._result(hits, params.limit)

        candidates = location_candidates(params.city, params.region)
        note = None

        for candidate in candidates:
            hits = await self._execute(params, candidate, None)
            if hits:
                note = f'Résultats trouvés en filtrant la ville avec "{candidate}".'
                break

        if not hits:
            for candidate in candidates:
                hits = await self._execute(params, None, candidate)
                if hits:
                    note = f'Résultats trouvés en filtrant la région avec "{candidate}".'
                    break

        if not hits:
            hits, note = await self._search_by_slug(params, candidates)

        if not hits and (params.city or params.region):
            hits = await self._execute(params, None, None)
            if hits:
                location = params.city or params.region
                note = (
                    f'Aucune expérience trouvée à "{location}". '
                    "Voici des alternatives disponibles sur la plateforme."
                )

        if hits:
            logger.info("Search fallback used: %s", note)
            return self._result(hits, params.limit, note=note)
        return {
            "success": True,
            "count": 0,
            "results": [],
            "has_more": False,
            "note": NOTE_NOTHING_FOUND,
        }

    async def _search_by_slug(
        self, params: SearchExperiencesInput, candidates: list[str],
    ) -> tuple[list[_Hit], str | None]:
        slugs = slug_candidates(candidates)
        if not slugs:
            return [], None
        result = await self.db.execute(
            visible_experiences()
            .with_only_columns(Experience.city, Experience.region)
            .where(Experience.city_slug.in_(slugs)),
        )
        rows = result.all()
        if not rows:
            return [], None

        for city in unique_strings(row.city for row in rows):
            hits = await self._execute(params, city, None)
            if hits:
                return hits, f'Résultats trouvés via city_slug pour la ville "{city}".'
        for region in unique_strings(row.region for row in rows):
            hits = await self._execute(params, None, region)
            if hits:
                return hits, f'Résultats trouvés via city_slug pour la région "{region}".'
        return [], None

    async def _execute(
        self, params: SearchExperiencesInput,
        city: str | None, region: str | None,
    ) -> list[_Hit]:
        """One search pass with explicit location filters; ranked and limited."""
        stmt = visible_experiences()
        if params.type:
            stmt = stmt.where(Experience.type == params.type)
        if city:
            stmt = stmt.where(Experience.city.ilike(f"%{city.strip()}%"))
        if region:
            stmt = stmt.where(Experience.region.ilike(f"%{region.strip()}%"))
        if params.min_rating:
            stmt = stmt.where(Experience.avg_rating >= params.min_rating)
        result = await self.db.execute(stmt)
        experiences = list(result.scalars().all())
        if not experiences:
            return []

        hits = await self._filter(params, experiences)
        if not hits:
            return []

        scores = relevance_scores(params.query, [search_document(h.exp) for h in hits])
        for hit, score in zip(hits, scores):
            hit.score = score
        for threshold in RELEVANCE_THRESHOLDS:
            ranked = [h for h in hits if h.score >= threshold]
            if ranked:
                break
        return self._sort(params, ranked)[:params.limit]

    async def _filter(
        self, params: SearchExperiencesInput, experiences: list[Experience],
    ) -> list[_Hit]:
        promotions = await self._live_promotions()
        max_price_cents = mad_to_cents(params.max_price_mad)
        has_coords = params.user_lat is not None and params.user_lng is not None
        date_from = parse_date(params.date_from)
        slot_start = start_of_day_utc(date_from) if date_from else self.now
        slots = await self._slots(experiences, slot_start)

        hits: list[_Hit] = []
        for exp in experiences:
            if max_price_cents is not None:
                price = listing_price_cents(exp)
                if price is None or price > max_price_cents:
                    continue
            if params.guests and not _fits_party(exp, params.guests):
                continue

            distance = None
            if has_coords and exp.latitude is not None and exp.longitude is not None:
                distance = haversine_km(
                    params.user_lat, params.user_lng, exp.latitude, exp.longitude,
                )
            if has_coords and params.max_distance_km is not None:
                if distance is None or distance > params.max_distance_km:
                    continue

            promos = promotions_for(promotions, exp)
            if params.only_with_promo and not promos:
                continue
            if params.only_auto_apply and not any(p.auto_apply for p in promos):
                continue

            is_available = True
            if exp.type != ExperienceType.LODGING.value:
                exp_slots = slots.get(exp.id, [])
                if date_from is not None and not exp_slots:
                    continue
                is_available = any(
                    slot_is_bookable(seats, params.guests) for seats in exp_slots
                )

            hits.append(_Hit(
                exp=exp, distance_km=distance, promos=promos,
                is_available=is_available,
            ))
        return hits

    async def _slots(
        self, experiences: list[Experience], start: datetime,
    ) -> dict[uuid.UUID, list[int]]:
        """Seats left per scheduled departure/session, keyed by experience."""
        trip_ids = [e.id for e in experiences if e.type == ExperienceType.TRIP.value]
        activity_ids = [
            e.id for e in experiences if e.type == ExperienceType.ACTIVITY.value
        ]
        seats: dict[uuid.UUID, list[int]] = {}
        for exp_id, deps in (await upcoming_departures(self.db, trip_ids, start)).items():
            seats[exp_id] = [d.seats_available for d in deps]
        for exp_id, sessions in (await upcoming_sessions(self.db, activity_ids, start)).items():
            seats[exp_id] = [s.capacity_available for s in sessions]
        return seats

    async def _live_promotions(self) -> list[Promotion]:
        if self._promotions is None:
            self._promotions = [
                p for p in await active_promotions(self.db) if is_live(p, self.now)
            ]
        return self._promotions

    @staticmethod
    def _sort(params: SearchExperiencesInput, hits: list[_Hit]) -> list[_Hit]:
        if params.sort_by_distance and params.user_lat is not None and params.user_lng is not None:
            return sorted(hits, key=lambda h: (
                h.distance_km is None, h.distance_km or 0.0,
            ))
        if params.only_with_promo or params.only_auto_apply:
            return sorted(hits, key=lambda h: (
                h.badge is None, -(h.badge.priority or 0) if h.badge else 0, -h.score,
            ))
        return sorted(hits, key=lambda h: (-h.score, -(h.exp.avg_rating or 0)))

    # ─── Formatting ──────────────────────────────────────────────

    def _result(self, hits: list[_Hit], limit: int, note: str | None = None) -> dict:
        payload = {
            "success": True,
            "count": len(hits),
            "results": [self._format_hit(h) for h in hits],
            "has_more": len(hits) >= limit,
        }
        if note is not None:
            payload["note"] = note
        return payload

    def _format_hit(self, hit: _Hit) -> dict:
        exp = hit.exp
        badge = hit.badge
        item = {
            **self._summary(exp),
            "distance_km": (
                round(hit.distance_km, 1) if hit.distance_km is not None else None
            ),
            "has_promo": bool(hit.promos),
            "promo_badge": badge.badge_text if badge else None,
            "promo_type": badge.discount_type if badge else None,
            "promo_value": display_discount_value(badge) if badge else None,
            "auto_apply_promo": any(p.auto_apply for p in hit.promos),
            "is_available": hit.is_available,
            "host_name": exp.host.name if exp.host else None,
        }
        if exp.type == ExperienceType.LODGING.value:
            rooms = room_summaries(exp)
            if rooms:
                item["rooms"] = rooms
        return item

    def _summary(self, exp: Experience) -> dict:
        return {
            "id": str(exp.id),
            "title": exp.title,
            "description": exp.short_description,
            "type": exp.type,
            "city": exp.city,
            "region": exp.region,
            "price_mad": cents_to_mad(listing_price_cents(exp)),
            "rating": exp.avg_rating,
            "reviews_count": exp.reviews_count,
            "thumbnail_url": resolve_storage_url(
                exp.thumbnail_url, self.storage_base_url,
            ),
        }

    # ─── findSimilar ─────────────────────────────────────────────

    async def similar(
        self, reference: Experience, same_region: bool, same_type: bool, limit: int,
    ) -> list[dict]:
        """Other visible experiences ranked by text similarity to the reference."""
        stmt = visible_experiences().where(Experience.id != reference.id)
        if same_type:
            stmt = stmt.where(Experience.type == reference.type)
        if same_region:
            if reference.region is None:
                stmt = stmt.where(Experience.region.is_(None))
            else:
                stmt = stmt.where(Experience.region == reference.region)
        result = await self.db.execute(stmt)
        others = list(result.scalars().all())
        if not others:
            return []

        promotions = await self._live_promotions()
        scores = relevance_scores(
            search_document(reference), [search_document(e) for e in others],
        )
        ranked = sorted(
            zip(others, scores), key=lambda pair: (-pair[1], -(pair[0].avg_rating or 0)),
        )
        similar: list[dict] = []
        for exp, score in ranked[:limit]:
            promos = promotions_for(promotions, exp)
            badge = promo_badge(promos)
            similar.append({
                **self._summary(exp),
                "similarity_score": round(score, 3),
                "has_promo": bool(promos),
                "promo_badge": badge.badge_text if badge else None,
                "host_name": exp.host.name if exp.host else None,
            })
        return similar


def _fits_party(exp: Experience, guests: int) -> bool:
    if exp.type == ExperienceType.LODGING.value:
        return any(room.max_persons >= guests for room in exp.active_rooms)
    trip = exp.trip
    if trip is None or trip.max_participants is None:
        return True
    return trip.max_participants >= guests
