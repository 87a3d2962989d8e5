"""Tests for ExperienceSearch — filters, relevance ladder and location fallbacks.

Tests cover:
    - Exact hit: no note, BM25 keeps the relevant experience only
    - Query with no keyword match keeps every candidate (0.0 rung)
    - City spelling fallback, region fallback, slug fallback, no-location fallback
    - Nothing found → empty result with the French note
    - Price, party size, distance, promotion and slot filters
    - Result formatting: promo badge, rooms, storage URLs, has_more
    - similar(): excludes the reference, honours same_type
"""

from datetime import timedelta

from app.schemas.tool_inputs import SearchExperiencesInput
from app.services.experience_search import NOTE_NOTHING_FOUND, ExperienceSearch

STORAGE = "https://okeyo-test.supabase.co"


def _search(test_db, seeded_catalog):
    return ExperienceSearch(test_db, seeded_catalog.now, STORAGE)


def _titles(result):
    return [r["title"] for r in result["results"]]


# -- Exact hits -----------------------------------------------------------------


async def test_exact_hit_returns_relevant_experience_without_note(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="riad piscine", city="Marrakech"),
    )
    assert result["success"] is True
    assert _titles(result) == ["Riad Yasmine"]
    assert "note" not in result


async def test_unmatched_query_keeps_all_candidates(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="surf"),
    )
    assert set(_titles(result)) == {"Riad Yasmine", "Trek de l'Atlas", "Cours de cuisine à Fès"}


async def test_draft_experiences_never_returned(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="riad préparation"),
    )
    assert "Riad en préparation" not in _titles(result)


async def test_type_filter(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="atlas", type="trip"),
    )
    assert _titles(result) == ["Trek de l'Atlas"]


# -- Location fallbacks ---------------------------------------------------------


async def test_misspelled_city_falls_back_to_canonical_name(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="riad", city="marrakesh"),
    )
    assert "Riad Yasmine" in _titles(result)
    assert result["note"] == 'Résultats trouvés en filtrant la ville avec "Marrakech".'


async def test_region_given_as_city_falls_back_to_region(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="trek", city="Imlil"),
    )
    assert _titles(result) == ["Trek de l'Atlas"]
    assert result["note"] == 'Résultats trouvés en filtrant la région avec "Imlil".'


async def test_unknown_city_falls_back_to_whole_catalog(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="riad", city="Tokyo"),
    )
    assert result["count"] >= 1
    assert result["note"].startswith('Aucune expérience trouvée à "Tokyo".')


async def test_nothing_found_returns_empty_result_with_note(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="riad", max_price_mad=1),
    )
    assert result == {
        "success": True,
        "count": 0,
        "results": [],
        "has_more": False,
        "note": NOTE_NOTHING_FOUND,
    }


# -- Filters --------------------------------------------------------------------


async def test_max_price_excludes_expensive_experiences(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="surf", max_price_mad=500),
    )
    assert set(_titles(result)) == {"Trek de l'Atlas", "Cours de cuisine à Fès"}


async def test_party_size_filters_lodging_by_room_capacity(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="surf", guests=6),
    )
    titles = _titles(result)
    assert "Riad Yasmine" not in titles
    assert "Trek de l'Atlas" in titles


async def test_max_distance_requires_coordinates_within_radius(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(
            query="surf", user_lat=31.63, user_lng=-7.99, max_distance_km=20,
        ),
    )
    assert _titles(result) == ["Riad Yasmine"]
    assert result["results"][0]["distance_km"] < 2


async def test_sort_by_distance_orders_nearest_first(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(
            query="surf", user_lat=31.63, user_lng=-7.99, sort_by_distance=True,
        ),
    )
    assert _titles(result) == ["Riad Yasmine", "Trek de l'Atlas", "Cours de cuisine à Fès"]


async def test_only_auto_apply_keeps_experiences_with_auto_promotions(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="surf", only_auto_apply=True),
    )
    assert _titles(result) == ["Riad Yasmine"]
    hit = result["results"][0]
    assert hit["has_promo"] is True
    assert hit["auto_apply_promo"] is True
    assert hit["promo_badge"] == "-100 MAD"
    assert hit["promo_type"] == "fixed"
    assert hit["promo_value"] == 100.0


async def test_date_without_slots_excludes_trips_and_activities(test_db, seeded_catalog):
    later = (seeded_catalog.now + timedelta(days=60)).date().isoformat()
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="surf", date_from=later),
    )
    assert _titles(result) == ["Riad Yasmine"]


async def test_availability_is_informational(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="trek", type="trip", guests=5),
    )
    assert _titles(result) == ["Trek de l'Atlas"]
    assert result["results"][0]["is_available"] is False


# -- Formatting -----------------------------------------------------------------


async def test_lodging_results_carry_rooms_and_resolved_thumbnail(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="riad", city="Marrakech"),
    )
    hit = result["results"][0]
    assert hit["price_mad"] == 900.0
    assert [r["name"] for r in hit["rooms"]] == ["Chambre double", "Suite familiale"]
    assert hit["thumbnail_url"] == (
        f"{STORAGE}/storage/v1/object/public/experiences/riads/yasmine.jpg"
    )
    assert hit["host_name"] == "Amina"


async def test_has_more_when_limit_reached(test_db, seeded_catalog):
    result = await _search(test_db, seeded_catalog).search(
        SearchExperiencesInput(query="surf", limit=1),
    )
    assert result["count"] == 1
    assert result["has_more"] is True


# -- similar() ------------------------------------------------------------------


async def test_similar_excludes_reference(test_db, seeded_catalog):
    similar = await _search(test_db, seeded_catalog).similar(
        seeded_catalog.riad, same_region=False, same_type=False, limit=5,
    )
    ids = {s["id"] for s in similar}
    assert str(seeded_catalog.riad.id) not in ids
    assert ids == {str(seeded_catalog.trek.id), str(seeded_catalog.cooking.id)}


async def test_similar_same_type_without_matches_is_empty(test_db, seeded_catalog):
    similar = await _search(test_db, seeded_catalog).similar(
        seeded_catalog.riad, same_region=False, same_type=True, limit=5,
    )
    assert similar == []
