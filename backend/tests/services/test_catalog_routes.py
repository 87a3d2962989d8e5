"""Route Tests: public catalog — experiences, categories, collections.

Tests cover:
    - Only published experiences listed; type filter; substring search
    - Sorts: popular, rating, price low/high; price range in MAD
    - Listing payload: resolved thumbnail URL, cheapest room price for lodging
    - Categories only when used by a published experience; collections grouping
    - Unknown sort value → 400
"""

import uuid


def _titles(items):
    return [item["title"] for item in items]


async def test_lists_only_published(client, seeded_catalog):
    items = (await client.get("/api/experiences")).json()
    assert set(_titles(items)) == {
        "Riad Yasmine", "Trek de l'Atlas", "Cours de cuisine à Fès",
    }


async def test_type_filter(client, seeded_catalog):
    items = (await client.get("/api/experiences", params={"type": "lodging"})).json()
    assert _titles(items) == ["Riad Yasmine"]


async def test_search_matches_short_description(client, seeded_catalog):
    items = (await client.get("/api/experiences", params={"search": "TAJINE"})).json()
    assert _titles(items) == ["Cours de cuisine à Fès"]


async def test_sort_popular_and_rating(client, seeded_catalog):
    popular = (await client.get("/api/experiences", params={"sort": "popular"})).json()
    rating = (await client.get("/api/experiences", params={"sort": "rating"})).json()
    assert _titles(popular) == ["Trek de l'Atlas", "Riad Yasmine", "Cours de cuisine à Fès"]
    assert _titles(rating) == ["Cours de cuisine à Fès", "Riad Yasmine", "Trek de l'Atlas"]


async def test_sort_by_price(client, seeded_catalog):
    low = (await client.get("/api/experiences", params={"sort": "price_low"})).json()
    high = (await client.get("/api/experiences", params={"sort": "price_high"})).json()
    assert _titles(low) == ["Cours de cuisine à Fès", "Trek de l'Atlas", "Riad Yasmine"]
    assert _titles(high) == list(reversed(_titles(low)))


async def test_price_range_in_mad(client, seeded_catalog):
    items = (await client.get(
        "/api/experiences", params={"price_min": 400, "price_max": 500},
    )).json()
    assert _titles(items) == ["Trek de l'Atlas"]


async def test_listing_payload(client, seeded_catalog):
    items = (await client.get("/api/experiences", params={"type": "lodging"})).json()
    riad = items[0]
    assert riad["thumbnail_url"] == (
        "https://okeyo-test.supabase.co/storage/v1/object/public/experiences/riads/yasmine.jpg"
    )
    assert riad["lodging"]["price_cents"] == 90_000
    assert riad["lodging"]["min_stay_nights"] == 2
    assert riad["host"]["name"] == "Amina"
    assert riad["trip"] is None


async def test_unknown_sort_is_400(client):
    response = await client.get("/api/experiences", params={"sort": "cheapest"})
    assert response.status_code == 400


# -- Categories + collections ---------------------------------------------------


async def test_categories_in_use(client, seeded_catalog):
    categories = (await client.get("/api/categories")).json()
    assert [c["id"] for c in categories] == [str(seeded_catalog.category.id)]
    assert categories[0]["title"] == {"fr": "Riads", "en": "Riads"}


async def test_category_experiences(client, seeded_catalog):
    items = (await client.get(
        f"/api/categories/{seeded_catalog.category.id}/experiences",
    )).json()
    assert _titles(items) == ["Riad Yasmine"]

    empty = (await client.get(f"/api/categories/{uuid.uuid4()}/experiences")).json()
    assert empty == []


async def test_collections(client, seeded_catalog):
    groups = (await client.get("/api/collections")).json()
    assert len(groups) == 1
    assert groups[0]["category_id"] == str(seeded_catalog.category.id)
    assert groups[0]["category_title"] == "Riads"
    assert _titles(groups[0]["experiences"]) == ["Riad Yasmine"]


async def test_empty_catalog(client):
    assert (await client.get("/api/categories")).json() == []
    assert (await client.get("/api/collections")).json() == []
