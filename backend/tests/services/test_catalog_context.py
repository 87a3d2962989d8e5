"""Tests for load_catalog_context — the catalog block injected into the system prompt.

Tests cover:
    - Empty catalog renders the empty-catalog text
    - Published experiences listed with rooms, departures and amenities
    - Drafts and titles containing "test" are excluded
    - Amenity without a French label falls back to its key
    - Non-string room equipment is rendered, not fatal
    - Query failure rolls the session back and yields ""
    - Formatting failure yields ""
"""

import uuid

from sqlalchemy.exc import OperationalError

from app.core.catalog_format import format_catalog
from app.models.catalog import Amenity, ExperienceAmenity
from app.models.experience import Experience
import app.services.catalog_context as catalog_context
from app.services.catalog_context import load_catalog_context


async def test_empty_catalog(test_db, now):
    assert await load_catalog_context(test_db, now) == format_catalog([])


async def test_lists_published_experiences(test_db, seeded_catalog):
    context = await load_catalog_context(test_db, seeded_catalog.now)
    assert "Riad Yasmine" in context
    assert "Trek de l'Atlas" in context
    assert "Cours de cuisine à Fès" in context
    assert "Chambre double" in context
    assert "Piscine" in context
    assert "Riad en préparation" not in context


async def test_excludes_test_titles(test_db, seeded_catalog):
    test_db.add(Experience(
        id=uuid.uuid4(), title="TEST riad", type="lodging",
        status="published", city="Rabat",
    ))
    await test_db.commit()

    context = await load_catalog_context(test_db, seeded_catalog.now)
    assert "TEST riad" not in context


async def test_unlabelled_amenity_uses_key(test_db, seeded_catalog):
    test_db.add_all([
        Amenity(key="hammam", label_fr="", category="wellness"),
        ExperienceAmenity(experience_id=seeded_catalog.riad.id, amenity_key="hammam"),
    ])
    await test_db.commit()

    context = await load_catalog_context(test_db, seeded_catalog.now)
    assert "hammam" in context


async def test_mixed_equipment_values(test_db, seeded_catalog):
    seeded_catalog.double.equipments = ["wifi", 2]
    await test_db.commit()

    context = await load_catalog_context(test_db, seeded_catalog.now)
    assert "Équipements: wifi, 2" in context


# -- Failures -------------------------------------------------------------------


async def test_query_failure_rolls_back(test_db, now, monkeypatch):
    rollbacks = []

    async def failing_execute(*args, **kwargs):
        raise OperationalError("SELECT experiences", {}, Exception("connection reset"))

    rollback = test_db.rollback

    async def counting_rollback():
        rollbacks.append(True)
        await rollback()

    monkeypatch.setattr(test_db, "execute", failing_execute)
    monkeypatch.setattr(test_db, "rollback", counting_rollback)

    assert await load_catalog_context(test_db, now) == ""
    assert rollbacks == [True]


async def test_formatting_failure_yields_empty_context(test_db, seeded_catalog, monkeypatch):
    def broken_format(entries):
        raise TypeError("unexpected catalog value")

    monkeypatch.setattr(catalog_context, "format_catalog", broken_format)
    assert await load_catalog_context(test_db, seeded_catalog.now) == ""
