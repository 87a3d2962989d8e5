"""Service test fixtures — async DB, seeded catalog + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched for code paths that bypass get_db (readiness probe)
    - seeded_catalog slots are relative to the real clock (routes use datetime.now)
    - The agent config cache is cleared around every test

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (ADR: PostgreSQL-specific features not exercised here)
    - mock_dispatch is a plain fake passed to AgentRunner: the runner receives
      its dispatcher per run, so no class patching is needed
"""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

import app.models  # noqa: F401
from app.db.base import Base
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.models import (
    ActivitySession, Amenity, Category, Experience, ExperienceAmenity,
    ExperienceCategory, ExperienceLink, ExperienceLodging, ExperienceTrip, Host,
    LodgingRoomType, Profile, Promotion, Review, TripDeparture,
)
import app.infrastructure.database as db_module
from app.main import app
from app.services.agent_config_loader import clear_agent_config_cache


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    fake_manager.health_timeout_seconds = 3.0
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture(autouse=True)
def _fresh_agent_config_cache():
    clear_agent_config_cache()
    yield
    clear_agent_config_cache()


@pytest.fixture
def now():
    return datetime.now(timezone.utc).replace(hour=12, minute=0, second=0, microsecond=0)


@pytest.fixture
async def seeded_catalog(test_db, now):
    """A small Moroccan catalog: riad, Atlas trek, Fès cooking class, one draft.

    Prices (MAD): riad rooms 900 / 1500 per night, trek 450 pp,
    cooking class 300 pp (next session overridden to 350).
    """
    host = Host(id=uuid.uuid4(), name="Amina", avatar_url="hosts/amina.png", verified=True)
    reviewer = Profile(id=uuid.uuid4(), full_name="Youssef")

    riad = Experience(
        id=uuid.uuid4(), host=host, title="Riad Yasmine",
        short_description="Riad traditionnel avec piscine et hammam",
        type="lodging", status="published",
        city="Marrakech", region="Médina", city_slug="marrakech",
        latitude=31.6295, longitude=-7.9811,
        tags=["riad", "piscine"], avg_rating=4.8, reviews_count=12,
        bookings_count=30, thumbnail_url="riads/yasmine.jpg",
    )
    riad.lodging = ExperienceLodging(min_stay_nights=2)
    double = LodgingRoomType(
        id=uuid.uuid4(), room_type="double", name="Chambre double",
        capacity_beds=1, max_persons=2, price_cents=90_000, total_rooms=2,
    )
    suite = LodgingRoomType(
        id=uuid.uuid4(), room_type="suite", name="Suite familiale",
        capacity_beds=3, max_persons=4, price_cents=150_000, total_rooms=1,
    )
    riad.room_types = [double, suite]

    trek = Experience(
        id=uuid.uuid4(), host=host, title="Trek de l'Atlas",
        short_description="Randonnée de deux jours dans le Haut Atlas",
        type="trip", status="published",
        city="Marrakech", region="Imlil", city_slug="marrakech",
        latitude=31.1367, longitude=-7.9197,
        tags=["randonnée", "montagne"], avg_rating=4.5, reviews_count=8,
        bookings_count=50,
    )
    trek.trip = ExperienceTrip(price_cents=45_000, duration_days=2, max_participants=8)

    cooking = Experience(
        id=uuid.uuid4(), host=host, title="Cours de cuisine à Fès",
        short_description="Atelier tajine dans la médina",
        type="activity", status="published",
        city="Fès", region="Fès-Meknès", city_slug="fes",
        latitude=34.0331, longitude=-5.0003,
        tags=["cuisine"], avg_rating=4.9, reviews_count=3, bookings_count=5,
    )
    cooking.trip = ExperienceTrip(price_cents=30_000, duration_hours=3.0)

    draft = Experience(
        id=uuid.uuid4(), title="Riad en préparation", type="lodging",
        status="draft", city="Marrakech",
    )

    test_db.add_all([host, reviewer, riad, trek, cooking, draft])
    await test_db.flush()

    open_departure = TripDeparture(
        id=uuid.uuid4(), experience_id=trek.id,
        depart_at=now + timedelta(days=10), seats_total=8, seats_available=4,
    )
    full_departure = TripDeparture(
        id=uuid.uuid4(), experience_id=trek.id,
        depart_at=now + timedelta(days=20), seats_total=8, seats_available=0,
    )
    cancelled_departure = TripDeparture(
        id=uuid.uuid4(), experience_id=trek.id,
        depart_at=now + timedelta(days=15), seats_total=8, seats_available=8,
        status="cancelled",
    )
    session = ActivitySession(
        id=uuid.uuid4(), experience_id=cooking.id,
        start_at=now + timedelta(days=5), capacity_total=8, capacity_available=6,
        price_override_cents=35_000,
    )

    spring = Promotion(
        id=uuid.uuid4(), name="Printemps", code="SPRING10",
        discount_type="percentage", discount_value=10, scope="global",
    )
    riad_deal = Promotion(
        id=uuid.uuid4(), name="Offre riad", promo_type="loyalty_reward",
        scope="experience", experience_id=riad.id,
        discount_type="fixed", discount_value=10_000,
        auto_apply=True, badge_text="-100 MAD", priority=5,
    )

    category = Category(id=uuid.uuid4(), title={"fr": "Riads", "en": "Riads"})
    pool = Amenity(key="pool", label_fr="Piscine", category="comfort")

    test_db.add_all([
        open_departure, full_departure, cancelled_departure, session,
        spring, riad_deal, category, pool,
        ExperienceCategory(experience_id=riad.id, category_id=category.id),
        ExperienceAmenity(experience_id=riad.id, amenity_key="pool"),
        ExperienceLink(
            source_experience_id=trek.id, target_experience_id=riad.id,
            label="Séjour après le trek",
        ),
        ExperienceLink(
            source_experience_id=trek.id, target_experience_id=draft.id,
            label="Bientôt",
        ),
        Review(
            experience_id=riad.id, user_id=reviewer.id, rating=5,
            comment="Magnifique riad",
        ),
    ])
    await test_db.commit()

    return SimpleNamespace(
        now=now, host=host, reviewer=reviewer,
        riad=riad, double=double, suite=suite,
        trek=trek, open_departure=open_departure, full_departure=full_departure,
        cancelled_departure=cancelled_departure,
        cooking=cooking, session=session, draft=draft,
        spring=spring, riad_deal=riad_deal, category=category,
    )


@pytest.fixture
def mock_dispatch():
    """Controllable stand-in for ToolDispatch.

    Returns dict with:
      - dispatch: object with async execute(tool_name, input_data)
      - log: list of {"tool": str, "input": dict} for each execute() call
      - results: dict[tool_name, result_dict | callable | Exception]
    """
    log = []
    results = {}

    class _FakeDispatch:
        async def execute(self, tool_name, input_data):
            log.append({"tool": tool_name, "input": input_data})
            r = results.get(tool_name, {"success": True})
            if isinstance(r, Exception):
                raise r
            return r() if callable(r) else r

    return {"dispatch": _FakeDispatch(), "log": log, "results": results}
