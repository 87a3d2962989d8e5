"""Agent Config Loader — resolves the served assistant configuration from the database.

Invariants:
    - Resolution order: override version → config's active version → latest
      published version → defaults (config_id kept when the config row exists)
    - Results cached per "{slug}:{version_id or 'active'}" for the TTL, defaults included
    - A database failure never propagates: the session is rolled back, defaults
      are served and logged

Design Decisions:
    - In-process TTL map: configs change rarely and a 60 s staleness window is
      acceptable for a single-process deployment (ADR: no shared cache)
    - _clock is module-level so tests can advance time without sleeping
"""

import logging
import time
import uuid
from dataclasses import replace

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.core.agent_config import (
    AgentRuntimeConfig, build_default_config, build_runtime_config,
)
from app.models.agent_config import AgentConfig, AgentConfigVersion

logger = logging.getLogger(__name__)

_cache: dict[str, tuple[float, AgentRuntimeConfig]] = {}
_clock = time.monotonic


def clear_agent_config_cache() -> None:
    _cache.clear()


def _cache_key(slug: str, version_id: str | None) -> str:
    return f"{slug}:{version_id or 'active'}"


def _parse_uuid(value) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


async def load_agent_runtime_config(
    db: AsyncSession,
    settings: Settings,
    slug: str | None = None,
    override_version_id: str | None = None,
) -> AgentRuntimeConfig:
    slug = slug or settings.agent_config_slug
    key = _cache_key(slug, override_version_id)
    now = _clock()
    cached = _cache.get(key)
    if cached is not None and cached[0] > now:
        return cached[1]

    fallback = build_default_config(
        settings.agent_model, settings.agent_temperature, settings.agent_max_steps,
    )
    try:
        value = await _resolve(db, slug, override_version_id, fallback)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to load agent config '%s': %s", slug, e)
        value = fallback

    _cache[key] = (now + settings.agent_config_cache_ttl_seconds, value)
    return value


async def _resolve(
    db: AsyncSession, slug: str, override_version_id: str | None,
    fallback: AgentRuntimeConfig,
) -> AgentRuntimeConfig:
    config = (await db.execute(
        select(AgentConfig).where(AgentConfig.slug == slug),
    )).scalar_one_or_none()
    if config is None:
        return fallback
    config_id = str(config.id)

    version = None
    target = _parse_uuid(override_version_id) if override_version_id else config.active_version_id
    if target is not None:
        version = await db.get(AgentConfigVersion, target)

    if version is None:
        version = (await db.execute(
            select(AgentConfigVersion)
            .where(
                AgentConfigVersion.config_id == config.id,
                AgentConfigVersion.status == "published",
            )
            .order_by(AgentConfigVersion.version_number.desc())
            .limit(1),
        )).scalar_one_or_none()

    if version is None:
        return replace(fallback, config_id=config_id)
    return build_runtime_config(version.as_row(), fallback, config_id)
