"""Agent Config (public) — welcome messages and prompt suggestions for chat clients.

Invariants:
    - Only AgentRuntimeConfig.public_payload() is exposed (no prompt, no rules)
    - Responses are cacheable: public, max-age=30, stale-while-revalidate=60
"""

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.infrastructure.database import get_db
from app.services.agent_config_loader import load_agent_runtime_config

router = APIRouter(prefix="/api/ai/config", tags=["assistant"])

_CACHE_CONTROL = "public, max-age=30, stale-while-revalidate=60"


@router.get("/public")
async def public_config(
    response: Response,
    version_id: str | None = Query(None, alias="versionId"),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    config = await load_agent_runtime_config(
        db, settings, override_version_id=version_id or None,
    )
    response.headers["Cache-Control"] = _CACHE_CONTROL
    return config.public_payload()
