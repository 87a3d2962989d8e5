"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 if database is unreachable (readiness)
    - Optional integrations are reported, never required for readiness

Design Decisions:
    - Separate liveness/readiness: liveness restarts the process,
      readiness removes it from the load balancer
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings
import app.infrastructure.database as database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness probe."""
    return {"status": "healthy", "service": "okeyo-api", "version": "1.0.0"}


@router.get("/ready")
async def readiness_check(settings: Settings = Depends(get_settings)):
    """Readiness probe — database connectivity plus integration flags."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    integrations = {
        "storage": bool(settings.supabase_url),
        "auth": bool(settings.supabase_jwt_secret),
        "brevo": bool(settings.brevo_api_key),
    }
    if not db_ok:
        logger.warning("Readiness check failed: database unavailable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "integrations": integrations,
    }
