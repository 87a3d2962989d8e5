"""Pre-order — newsletter sign-up forwarded to Brevo.

Invariants:
    - Missing/blank name or email → 400 (schema)
    - No Brevo key → 500 "Server configuration error"
    - Brevo failure → Brevo's status code with "Failed to subscribe"
"""

import logging

from fastapi import APIRouter, Depends

from app.config import Settings, get_settings
from app.infrastructure.brevo_client import BrevoClient
from app.schemas.preorder import PreorderRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["preorder"])


def get_brevo_client(settings: Settings = Depends(get_settings)) -> BrevoClient:
    return BrevoClient(
        settings.brevo_api_key,
        settings.brevo_api_url,
        settings.brevo_list_id,
        settings.brevo_default_list_id,
        settings.brevo_timeout_seconds,
    )


@router.post("/preorder")
async def preorder(
    body: PreorderRequest,
    brevo: BrevoClient = Depends(get_brevo_client),
):
    await brevo.subscribe(body.name, body.email)
    logger.info("Pre-order subscription recorded")
    return {"success": True}
