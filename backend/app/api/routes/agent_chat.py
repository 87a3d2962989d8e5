"""Assistant Chat — config-driven, tool-calling chat streamed as SSE.

Invariants:
    - Runtime config (model, temperature, max steps, tools, prompt) resolved per request
    - Messages deduplicated then normalised to user-first provider turns;
      nothing left to send → 400
    - The prompt always carries the catalog context and, when known, the user location
    - Usage logged once the stream ends, with session id and config version

Design Decisions:
    - StreamingResponse for SSE: event_generator yields formatted SSE lines
    - Bearer token optional: anonymous guests can chat, only createBookingIntent
      needs a user (it answers requires_auth instead of failing the stream)
"""

import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_optional_user_id
from app.api.dependencies import get_anthropic_client
from app.config import Settings, get_settings
from app.core.chat_messages import dedupe_messages, to_anthropic_messages
from app.core.errors import ErrorContext, ToolValidationError
from app.core.prompt_builder import (
    attach_catalog_context, attach_user_location, build_agent_prompt_from_config,
)
from app.infrastructure.anthropic_client import ResilientAnthropicClient
from app.infrastructure.database import get_db
from app.schemas.chat import AgentChatRequest
from app.services.agent_config_loader import load_agent_runtime_config
from app.services.agent_runner import AgentRunner
from app.services.catalog_context import load_catalog_context
from app.services.system_prompt import build_system_prompt
from app.services.tool_dispatch import ToolDispatch
from app.services.tools_registry import get_enabled_tools

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/ai", tags=["assistant"])

# ADR: SSE headers prevent proxy/browser buffering of streamed events.
_SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


def _sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"


@router.post("/chat")
async def assistant_chat(
    body: AgentChatRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    client: ResilientAnthropicClient = Depends(get_anthropic_client),
    user_id: uuid.UUID | None = Depends(get_optional_user_id),
):
    messages = to_anthropic_messages(dedupe_messages(body.messages))
    if not messages:
        raise ToolValidationError("At least one user message is required", "messages")

    now = datetime.now(timezone.utc)
    config = await load_agent_runtime_config(
        db, settings, override_version_id=body.config_version_id,
    )
    tools = get_enabled_tools(list(config.enabled_tools))
    tool_names = [tool["name"] for tool in tools]

    system = (
        build_agent_prompt_from_config(config, now.date(), tool_names)
        or build_system_prompt(now.date())
    )
    system = attach_catalog_context(system, await load_catalog_context(db, now))
    location = body.user_location.model_dump() if body.user_location else None
    system = attach_user_location(system, location)

    runner = AgentRunner(client, settings)
    dispatch = ToolDispatch(db, settings, user_id=user_id, now=now)
    ctx = ErrorContext(conversation_id=body.session_id)

    async def event_generator():
        try:
            async for event in runner.run(
                system=system, messages=messages, tools=tools,
                model=config.model, temperature=config.temperature,
                max_steps=config.max_steps, dispatch=dispatch, ctx=ctx,
            ):
                yield _sse_line(event)
        except asyncio.CancelledError:
            logger.info("Client disconnected from assistant stream",
                extra={"conversation_id": body.session_id})
            return
        logger.info(
            "Assistant chat finished",
            extra={
                "conversation_id": body.session_id,
                "config_version_id": config.version_id,
                "input_tokens": runner.usage["input_tokens"],
                "output_tokens": runner.usage["output_tokens"],
            },
        )

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )
