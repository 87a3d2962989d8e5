"""Assistant Test Console — non-streaming chat, debug run and reset for internal QA.

Invariants:
    - POST /chat without a non-blank message → 400; every tool enabled, built-in prompt
    - Conversation history lives in _conversations (per process, non-durable);
      only user/assistant text is kept, so stored turns always alternate
    - POST /debug always asks "je veux aller à marrakech" with searchExperiences only
    - POST /reset only validates and acknowledges: the next message with
      reset_context=true (or a new id) starts fresh

Design Decisions:
    - run_to_completion() instead of the SSE loop: QA tools want one JSON body
    - Provider failures propagate to the global handler (AnthropicAPIError → 503)
"""

import logging
import secrets
import string
import time
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_optional_user_id
from app.api.dependencies import get_anthropic_client
from app.config import Settings, get_settings
from app.core.domain_types import AgentTool
from app.core.errors import ErrorContext, ToolValidationError
from app.core.prompt_builder import attach_catalog_context
from app.infrastructure.anthropic_client import ResilientAnthropicClient
from app.infrastructure.database import get_db
from app.schemas.chat import TestChatRequest, TestResetRequest
from app.services.agent_runner import AgentRunner
from app.services.catalog_context import load_catalog_context
from app.services.system_prompt import build_system_prompt
from app.services.tool_dispatch import ToolDispatch
from app.services.tools_registry import ALL_TOOLS, get_enabled_tools

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/ai/test", tags=["assistant-test"])

DEBUG_MESSAGE = "je veux aller à marrakech"
_ID_ALPHABET = string.ascii_lowercase + string.digits

_conversations: dict[str, list[dict]] = {}


def new_conversation_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(7))
    return f"test-{int(time.time() * 1000)}-{suffix}"


async def _system_prompt(db: AsyncSession, now: datetime) -> str:
    return attach_catalog_context(
        build_system_prompt(now.date()), await load_catalog_context(db, now),
    )


@router.post("/chat")
async def test_chat(
    body: TestChatRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    client: ResilientAnthropicClient = Depends(get_anthropic_client),
    user_id: uuid.UUID | None = Depends(get_optional_user_id),
):
    if not body.message or not body.message.strip():
        raise ToolValidationError("Message is required", "message")

    conversation_id = body.conversation_id or new_conversation_id()
    history = [] if body.reset_context else list(_conversations.get(conversation_id, []))
    history.append({"role": "user", "content": body.message})

    now = datetime.now(timezone.utc)
    model = settings.test_chat_model or settings.agent_model
    runner = AgentRunner(client, settings)
    started = time.monotonic()
    result = await runner.run_to_completion(
        system=await _system_prompt(db, now),
        messages=list(history),
        tools=ALL_TOOLS,
        model=model,
        temperature=settings.agent_temperature,
        max_steps=settings.test_chat_max_steps,
        dispatch=ToolDispatch(db, settings, user_id=user_id, now=now),
        ctx=ErrorContext(conversation_id=conversation_id),
    )
    response_time_ms = int((time.monotonic() - started) * 1000)

    full_text = "".join(step["text"] for step in result.steps)
    if full_text:
        history.append({"role": "assistant", "content": full_text})
    _conversations[conversation_id] = history

    tool_calls = []
    for step in result.steps:
        results = {r["tool_use_id"]: r["result"] for r in step["tool_results"]}
        for call in step["tool_calls"]:
            tool_calls.append({
                "tool": call["name"],
                "arguments": call["input"],
                "result": results.get(call["id"]),
            })

    logger.info("Test chat finished", extra={
        "conversation_id": conversation_id,
        "input_tokens": result.usage["input_tokens"],
        "output_tokens": result.usage["output_tokens"],
    })
    return {
        "conversation_id": conversation_id,
        "message": full_text,
        "tool_calls": tool_calls,
        "metadata": {
            "model": model,
            "tokens_used": result.usage["total_tokens"],
            "prompt_tokens": result.usage["input_tokens"],
            "completion_tokens": result.usage["output_tokens"],
            "response_time_ms": response_time_ms,
            "finish_reason": result.finish_reason,
            "tool_calls_count": len(tool_calls),
        },
    }


@router.post("/debug")
async def test_debug(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    client: ResilientAnthropicClient = Depends(get_anthropic_client),
):
    now = datetime.now(timezone.utc)
    runner = AgentRunner(client, settings)
    result = await runner.run_to_completion(
        system=await _system_prompt(db, now),
        messages=[{"role": "user", "content": DEBUG_MESSAGE}],
        tools=get_enabled_tools([AgentTool.SEARCH_EXPERIENCES.value]),
        model=settings.test_chat_model or settings.agent_model,
        temperature=settings.agent_temperature,
        max_steps=settings.test_debug_max_steps,
        dispatch=ToolDispatch(db, settings, now=now),
    )
    return {
        "text": result.text,
        "finishReason": result.finish_reason,
        "stepsCount": len(result.steps),
        "steps": [
            {
                "stepIndex": step["step_index"],
                "text": step["text"],
                "toolCallsCount": len(step["tool_calls"]),
                "toolCalls": [
                    {
                        "toolName": call["name"],
                        "toolCallId": call["id"],
                        "argsKeys": list(call["input"] or {}),
                        "args": call["input"],
                    }
                    for call in step["tool_calls"]
                ],
                "toolResultsCount": len(step["tool_results"]),
                "toolResults": [
                    {
                        "toolName": res["name"],
                        "toolCallId": res["tool_use_id"],
                        "resultKeys": list(res["result"]),
                        "result": res["result"],
                    }
                    for res in step["tool_results"]
                ],
            }
            for step in result.steps
        ],
    }


@router.post("/reset")
async def test_reset(body: TestResetRequest):
    if not body.conversation_id:
        raise ToolValidationError("conversation_id is required", "conversation_id")
    return {
        "success": True,
        "message": f"Conversation {body.conversation_id} reset. Next message will start fresh.",
    }
