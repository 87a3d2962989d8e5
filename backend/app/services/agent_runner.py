"""Agent Runner — async tool-calling loop with streaming SSE delivery.

Invariants:
    - At most max_steps model calls per run; tool errors never crash the loop
    - A response without tool_use ends the run with done(error=False)
    - Provider errors → error event + done(error=True); CancelledError propagates
    - Token usage accumulated across steps in self.usage

Design Decisions:
    - Anthropic streaming API for real-time text/tool delivery
    - get_final_message() for post-processing (avoids manual block reconstruction)
    - run_to_completion() shares the step logic but uses the retrying create_message:
      test endpoints want one JSON body, not a stream
    - Pure helpers extracted to agent_runner_helpers.py
"""

import asyncio
import dataclasses
import logging

from app.config import Settings
from app.core.errors import ErrorContext, OkeyoError
from app.infrastructure.anthropic_client import ResilientAnthropicClient
from app.services.agent_runner_helpers import (
    account_tokens, done_event, has_tool_use, new_usage, process_stream_event,
    response_text, serialize_content, tool_result_block, tool_result_event,
    tool_use_blocks, unexpected_error_event, with_message_cache,
    with_system_cache, with_tools_cache,
)
from app.services.tool_dispatch import ToolDispatch

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class CompletionResult:
    """Outcome of a non-streaming run."""
    text: str
    finish_reason: str | None
    steps: list[dict]
    usage: dict
    messages: list[dict]


class AgentRunner:
    """Async tool-calling loop — streams SSE events for the booking assistant."""

    def __init__(self, anthropic_client: ResilientAnthropicClient, settings: Settings):
        self.client = anthropic_client
        self.max_tokens = settings.agent_max_tokens
        self.usage = new_usage()

    async def run(
        self, *, system: str, messages: list[dict], tools: list[dict],
        model: str, temperature: float | None, max_steps: int,
        dispatch: ToolDispatch, ctx: ErrorContext | None = None,
    ):
        """Async generator yielding SSE events with real-time streaming."""
        ctx = ctx or ErrorContext()
        try:
            async for event in self._iteration_loop(
                system, messages, tools, model, temperature, max_steps, dispatch, ctx,
            ):
                yield event
        except asyncio.CancelledError:
            logger.info("Stream cancelled (client disconnect)",
                extra={"conversation_id": ctx.conversation_id})
            raise
        except Exception as e:
            logger.error("Unexpected error in agent runner: %s", e,
                extra={"conversation_id": ctx.conversation_id}, exc_info=True)
            yield unexpected_error_event()
            yield done_event(error=True, usage=self.usage)

    async def _iteration_loop(
        self, system, messages, tools, model, temperature, max_steps, dispatch, ctx,
    ):
        """Main iteration loop — yields SSE events."""
        for step in range(max_steps):
            self._last_response = None
            async for sse in self._stream_api_call(
                system, messages, tools, model, temperature, ctx,
            ):
                yield sse
            if self._last_response is None:
                return  # error events already yielded
            response = self._last_response
            account_tokens(self.usage, response)

            if not has_tool_use(response):
                yield done_event(usage=self.usage)
                return

            messages.append({"role": "assistant", "content": serialize_content(response)})
            tool_msgs, events = await self._execute_tool_blocks(dispatch, response)
            for sse in events:
                yield sse
            messages.append({"role": "user", "content": tool_msgs})
            logger.debug("Agent step complete", extra={"step": step + 1})

        yield done_event(max_steps_reached=True, usage=self.usage)

    async def _stream_api_call(self, system, messages, tools, model, temperature, ctx):
        """Async generator: yields SSE text events, sets self._last_response."""
        try:
            text_lstrip = True
            async with self.client.stream_message(
                model=model, max_tokens=self.max_tokens,
                system=with_system_cache(system),
                tools=with_tools_cache(tools),
                messages=with_message_cache(messages),
                temperature=temperature,
                context=ctx,
            ) as stream:
                async for event in stream:
                    sse, text_lstrip = process_stream_event(event, text_lstrip)
                    if sse:
                        yield sse
                self._last_response = await stream.get_final_message()

        except OkeyoError as e:
            logger.error("Anthropic API error: %s", e.message,
                extra={"conversation_id": ctx.conversation_id, "error_code": e.code})
            yield e.to_sse_event()
            yield done_event(error=True, usage=self.usage)

    async def _execute_tool_blocks(self, dispatch, response):
        """Execute tool_use blocks. Returns (tool_result_msgs, events)."""
        tool_results = []
        sse_events = []
        for block in tool_use_blocks(response):
            result = await self._execute_tool_safe(dispatch, block.name, block.input)
            sse_events.append(tool_result_event(block.name, result))
            tool_results.append(tool_result_block(block.id, result))
        return tool_results, sse_events

    async def run_to_completion(
        self, *, system: str, messages: list[dict], tools: list[dict],
        model: str, temperature: float | None, max_steps: int,
        dispatch: ToolDispatch, ctx: ErrorContext | None = None,
    ) -> CompletionResult:
        """Non-streaming loop. Provider errors propagate as AnthropicAPIError."""
        steps: list[dict] = []
        response = None
        for index in range(max_steps):
            response = await self.client.create_message(
                model=model, max_tokens=self.max_tokens,
                system=with_system_cache(system),
                tools=with_tools_cache(tools),
                messages=with_message_cache(messages),
                temperature=temperature,
                context=ctx,
            )
            account_tokens(self.usage, response)
            messages.append({"role": "assistant", "content": serialize_content(response)})
            calls = tool_use_blocks(response)
            record = {
                "step_index": index,
                "text": response_text(response),
                "tool_calls": [
                    {"id": b.id, "name": b.name, "input": b.input} for b in calls
                ],
                "tool_results": [],
            }
            steps.append(record)
            if not calls:
                break

            tool_msgs = []
            for block in calls:
                result = await self._execute_tool_safe(dispatch, block.name, block.input)
                record["tool_results"].append(
                    {"tool_use_id": block.id, "name": block.name, "result": result},
                )
                tool_msgs.append(tool_result_block(block.id, result))
            messages.append({"role": "user", "content": tool_msgs})

        return CompletionResult(
            text=steps[-1]["text"] if steps else "",
            finish_reason=response.stop_reason if response is not None else None,
            steps=steps,
            usage=dict(self.usage),
            messages=messages,
        )

    async def _execute_tool_safe(
        self, dispatch: ToolDispatch, tool_name: str, tool_input: dict,
    ) -> dict:
        """Execute tool with error boundary — never raises."""
        try:
            return await dispatch.execute(tool_name, tool_input)
        except OkeyoError as e:
            logger.warning("Tool error: %s", e.message,
                extra={"tool_name": tool_name, "error_code": e.code})
            return e.to_tool_result()
        except Exception as e:
            logger.error("Unexpected error in tool '%s': %s",
                tool_name, e, exc_info=True)
            return {
                "success": False,
                "error": f"Internal error executing {tool_name}",
                "error_code": "TOOL_EXECUTION_ERROR",
            }
