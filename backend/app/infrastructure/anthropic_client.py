"""Resilient Anthropic Client — wraps AsyncAnthropic with retry, backoff, and error mapping.

Invariants:
    - classify_error() is the only place SDK exceptions are interpreted
    - Retryable: rate limits (429), 5xx, 529 overloaded, connection failures
    - Not retryable: timeouts and other 4xx, which fail on the first attempt
    - Retry-After (seconds) wins over computed backoff when present
    - Every failure surfaces as AnthropicAPIError (core/errors.py)

Design Decisions:
    - Wrapper over raw client: isolates retry logic from agent_runner (ADR: single responsibility)
    - ±25% jitter on backoff: prevents thundering herd on shared rate limits
    - Streaming is never retried: partial text may already be on the wire to the guest
    - SDK retries disabled (max_retries=0) so attempts are counted and logged here
"""

import asyncio
import random
import logging
from collections.abc import Iterable
from contextlib import asynccontextmanager
from typing import Union

import anthropic
from anthropic import (
    APIError,
    APIConnectionError,
    APIStatusError,
    RateLimitError,
    APITimeoutError,
    InternalServerError,
)
from anthropic.types import TextBlockParam

from app.core.errors import AnthropicAPIError, ErrorContext

logger = logging.getLogger(__name__)

SystemParam = Union[str, Iterable[TextBlockParam]]

# ADR: OverloadedError (HTTP 529) is not re-exported by every SDK release.
# Detect via status code on APIStatusError instead of relying on private import.
_OVERLOADED_STATUS = 529


def classify_error(e: APIError) -> tuple[str, bool]:
    """SDK error → (api_error_type, retryable)."""
    if isinstance(e, RateLimitError):
        return "rate_limit", True
    # APITimeoutError subclasses APIConnectionError: check it first
    if isinstance(e, APITimeoutError):
        return "timeout", False
    if isinstance(e, (APIConnectionError, InternalServerError)):
        return "connection_error", True
    if isinstance(e, APIStatusError) and e.status_code == _OVERLOADED_STATUS:
        return "overloaded", True
    return "client_error", False


def retry_after_ms(e: APIError) -> int | None:
    """Retry-After header in milliseconds, if the response carried one."""
    response = getattr(e, "response", None)
    if response is None:
        return None
    val = response.headers.get("retry-after")
    if not val:
        return None
    try:
        return int(float(val) * 1000)
    except ValueError:
        return None


class ResilientAnthropicClient:
    """Wraps Anthropic client with retry logic, timeouts, and error mapping."""

    def __init__(
        self,
        api_key: str,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: int = 60,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def create_message(
        self,
        *,
        model: str,
        max_tokens: int,
        system: SystemParam,
        tools: list,
        messages: list,
        temperature: float | None = None,
        context: ErrorContext | None = None,
    ):
        """Create message, retrying transient failures with backoff.

        Supports prompt caching: system/tools/messages may include
        cache_control blocks per Anthropic's caching API.
        """
        kwargs = _request_kwargs(
            model=model, max_tokens=max_tokens, system=system,
            tools=tools, messages=messages, temperature=temperature,
        )
        attempt = 0
        while True:
            try:
                response = await self.client.messages.create(**kwargs)
            except APIError as e:
                error_type, retryable = classify_error(e)
                wait_ms = retry_after_ms(e)
                if not retryable or attempt >= self.max_retries:
                    message = (
                        f"failed after {attempt + 1} attempts: {e}" if retryable else str(e)
                    )
                    raise AnthropicAPIError(
                        message, error_type, retry_after_ms=wait_ms, context=context,
                    )
                delay = wait_ms or self._backoff(attempt)
                logger.warning(
                    "Anthropic %s, retrying in %dms", error_type, delay,
                    extra={"attempt": attempt + 1, "error_code": error_type},
                )
                await asyncio.sleep(delay / 1000)
                attempt += 1
                continue

            _log_usage(response, attempt)
            return response

    @asynccontextmanager
    async def stream_message(
        self,
        *,
        model: str,
        max_tokens: int,
        system: SystemParam,
        tools: list,
        messages: list,
        temperature: float | None = None,
        context: ErrorContext | None = None,
    ):
        """Stream message with SDK error → AnthropicAPIError mapping.

        Errors raised from the caller's `async for` propagate through the
        yield, so mid-stream failures are mapped too. CancelledError
        (BaseException) passes through uncaught.
        """
        kwargs = _request_kwargs(
            model=model, max_tokens=max_tokens, system=system,
            tools=tools, messages=messages, temperature=temperature,
        )
        try:
            async with self.client.messages.stream(**kwargs) as stream:
                yield stream
        except APIError as e:
            error_type, _ = classify_error(e)
            raise AnthropicAPIError(
                f"stream failed: {e}", error_type,
                retry_after_ms=retry_after_ms(e), context=context,
            )

    async def close(self) -> None:
        await self.client.close()

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311


def _request_kwargs(*, model, max_tokens, system, tools, messages, temperature) -> dict:
    kwargs = {
        "model": model,
        "max_tokens": max_tokens,
        "system": system,
        "messages": messages,
    }
    if tools:
        kwargs["tools"] = tools
    if temperature is not None:
        kwargs["temperature"] = temperature
    return kwargs


def _log_usage(response, attempt: int) -> None:
    usage = response.usage
    logger.info(
        "Anthropic API success",
        extra={
            "attempt": attempt + 1,
            "input_tokens": usage.input_tokens,
            "output_tokens": usage.output_tokens,
            "cache_read_input_tokens": getattr(usage, "cache_read_input_tokens", 0),
            "cache_creation_input_tokens": getattr(usage, "cache_creation_input_tokens", 0),
        },
    )
