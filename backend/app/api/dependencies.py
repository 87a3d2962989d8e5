"""Shared route dependencies — the process-wide Anthropic client.

Design Decisions:
    - Singleton client: AsyncAnthropic is stateless and connection-pool-safe, so
      one instance serves every stream (ADR: amortize pool setup + TLS handshake)
    - Exposed as a FastAPI dependency so tests override it with a scripted client
"""

from app.config import get_settings
from app.infrastructure.anthropic_client import ResilientAnthropicClient

_anthropic_client: ResilientAnthropicClient | None = None


def get_anthropic_client() -> ResilientAnthropicClient:
    global _anthropic_client
    if _anthropic_client is None:
        settings = get_settings()
        _anthropic_client = ResilientAnthropicClient(
            api_key=settings.anthropic_api_key,
            max_retries=settings.anthropic_max_retries,
            base_delay_ms=settings.anthropic_base_delay_ms,
            max_delay_ms=settings.anthropic_max_delay_ms,
            timeout_seconds=settings.anthropic_timeout_seconds,
        )
    return _anthropic_client


async def close_anthropic_client() -> None:
    global _anthropic_client
    if _anthropic_client is not None:
        await _anthropic_client.close()
        _anthropic_client = None
