"""Chat Messages — normalization of client UI messages into provider messages.

Invariants:
    - dedupe_messages drops non-objects, repeated ids, and ADJACENT duplicate
      role|content|parts signatures (non-adjacent repeats are kept)
    - to_anthropic_messages output alternates roles and starts with "user"
    - Only user/assistant roles with non-blank text reach the provider
    - sanitize_message_parts never returns an empty list (None instead)

Design Decisions:
    - UI messages carry either `content` (string) or `parts` (typed list); both are
      accepted since clients rehydrating history send the persisted shape
    - Tool-call parts are not replayed: the model re-queries tools when needed,
      which keeps prices and availability fresh across turns
"""

import json
from typing import Any

_PROVIDER_ROLES = ("user", "assistant")
TITLE_LIMIT = 80


def _signature(message: dict) -> str:
    role = message.get("role") if isinstance(message.get("role"), str) else ""
    content = message.get("content")
    content = content.strip() if isinstance(content, str) else ""
    parts = message.get("parts")
    parts_sig = (
        json.dumps(parts, sort_keys=True, ensure_ascii=False)
        if isinstance(parts, list) and parts else ""
    )
    return f"{role}|{content}|{parts_sig}"


def dedupe_messages(raw_messages: Any) -> list[dict]:
    """Drop client rehydration duplicates."""
    if not isinstance(raw_messages, list):
        return []
    deduped: list[dict] = []
    seen_ids: set[str] = set()
    previous = None
    for message in raw_messages:
        if not isinstance(message, dict):
            continue
        message_id = message.get("id") if isinstance(message.get("id"), str) else None
        if message_id and message_id in seen_ids:
            continue
        signature = _signature(message)
        if signature == previous:
            continue
        previous = signature
        if message_id:
            seen_ids.add(message_id)
        deduped.append(message)
    return deduped


def extract_text_from_parts(parts: Any) -> str:
    if not isinstance(parts, list):
        return ""
    texts = [
        p["text"] for p in parts
        if isinstance(p, dict) and p.get("type") == "text"
        and isinstance(p.get("text"), str) and p["text"].strip()
    ]
    return "\n".join(texts).strip()


def message_text(message: dict) -> str:
    content = message.get("content")
    if isinstance(content, str) and content.strip():
        return content.strip()
    return extract_text_from_parts(message.get("parts"))


def to_anthropic_messages(messages: list[dict]) -> list[dict]:
    """UI messages → Anthropic Messages API turns (merged, user-first)."""
    turns: list[dict] = []
    for message in messages:
        role = message.get("role")
        if role not in _PROVIDER_ROLES:
            continue
        text = message_text(message)
        if not text:
            continue
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"] += "\n\n" + text
            continue
        turns.append({"role": role, "content": text})

    while turns and turns[0]["role"] != "user":
        turns.pop(0)
    return turns


def _is_streaming_state(part: dict) -> bool:
    state = part.get("state")
    return isinstance(state, str) and "stream" in state


def sanitize_message_parts(parts: Any) -> list[dict] | None:
    """Drop step markers, in-flight parts and blank text before persisting."""
    if not isinstance(parts, list):
        return None
    kept: list[dict] = []
    for part in parts:
        if not isinstance(part, dict):
            continue
        if part.get("type") == "step-start" or _is_streaming_state(part):
            continue
        if part.get("type") == "text":
            text = part.get("text")
            if not isinstance(text, str) or not text.strip():
                continue
        kept.append(part)
    return kept or None


def persisted_content(content: Any, parts: list[dict] | None) -> str | None:
    """Trimmed content, else joined text parts, else None."""
    if isinstance(content, str) and content.strip():
        return content.strip()
    return extract_text_from_parts(parts) or None


def conversation_title(text: str, limit: int = TITLE_LIMIT) -> str:
    """Single-line title from a first user message."""
    collapsed = " ".join(text.split())
    if len(collapsed) <= limit:
        return collapsed
    return collapsed[: limit - 1].rstrip() + "…"
