"""Agent Runtime Config — pure defaults and sanitizers for ai_agent_config_versions rows.

Invariants:
    - build_default_config() never touches IO; every field has a safe default
    - Sanitizers never raise: bad input degrades to the fallback value
    - temperature clamped to [0, 2]; max_steps truncated to int and clamped to [1, 8]
    - enabled_tools is always a non-empty subset of KNOWN_AGENT_TOOLS
    - welcome_messages / suggested_prompts are merged OVER defaults (languages never disappear)

Design Decisions:
    - Pure core, IO in services/agent_config_loader.py (ADR: functional core, imperative shell)
    - Version rows arrive as plain mappings (ORM row → dict) so admin-edited JSON can be
      arbitrarily malformed and still produce a usable config
    - Booleans are rejected as numbers even though bool subclasses int in Python
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from app.core.domain_types import KNOWN_AGENT_TOOLS


DEFAULT_TEMPERATURE = 0.4
DEFAULT_MAX_STEPS = 3
DEFAULT_FALLBACK_LANGUAGE = "fr"
DEFAULT_SUPPORTED_LANGUAGES: tuple[str, ...] = ("fr", "en", "ar")

DEFAULT_WELCOME_MESSAGES: dict[str, dict[str, str]] = {
    "fr": {
        "title": "Bonjour, je suis votre Assistant Voyage",
        "description": (
            "Je peux vous aider à planifier votre séjour au Maroc, trouver des "
            "hébergements uniques et réserver des expériences inoubliables."
        ),
    },
    "en": {
        "title": "Hi, I am your Travel Assistant",
        "description": (
            "I can help you plan your trip in Morocco, find unique stays, and "
            "book unforgettable experiences."
        ),
    },
    "ar": {
        "title": "مرحبا، أنا مساعد السفر الخاص بك",
        "description": (
            "يمكنني مساعدتك في تخطيط رحلتك في المغرب والعثور على إقامات مميزة "
            "وحجز تجارب لا تنسى."
        ),
    },
}

DEFAULT_SUGGESTED_PROMPTS: dict[str, list[str]] = {
    "fr": [
        "Je cherche un riad romantique à Marrakech pour ce weekend.",
        "Propose-moi une randonnée de 2 jours dans l'Atlas.",
        "Quelles sont les meilleures activités culturelles à Fès ?",
        "Montre-moi les offres de dernière minute pour Agadir.",
    ],
    "en": [
        "I am looking for a romantic riad in Marrakech this weekend.",
        "Suggest a 2-day hike in the Atlas.",
        "What are the best cultural activities in Fes?",
        "Show me last-minute offers for Agadir.",
    ],
    "ar": [
        "أبحث عن رياض رومانسي في مراكش نهاية هذا الأسبوع.",
        "اقترح علي رحلة مشي لمدة يومين في الأطلس.",
        "ما أفضل الأنشطة الثقافية في فاس؟",
        "اعرض لي عروض اللحظة الأخيرة في أكادير.",
    ],
}


@dataclass(frozen=True)
class AgentRuntimeConfig:
    """Effective assistant configuration for one request."""
    model: str
    config_id: str | None = None
    version_id: str | None = None
    temperature: float = DEFAULT_TEMPERATURE
    max_steps: int = DEFAULT_MAX_STEPS
    enabled_tools: tuple[str, ...] = KNOWN_AGENT_TOOLS
    system_prompt_template: str | None = None
    system_prompt_variables: dict[str, Any] = field(default_factory=dict)
    behavior_rules: dict[str, Any] = field(default_factory=dict)
    guardrails: dict[str, Any] = field(default_factory=dict)
    fallback_language: str = DEFAULT_FALLBACK_LANGUAGE
    supported_languages: tuple[str, ...] = DEFAULT_SUPPORTED_LANGUAGES
    welcome_messages: dict[str, dict[str, str]] = field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_WELCOME_MESSAGES.items()},
    )
    suggested_prompts: dict[str, list[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_SUGGESTED_PROMPTS.items()},
    )

    def public_payload(self) -> dict:
        """Subset safe to expose to anonymous clients."""
        return {
            "version_id": self.version_id,
            "fallback_language": self.fallback_language,
            "supported_languages": list(self.supported_languages),
            "welcome_messages": self.welcome_messages,
            "suggested_prompts": self.suggested_prompts,
        }


def build_default_config(
    model: str,
    temperature: float = DEFAULT_TEMPERATURE,
    max_steps: int = DEFAULT_MAX_STEPS,
) -> AgentRuntimeConfig:
    return AgentRuntimeConfig(
        model=model, temperature=temperature, max_steps=max_steps,
    )


# -- Sanitizers ----------------------------------------------------------------

def sanitize_string_list(
    value: Any, fallback: tuple[str, ...] | list[str] = (),
) -> list[str]:
    """Trim, drop blanks/non-strings, dedupe (first wins). Empty → fallback."""
    if not isinstance(value, list):
        return list(fallback)
    out: list[str] = []
    seen: set[str] = set()
    for item in value:
        if not isinstance(item, str):
            continue
        trimmed = item.strip()
        if not trimmed or trimmed in seen:
            continue
        seen.add(trimmed)
        out.append(trimmed)
    return out if out else list(fallback)


def sanitize_tool_list(value: Any) -> tuple[str, ...]:
    """Keep known tool names only; nothing usable → every tool."""
    if not isinstance(value, list):
        return KNOWN_AGENT_TOOLS
    allowed = set(KNOWN_AGENT_TOOLS)
    selected = [t for t in sanitize_string_list(value) if t in allowed]
    return tuple(selected) if selected else KNOWN_AGENT_TOOLS


def sanitize_number(
    value: Any,
    fallback: float,
    minimum: float | None = None,
    maximum: float | None = None,
    integer: bool = False,
) -> float:
    """Accept numbers or numeric strings; clamp into [minimum, maximum]."""
    if isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        numeric = float(value)
    elif isinstance(value, str):
        try:
            numeric = float(value.strip())
        except ValueError:
            return fallback
    else:
        return fallback
    if not math.isfinite(numeric):
        return fallback
    if integer:
        numeric = float(math.trunc(numeric))
    if minimum is not None:
        numeric = max(minimum, numeric)
    if maximum is not None:
        numeric = min(maximum, numeric)
    return numeric


def sanitize_mapping(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def sanitize_welcome_messages(value: Any) -> dict[str, dict[str, str]]:
    """Per-language {title, description}; missing half inherits the default."""
    merged = {k: dict(v) for k, v in DEFAULT_WELCOME_MESSAGES.items()}
    if not isinstance(value, Mapping):
        return merged
    for language, entry in value.items():
        if not isinstance(entry, Mapping):
            continue
        current = merged.get(language, {})
        title = _non_blank(entry.get("title")) or current.get("title", "")
        description = (
            _non_blank(entry.get("description")) or current.get("description", "")
        )
        if not title or not description:
            continue
        merged[language] = {"title": title, "description": description}
    return merged


def sanitize_suggested_prompts(value: Any) -> dict[str, list[str]]:
    merged = {k: list(v) for k, v in DEFAULT_SUGGESTED_PROMPTS.items()}
    if not isinstance(value, Mapping):
        return merged
    for language, prompts in value.items():
        cleaned = sanitize_string_list(prompts)
        if cleaned:
            merged[language] = cleaned
    return merged


def _non_blank(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


# -- Row → config --------------------------------------------------------------

def build_runtime_config(
    row: Mapping[str, Any], fallback: AgentRuntimeConfig, config_id: str | None,
) -> AgentRuntimeConfig:
    """Sanitize one ai_agent_config_versions row over the fallback config."""
    version_id = row.get("id")
    model = row.get("model")
    template = row.get("system_prompt")
    return replace(
        fallback,
        config_id=config_id,
        version_id=str(version_id) if version_id is not None else None,
        model=model if isinstance(model, str) and model.strip() else fallback.model,
        temperature=sanitize_number(
            row.get("temperature"), fallback.temperature, minimum=0, maximum=2,
        ),
        max_steps=int(sanitize_number(
            row.get("max_steps"), fallback.max_steps,
            minimum=1, maximum=8, integer=True,
        )),
        enabled_tools=sanitize_tool_list(row.get("enabled_tools")),
        system_prompt_template=(
            template if isinstance(template, str) and template.strip() else None
        ),
        system_prompt_variables=sanitize_mapping(row.get("system_prompt_variables")),
        behavior_rules=sanitize_mapping(row.get("behavior_rules")),
        guardrails=sanitize_mapping(row.get("guardrails")),
        fallback_language=(
            _non_blank(row.get("fallback_language")) or fallback.fallback_language
        ),
        supported_languages=tuple(sanitize_string_list(
            row.get("supported_languages"), fallback.supported_languages,
        )),
        welcome_messages=sanitize_welcome_messages(row.get("welcome_messages")),
        suggested_prompts=sanitize_suggested_prompts(row.get("suggested_prompts")),
    )
