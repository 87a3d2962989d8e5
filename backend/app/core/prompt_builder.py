"""Prompt Builder — renders admin-authored prompt templates and appends request context.

Invariants:
    - build_agent_prompt_from_config returns None for a blank template (caller falls back)
    - Placeholder lookup order: exact key → lower-case → upper-case → left untouched
    - Version variables override runtime variables of the same name
    - Catalog context replaces every {{CATALOG_CONTEXT}} or is appended once

Design Decisions:
    - Single regex pass (re.sub with a callback): substituted values are never re-scanned,
      so a variable containing "{{X}}" cannot trigger a second expansion
    - Non-string variables rendered as JSON (dicts/lists) or str() (numbers/bools)
"""

import json
import re
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from app.core.agent_config import AgentRuntimeConfig

CATALOG_PLACEHOLDER = "{{CATALOG_CONTEXT}}"
_PLACEHOLDER = re.compile(r"{{\s*([a-zA-Z0-9_]+)\s*}}")


def stringify_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        return ""


def _format_rules(rules: Mapping[str, Any], empty: str) -> str:
    entries = [(k, v) for k, v in rules.items() if v is not None]
    if not entries:
        return empty
    return "\n".join(f"- {k}: {stringify_value(v)}" for k, v in entries)


def format_behavior_rules(rules: Mapping[str, Any]) -> str:
    return _format_rules(rules, "No additional behavior overrides.")


def format_guardrails(rules: Mapping[str, Any]) -> str:
    return _format_rules(rules, "No additional guardrails.")


def replace_template_variables(template: str, variables: Mapping[str, str]) -> str:
    """Substitute {{ NAME }} placeholders; unknown names are kept verbatim."""
    def _sub(match: re.Match) -> str:
        key = match.group(1)
        for candidate in (key, key.lower(), key.upper()):
            if candidate in variables:
                return variables[candidate]
        return match.group(0)

    return _PLACEHOLDER.sub(_sub, template)


def build_agent_prompt_from_config(
    config: AgentRuntimeConfig, today: date | str, enabled_tools: Iterable[str],
) -> str | None:
    """Render the version's template, or None when it has none."""
    template = config.system_prompt_template
    if not template or not template.strip():
        return None

    today_str = today.isoformat() if isinstance(today, date) else today
    variables: dict[str, str] = {
        "TODAY_DATE": today_str,
        "AVAILABLE_TOOLS": "\n".join(f"- {t}" for t in enabled_tools),
        "BEHAVIOR_RULES": format_behavior_rules(config.behavior_rules),
        "GUARDRAILS": format_guardrails(config.guardrails),
        "FALLBACK_LANGUAGE": config.fallback_language,
        "SUPPORTED_LANGUAGES": ", ".join(config.supported_languages),
    }
    for key, value in config.system_prompt_variables.items():
        variables[str(key)] = stringify_value(value)

    return replace_template_variables(template, variables)


def attach_catalog_context(prompt: str, catalog_context: str) -> str:
    if CATALOG_PLACEHOLDER in prompt:
        return prompt.replace(CATALOG_PLACEHOLDER, catalog_context)
    return prompt + catalog_context


def attach_user_location(prompt: str, location: Mapping[str, Any] | None) -> str:
    """Append coordinates so the model skips requestUserLocation."""
    if not location:
        return prompt
    lat, lng = location.get("lat"), location.get("lng")
    if lat is None or lng is None:
        return prompt
    return (
        f"{prompt}\n\n## Current User Location\nLatitude: {lat}\nLongitude: {lng}"
        "\n\nUse these coordinates for distance-based searches without asking "
        "for location again."
    )
