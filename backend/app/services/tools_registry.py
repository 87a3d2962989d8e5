"""Tools Registry — flat list and per-config filtering of assistant tools.

Invariants:
    - ALL_TOOLS follows KNOWN_AGENT_TOOLS order
    - get_enabled_tools([]) returns every tool
    - Unknown names in enabled_tools are ignored, never an error

Design Decisions:
    - Config-scoped tools: an agent config can expose a subset to the model
    - Explicit imports from each define_*_tools.py: no auto-discovery
"""

from app.core.domain_types import KNOWN_AGENT_TOOLS
from app.services.define_booking_tools import TOOLS_BOOKING
from app.services.define_discovery_tools import TOOLS_DISCOVERY

_BY_NAME = {tool["name"]: tool for tool in (*TOOLS_DISCOVERY, *TOOLS_BOOKING)}

ALL_TOOLS: list[dict] = [_BY_NAME[name] for name in KNOWN_AGENT_TOOLS]


def get_enabled_tools(enabled: list[str] | None) -> list[dict]:
    """Tools allowed by an agent config, in registry order."""
    if not enabled:
        return list(ALL_TOOLS)
    allowed = set(enabled)
    return [tool for tool in ALL_TOOLS if tool["name"] in allowed]
