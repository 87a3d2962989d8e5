"""Agent System Prompt — built-in behavioral contract for the booking assistant.

Invariants:
    - build_system_prompt(today) always ends with the current-date section
    - Used whenever the active config version has no system_prompt template
    - Catalog context and user location are appended by the caller, never here

Design Decisions:
    - Sections live in system_prompt_sections.py; this module only assembles
    - Today's date injected so the model resolves "ce weekend" / "demain" itself
"""

from datetime import date

from app.services import system_prompt_sections as _s


_SECTIONS = (
    _s.IDENTITY,
    _s.PLATFORM_CONTEXT,
    _s.CAPABILITIES,
    _s.PROMOTIONS,
    _s.DISTANCE,
    _s.RESPONSE_GUIDELINES,
    _s.BOOKING_PROCESS,
    _s.ERROR_HANDLING,
    _s.EXAMPLES,
    _s.CLOSING,
)

SYSTEM_PROMPT = "\n\n".join(_SECTIONS)


def build_system_prompt(today: date | str) -> str:
    """Static prompt + today's date (YYYY-MM-DD)."""
    today_str = today.isoformat() if isinstance(today, date) else today
    return (
        f"{SYSTEM_PROMPT}\n\n## Current Date\n"
        f"Today is {today_str}. Resolve relative dates (\"ce weekend\", "
        f"\"demain\", \"next month\") from this date and always pass dates "
        f"to tools as YYYY-MM-DD."
    )
