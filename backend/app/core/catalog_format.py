"""Catalog Format — renders the full published catalog as a markdown prompt section.

Invariants:
    - Empty catalog → EMPTY_CATALOG (the model must not invent experiences)
    - One "###" block per experience, in the order given (type, then city)
    - At most MAX_UPCOMING departures/sessions per experience
    - Room descriptions truncated to ROOM_DESCRIPTION_LIMIT characters
    - Prices rendered as MAD (cents / 100); unknown values rendered as "?"

Design Decisions:
    - Labels stay in French: the catalog is authored in French and the model
      answers in the guest's language anyway
    - Pure formatter over plain dataclasses: the shell gathers rows, core renders
"""

from dataclasses import dataclass, field
from typing import Any

from app.core.dates import format_fr_date
from app.core.domain_types import ExperienceType

EMPTY_CATALOG = "\n\n## Catalog: No experiences currently available."
MAX_UPCOMING = 3
ROOM_DESCRIPTION_LIMIT = 150

USAGE_GUIDANCE = (
    "## How to Use This Catalog",
    "- You KNOW every experience. Use this knowledge to make smart recommendations.",
    "- When searching, use the experience IDs and exact city/region names from above.",
    '- "Imlil", "Ouirgane", "Lala Takerkousst" are REGIONS under city "Marrakech".',
    "- You can discuss specific room types, prices, capacities, and equipments from memory.",
    "- If a location is NOT in the catalog, be honest and suggest what you DO have.",
)


@dataclass
class CatalogEntry:
    """Everything the prompt needs to know about one experience."""
    experience: Any
    host_name: str | None = None
    amenities: list[str] = field(default_factory=list)
    rooms: list[Any] = field(default_factory=list)
    trip: Any = None
    departures: list[Any] = field(default_factory=list)
    sessions: list[Any] = field(default_factory=list)


def format_mad(cents: int | None) -> str:
    if not cents:
        return "?"
    amount = cents / 100
    return str(int(amount)) if amount.is_integer() else str(amount)


def _or_unknown(value: Any) -> Any:
    return value if value else "?"


def _slots(slots: list[Any], start_attr: str, avail_attr: str, total_attr: str) -> str:
    return ", ".join(
        f"{format_fr_date(getattr(s, start_attr))} "
        f"({getattr(s, avail_attr)}/{getattr(s, total_attr)} places)"
        for s in slots[:MAX_UPCOMING]
    )


def _lodging_lines(entry: CatalogEntry) -> list[str]:
    if not entry.rooms:
        return ["- **Chambres:** Aucune chambre configurée"]
    lines = [f"- **Chambres ({len(entry.rooms)} types):**"]
    for room in entry.rooms:
        equipments = room.equipments if isinstance(room.equipments, list) else []
        equip = (
            f" | Équipements: {', '.join(str(e) for e in equipments)}" if equipments else ""
        )
        lines.append(
            f"  - **{room.name or room.room_type}**: {format_mad(room.price_cents)} MAD/nuit, "
            f"{_or_unknown(room.capacity_beds)} lits, "
            f"max {_or_unknown(room.max_persons)} pers.{equip}"
        )
        if room.description:
            lines.append(f"    {room.description.strip()[:ROOM_DESCRIPTION_LIMIT]}")
    return lines


def _trip_lines(entry: CatalogEntry) -> list[str]:
    lines: list[str] = []
    if entry.trip is not None:
        lines.append(f"- **Prix:** {format_mad(entry.trip.price_cents)} MAD/personne")
        if entry.trip.duration_days:
            lines.append(f"- **Durée:** {entry.trip.duration_days} jour(s)")
    if entry.departures:
        lines.append(
            "- **Prochains départs:** "
            + _slots(entry.departures, "depart_at", "seats_available", "seats_total")
        )
    return lines


def _activity_lines(entry: CatalogEntry) -> list[str]:
    lines: list[str] = []
    # activities are priced through experiences_trip as well
    if entry.trip is not None:
        lines.append(f"- **Prix:** {format_mad(entry.trip.price_cents)} MAD/personne")
        if entry.trip.duration_hours:
            hours = entry.trip.duration_hours
            hours = int(hours) if float(hours).is_integer() else hours
            lines.append(f"- **Durée:** {hours} heure(s)")
    if entry.sessions:
        lines.append(
            "- **Prochaines sessions:** "
            + _slots(entry.sessions, "start_at", "capacity_available", "capacity_total")
        )
    return lines


def format_catalog(entries: list[CatalogEntry]) -> str:
    if not entries:
        return EMPTY_CATALOG

    lines = [
        "\n\n## FULL CATALOG — You know EVERY experience by heart",
        f"Total: **{len(entries)} published experiences**. "
        "You have complete knowledge of each one.\n",
    ]
    for entry in entries:
        exp = entry.experience
        city = (exp.city or "").strip()
        region = (exp.region or "").strip()
        location = f"{city}, {region}" if region else city

        lines.append(f"### {exp.title.strip()}")
        lines.append(f"- **ID:** {exp.id}")
        lines.append(f"- **Type:** {exp.type}")
        lines.append(f"- **Location:** {location}")
        if entry.host_name:
            lines.append(f"- **Host:** {entry.host_name}")
        if exp.avg_rating:
            lines.append(f"- **Rating:** {exp.avg_rating}/5 ({exp.reviews_count or 0} avis)")
        if exp.short_description:
            lines.append(f"- **Description:** {exp.short_description.strip()}")
        if entry.amenities:
            lines.append(f"- **Équipements:** {', '.join(entry.amenities)}")

        if exp.type == ExperienceType.LODGING.value:
            lines.extend(_lodging_lines(entry))
        elif exp.type == ExperienceType.TRIP.value:
            lines.extend(_trip_lines(entry))
        elif exp.type == ExperienceType.ACTIVITY.value:
            lines.extend(_activity_lines(entry))
        lines.append("")

    lines.extend(USAGE_GUIDANCE)
    return "\n".join(lines)
