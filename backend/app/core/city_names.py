"""City Names — spelling variants, canonical names and slugs for Moroccan locations.

Invariants:
    - normalize_city returns the capitalized canonical name, or the trimmed input
    - city_variants always returns at least one (lower-cased) spelling
    - unique_strings dedupes case-insensitively and keeps the first spelling seen
    - to_city_slug is ASCII-only: accents stripped, apostrophes removed, runs of
      non-alphanumerics collapsed to "-"

Design Decisions:
    - Static variant table: the catalog is small and hosts misspell city names
      in free text; a fuzzy matcher would match unrelated towns
"""

import re
import unicodedata
from collections.abc import Iterable

CITY_VARIANTS: dict[str, tuple[str, ...]] = {
    "marrakech": ("marrakech", "marakech", "marrekch", "marrakesh", "marrakeche"),
    "casablanca": ("casablanca", "casa"),
    "chefchaouen": ("chefchaouen", "chefchaoun", "chaouen"),
    "fès": ("fès", "fes", "fez"),
    "tangier": ("tangier", "tanger", "tanja"),
    "rabat": ("rabat",),
    "agadir": ("agadir",),
    "essaouira": ("essaouira", "souira"),
}

MAX_LOCATION_CANDIDATES = 12

_APOSTROPHES = re.compile(r"[’']")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_city(city: str) -> str:
    lower = city.strip().lower()
    for canonical, variants in CITY_VARIANTS.items():
        if lower in variants:
            return canonical[:1].upper() + canonical[1:]
    return city.strip()


def city_variants(city: str) -> list[str]:
    lower = city.strip().lower()
    for variants in CITY_VARIANTS.values():
        if lower in variants:
            return list(variants)
    return [lower]


def unique_strings(values: Iterable[str | None]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        if not value:
            continue
        trimmed = value.strip()
        if not trimmed:
            continue
        key = trimmed.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(trimmed)
    return out


def to_city_slug(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    slug = _APOSTROPHES.sub("", stripped.lower().strip())
    slug = _NON_ALNUM.sub("-", slug)
    return slug.strip("-")


def location_candidates(city: str | None, region: str | None) -> list[str]:
    """Input location + canonical name + known variants, deduped, capped."""
    inputs = unique_strings([city, region])
    expanded: list[str] = []
    for location in inputs:
        expanded.append(location)
        expanded.append(normalize_city(location))
        expanded.extend(city_variants(location))
    return unique_strings(expanded)[:MAX_LOCATION_CANDIDATES]


def slug_candidates(candidates: Iterable[str]) -> list[str]:
    return unique_strings(to_city_slug(c) for c in candidates)[:MAX_LOCATION_CANDIDATES]
