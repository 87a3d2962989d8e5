"""Storage URL Resolution — turns stored object paths into public Supabase storage URLs.

Invariants:
    - Falsy path → None; absolute http(s) URL → returned unchanged
    - No base URL → None (relative paths are never returned as-is)
    - Every path segment is decoded then re-encoded (idempotent on already-encoded input)
    - Output always has the form {base}/storage/v1/object/public/{bucket}/{path}

Design Decisions:
    - Pure function with base_url injected: callers pass settings.supabase_url,
      tests pass literals (ADR: no settings lookup inside core/)
    - Known bucket prefixes are respected so host avatars stored as "hosts/..."
      are not re-prefixed with the default bucket
"""

import re
from urllib.parse import quote, unquote

PUBLIC_STORAGE_PREFIX = "storage/v1/object/public/"
KNOWN_BUCKETS = ("experiences", "hosts", "profiles", "media", "assets")

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def _encode_segment(segment: str) -> str:
    """Decode then percent-encode one path segment (RFC 3986 unreserved kept)."""
    if not segment:
        return segment
    return quote(unquote(segment), safe="-_.!~*'()")


def _encode_path(path: str) -> str:
    return "/".join(_encode_segment(s) for s in path.split("/"))


def resolve_storage_url(
    path: str | None, base_url: str | None, bucket: str = "experiences",
) -> str | None:
    """Resolve a stored media path to a public URL."""
    if not path:
        return None
    if _ABSOLUTE_URL.match(path):
        return path
    if not base_url:
        return None

    base = base_url.rstrip("/")
    normalized = _encode_path(path.lstrip("/"))

    if normalized.startswith(PUBLIC_STORAGE_PREFIX):
        return f"{base}/{normalized}"

    has_bucket = bool(bucket) and normalized.startswith(f"{bucket}/")
    has_known = any(
        normalized.startswith(f"{known}/") for known in KNOWN_BUCKETS
    )
    if bucket and not (has_bucket or has_known):
        normalized = f"{bucket}/{normalized}"
    return f"{base}/{PUBLIC_STORAGE_PREFIX}{normalized}"
