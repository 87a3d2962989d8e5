"""Auth — verifies Supabase access tokens presented as `Authorization: Bearer`.

Invariants:
    - No header → anonymous (None); routes decide whether anonymous is allowed
    - Bad signature, unsupported alg, expired token or non-UUID `sub` → 401
    - Missing SUPABASE_JWT_SECRET with a token present → ConfigurationError (500)

Design Decisions:
    - HS256 verified with hmac + constant-time compare: Supabase signs access
      tokens with the project JWT secret, nothing else is needed
"""

import base64
import hashlib
import hmac
import json
import time
import uuid

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import Settings, get_settings
from app.core.errors import AuthenticationRequiredError, ConfigurationError

security = HTTPBearer(auto_error=False)


def _b64_url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def decode_access_token(token: str, secret: str, now: float | None = None) -> dict | None:
    """Verified payload of an HS256 token, or None."""
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    try:
        header = json.loads(_b64_url_decode(header_b64))
        if not isinstance(header, dict) or header.get("alg") != "HS256":
            return None
        expected = hmac.new(
            secret.encode("utf-8"),
            f"{header_b64}.{payload_b64}".encode("utf-8"),
            hashlib.sha256,
        ).digest()
        if not hmac.compare_digest(expected, _b64_url_decode(signature_b64)):
            return None
        payload = json.loads(_b64_url_decode(payload_b64))
        if not isinstance(payload, dict):
            return None
        exp = payload.get("exp")
        if exp is not None and int(exp) < int(now if now is not None else time.time()):
            return None
    except (ValueError, TypeError):
        return None
    return payload


async def get_optional_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> uuid.UUID | None:
    """Authenticated user id, or None for anonymous callers."""
    if credentials is None:
        return None
    if not settings.supabase_jwt_secret:
        raise ConfigurationError("supabase_jwt_secret")
    payload = decode_access_token(credentials.credentials, settings.supabase_jwt_secret)
    if payload is None:
        raise AuthenticationRequiredError("Invalid or expired token")
    try:
        return uuid.UUID(str(payload.get("sub")))
    except ValueError as e:
        raise AuthenticationRequiredError("Invalid or expired token") from e
