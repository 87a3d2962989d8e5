"""Tests for bearer-token verification (api/auth.py).

Tests cover:
    - decode_access_token: valid, tampered, wrong secret, expired, unsupported alg
    - Routes: no header → anonymous, bad token → 401 envelope
"""

import time
import uuid

from app.api.auth import decode_access_token

from tests.services.access_tokens import TEST_JWT_SECRET, bearer, make_token


# -- decode_access_token --------------------------------------------------------


def test_valid_token_returns_payload():
    user = str(uuid.uuid4())
    payload = decode_access_token(make_token(user), TEST_JWT_SECRET)
    assert payload["sub"] == user


def test_wrong_secret_rejected():
    assert decode_access_token(make_token("u", secret="other"), TEST_JWT_SECRET) is None


def test_tampered_payload_rejected():
    header, _, signature = make_token("u").split(".")
    forged = make_token("admin").split(".")[1]
    assert decode_access_token(f"{header}.{forged}.{signature}", TEST_JWT_SECRET) is None


def test_expired_token_rejected():
    token = make_token("u", expires_in=-10)
    assert decode_access_token(token, TEST_JWT_SECRET) is None


def test_expiry_checked_against_given_clock():
    token = make_token("u", expires_in=60)
    assert decode_access_token(token, TEST_JWT_SECRET, now=time.time() + 120) is None


def test_unsupported_algorithm_rejected():
    assert decode_access_token(make_token("u", alg="none"), TEST_JWT_SECRET) is None


def test_garbage_rejected():
    assert decode_access_token("not-a-token", TEST_JWT_SECRET) is None
    assert decode_access_token("a.b.c", TEST_JWT_SECRET) is None


# -- Route integration ----------------------------------------------------------


async def test_invalid_token_is_401(client):
    response = await client.get(
        "/api/conversations", headers={"Authorization": "Bearer a.b.c"},
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"


async def test_non_uuid_subject_is_401(client):
    response = await client.get("/api/conversations", headers=bearer("service-role"))
    assert response.status_code == 401


async def test_no_header_is_anonymous(client):
    response = await client.get("/api/conversations")
    assert response.status_code == 200
    assert response.json() == {"conversations": []}
