"""Route Tests: health probes, mock chat stream and public assistant config.

Tests cover:
    - Liveness always healthy; readiness reports DB + integration flags
    - Readiness 503 when no database manager is available
    - Mock chat streams the canned reply quoting the last message
    - Public config: cache headers and defaults without a config row
"""

import app.infrastructure.database as db_module
from app.api.routes.mock_chat import mock_reply


# -- Health ---------------------------------------------------------------------


async def test_liveness(client):
    response = await client.get("/api/v1/health/")
    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy", "service": "okeyo-api", "version": "1.0.0",
    }


async def test_readiness_with_database(client):
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ready"
    assert body["checks"] == {"database": "healthy"}
    assert body["integrations"]["storage"] is True
    assert body["integrations"]["auth"] is True


async def test_readiness_without_database(client, monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", None)
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 503
    assert response.json()["reason"] == "database_unavailable"


# -- Mock chat ------------------------------------------------------------------


async def test_mock_chat_streams_reply(client):
    response = await client.post("/api/chat", json={
        "messages": [
            {"role": "user", "content": "Bonjour"},
            {"role": "user", "content": "Un riad à Fès"},
        ],
    })
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text.endswith(" ")
    assert response.text == mock_reply("Un riad à Fès") + " "
    assert 'Vous avez dit : "Un riad à Fès"' in response.text


async def test_mock_chat_requires_messages(client):
    response = await client.post("/api/chat", json={"messages": []})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


# -- Public assistant config ----------------------------------------------------


async def test_public_config_defaults(client):
    response = await client.get("/api/ai/config/public")
    assert response.status_code == 200
    assert response.headers["cache-control"] == (
        "public, max-age=30, stale-while-revalidate=60"
    )
    body = response.json()
    assert body["version_id"] is None
    assert body["fallback_language"] == "fr"
    assert body["supported_languages"] == ["fr", "en", "ar"]
    assert set(body) == {
        "version_id", "fallback_language", "supported_languages",
        "welcome_messages", "suggested_prompts",
    }
