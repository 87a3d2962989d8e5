"""Route Tests: /api/conversations — persisted assistant chat history.

Tests cover:
    - Create anonymous and signed-in conversations
    - Listing: by user, by anonymous client id, nothing without either, archived hidden
    - Get with messages in creation order; other users get 404
    - Save message: title + first_message from the first user message, parts sanitized
    - Conversation.messages never lazy-loads: history is read through the route query
    - Delete archives the conversation
"""

import uuid

import pytest
from sqlalchemy.exc import InvalidRequestError

from app.models.conversation import AIConversation
from tests.services.access_tokens import bearer


async def _create(client, headers=None, **body):
    response = await client.post("/api/conversations", json=body, headers=headers or {})
    assert response.status_code == 200
    return response.json()["conversation"]["id"]


async def _save(client, conversation_id, message, headers=None):
    return await client.post(
        f"/api/conversations/{conversation_id}/messages",
        json={"message": message},
        headers=headers or {},
    )


# -- Create + list --------------------------------------------------------------


async def test_create_anonymous_conversation(client):
    response = await client.post(
        "/api/conversations",
        json={"clientId": "browser-1", "userLocation": {"lat": 31.6, "lng": -8.0}},
    )
    assert response.status_code == 200
    conversation = response.json()["conversation"]
    uuid.UUID(conversation["id"])
    assert conversation["created_at"] is not None


async def test_list_by_client_id(client):
    conversation_id = await _create(client, clientId="browser-1")
    await _create(client, clientId="browser-2")

    response = await client.get("/api/conversations", params={"clientId": "browser-1"})
    assert [c["id"] for c in response.json()["conversations"]] == [conversation_id]


async def test_list_for_signed_in_user(client):
    user = str(uuid.uuid4())
    mine = await _create(client, headers=bearer(user))
    await _create(client, headers=bearer(str(uuid.uuid4())))
    await _create(client, clientId="browser-1")

    response = await client.get(
        "/api/conversations", params={"clientId": "browser-1"}, headers=bearer(user),
    )
    assert [c["id"] for c in response.json()["conversations"]] == [mine]


async def test_client_id_does_not_expose_user_conversations(client):
    await _create(client, headers=bearer(str(uuid.uuid4())), clientId="browser-1")
    response = await client.get("/api/conversations", params={"clientId": "browser-1"})
    assert response.json() == {"conversations": []}


async def test_list_newest_updated_first(client):
    older = await _create(client, clientId="browser-1")
    newer = await _create(client, clientId="browser-1")
    await _save(client, older, {"role": "user", "content": "Bonjour"})

    response = await client.get("/api/conversations", params={"clientId": "browser-1"})
    assert [c["id"] for c in response.json()["conversations"]] == [older, newer]


# -- Get + ownership ------------------------------------------------------------


async def test_get_returns_messages_in_order(client):
    conversation_id = await _create(client, clientId="browser-1")
    await _save(client, conversation_id, {"role": "user", "content": "Un riad ?"})
    await _save(client, conversation_id, {"role": "assistant", "content": "Voici Riad Yasmine."})

    response = await client.get(f"/api/conversations/{conversation_id}")
    assert response.status_code == 200
    body = response.json()
    assert body["conversation"]["client_id"] == "browser-1"
    assert [m["role"] for m in body["messages"]] == ["user", "assistant"]


async def test_other_user_gets_404(client):
    owner = str(uuid.uuid4())
    conversation_id = await _create(client, headers=bearer(owner))

    intruder = await client.get(
        f"/api/conversations/{conversation_id}", headers=bearer(str(uuid.uuid4())),
    )
    anonymous = await client.get(f"/api/conversations/{conversation_id}")
    owned = await client.get(f"/api/conversations/{conversation_id}", headers=bearer(owner))

    assert intruder.status_code == 404
    assert intruder.json()["error"]["code"] == "RESOURCE_NOT_FOUND"
    assert anonymous.status_code == 404
    assert owned.status_code == 200


async def test_unknown_conversation_404(client):
    response = await client.get(f"/api/conversations/{uuid.uuid4()}")
    assert response.status_code == 404


# -- Messages -------------------------------------------------------------------


async def test_first_user_message_sets_title(client):
    conversation_id = await _create(client, clientId="browser-1")
    long_text = "Je cherche un riad romantique à Marrakech " * 5
    response = await _save(client, conversation_id, {"role": "user", "content": long_text})
    assert response.status_code == 200
    await _save(client, conversation_id, {"role": "user", "content": "Autre question"})

    body = (await client.get(f"/api/conversations/{conversation_id}")).json()
    assert body["conversation"]["first_message"] == long_text.strip()
    assert len(body["conversation"]["title"]) <= 80
    assert body["conversation"]["title"].startswith("Je cherche un riad")


async def test_message_parts_sanitized_and_content_derived(client):
    conversation_id = await _create(client, clientId="browser-1")
    response = await _save(client, conversation_id, {
        "role": "assistant",
        "parts": [
            {"type": "text", "text": "Voici mes suggestions."},
            {"type": "tool-searchExperiences", "state": "input-streaming"},
        ],
    })
    message = response.json()["message"]
    assert message["content"] == "Voici mes suggestions."
    assert message["parts"] == [{"type": "text", "text": "Voici mes suggestions."}]


async def test_invalid_role_rejected(client):
    conversation_id = await _create(client, clientId="browser-1")
    response = await _save(client, conversation_id, {"role": "robot", "content": "x"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_messages_relationship_never_lazy_loads(client, test_db):
    conversation_id = await _create(client, clientId="browser-1")
    await _save(client, conversation_id, {"role": "user", "content": "Un riad à Fès ?"})

    conv = await test_db.get(AIConversation, uuid.UUID(conversation_id))
    with pytest.raises(InvalidRequestError):
        conv.messages

    response = await client.get(f"/api/conversations/{conversation_id}")
    assert [m["content"] for m in response.json()["messages"]] == ["Un riad à Fès ?"]


# -- Archive --------------------------------------------------------------------


async def test_delete_archives_conversation(client):
    conversation_id = await _create(client, clientId="browser-1")
    response = await client.delete(f"/api/conversations/{conversation_id}")
    assert response.json() == {"success": True}

    listed = await client.get("/api/conversations", params={"clientId": "browser-1"})
    assert listed.json() == {"conversations": []}

    body = (await client.get(f"/api/conversations/{conversation_id}")).json()
    assert body["conversation"]["archived_at"] is not None
