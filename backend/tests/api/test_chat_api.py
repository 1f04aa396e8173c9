import pytest

from hauzflow.domain.realtime.models import MESSAGE_DELIVERED


async def _conversation(api_client, first=1, second=2) -> int:
	response = await api_client.post("/api/conversations", json={"user_id_1": first, "user_id_2": second})
	assert response.status_code in (200, 201)
	return response.json()["id"]


@pytest.mark.asyncio
async def test_create_then_fetch_existing_conversation(api_client):
	created = await api_client.post("/api/conversations", json={"user_id_1": 1, "user_id_2": 2})
	assert created.status_code == 201
	body = created.json()
	assert body["type"] == "direct"

	existing = await api_client.post("/api/conversations", json={"user_id_1": 2, "user_id_2": 1})
	assert existing.status_code == 200
	assert existing.json()["id"] == body["id"]


@pytest.mark.asyncio
async def test_conversation_validation_errors_carry_request_id(api_client):
	response = await api_client.post(
		"/api/conversations",
		json={"user_id_1": 1, "user_id_2": 1},
		headers={"X-Request-Id": "req-123"},
	)

	assert response.status_code == 400
	assert response.json() == {"detail": "cannot_message_self", "request_id": "req-123"}
	assert response.headers["X-Request-Id"] == "req-123"

	missing = await api_client.post("/api/conversations", json={"user_id_1": 1})
	assert missing.status_code == 400
	assert missing.json()["detail"] == "user_ids_required"


@pytest.mark.asyncio
async def test_send_message_and_list(api_client):
	conversation_id = await _conversation(api_client)

	sent = await api_client.post(
		"/api/messages",
		json={"conversation_id": conversation_id, "sender_id": 1, "content": "hello"},
	)
	assert sent.status_code == 201
	assert sent.json()["message"] == "message_sent"
	assert isinstance(sent.json()["messageId"], int)

	listed = await api_client.get(
		f"/api/conversations/{conversation_id}/messages",
		params={"user_id": 2},
	)
	assert listed.status_code == 200
	[message] = listed.json()
	assert message["content"] == "hello"
	assert message["sender_id"] == 1
	assert message["sender_email"] == "ana@acme.test"
	assert message["read"] is False


@pytest.mark.asyncio
async def test_non_participants_are_forbidden(api_client):
	conversation_id = await _conversation(api_client)

	sent = await api_client.post(
		"/api/messages",
		json={"conversation_id": conversation_id, "sender_id": 3, "content": "hi"},
	)
	assert sent.status_code == 403
	assert sent.json()["detail"] == "not_a_participant"

	listed = await api_client.get(f"/api/conversations/{conversation_id}/messages", params={"user_id": 3})
	assert listed.status_code == 403

	anonymous = await api_client.get(f"/api/conversations/{conversation_id}/messages")
	assert anonymous.status_code == 403


@pytest.mark.asyncio
async def test_send_message_requires_fields(api_client):
	response = await api_client.post("/api/messages", json={"conversation_id": 1, "sender_id": 1})

	assert response.status_code == 400
	assert response.json()["detail"] == "conversation_id_sender_id_content_required"


@pytest.mark.asyncio
async def test_user_conversations_and_mark_read(api_client):
	conversation_id = await _conversation(api_client)
	for content in ("one", "two"):
		await api_client.post(
			"/api/messages",
			json={"conversation_id": conversation_id, "sender_id": 1, "content": content},
		)

	listed = await api_client.get("/api/conversations/user/2")
	assert listed.status_code == 200
	[summary] = listed.json()
	assert summary["unread_count"] == 2
	assert summary["last_message"] == "two"
	assert summary["participants"] == [{"id": 1, "email": "ana@acme.test", "role": "admin"}]

	marked = await api_client.put(f"/api/conversations/{conversation_id}/read", json={"user_id": 2})
	assert marked.status_code == 200
	assert marked.json() == {"message": "messages_marked_read", "updatedCount": 2}

	listed = await api_client.get("/api/conversations/user/2")
	assert listed.json()[0]["unread_count"] == 0


@pytest.mark.asyncio
async def test_mark_read_requires_user(api_client):
	conversation_id = await _conversation(api_client)

	response = await api_client.put(f"/api/conversations/{conversation_id}/read", json={})

	assert response.status_code == 400
	assert response.json()["detail"] == "user_id_required"


@pytest.mark.asyncio
async def test_available_users(api_client):
	response = await api_client.get("/api/users/available", params={"user_id": 1, "company_id": 10})

	assert response.status_code == 200
	assert [user["id"] for user in response.json()] == [2, 3]
	assert all(user["has_conversation"] is False for user in response.json())

	missing = await api_client.get("/api/users/available", params={"user_id": 1})
	assert missing.status_code == 400


@pytest.mark.asyncio
async def test_sent_message_is_delivered_to_connected_recipient(app, api_client, transport):
	hub = app.state.hub
	hub.attach_transport(transport)
	hub.connect("sid-2")
	await hub.announce("sid-2", "2")
	conversation_id = await _conversation(api_client)

	response = await api_client.post(
		"/api/messages",
		json={"conversation_id": conversation_id, "sender_id": 1, "content": "live"},
	)

	assert response.status_code == 201
	[(connection_id, event, payload)] = transport.delivered
	assert connection_id == "sid-2"
	assert event == MESSAGE_DELIVERED
	assert payload["message"]["content"] == "live"
	assert payload["message"]["id"] == response.json()["messageId"]
