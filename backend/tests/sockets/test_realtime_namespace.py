from unittest.mock import AsyncMock, call

import pytest
import socketio

from hauzflow.domain.realtime import RealtimeHub
from hauzflow.domain.realtime.sockets import RealtimeNamespace


def _environ(headers=None) -> dict:
	return {"asgi.scope": {"headers": headers or []}}


def _namespace() -> RealtimeNamespace:
	server = socketio.AsyncServer(async_mode="asgi")
	namespace = RealtimeNamespace(RealtimeHub())
	server.register_namespace(namespace)
	namespace.emit = AsyncMock()
	return namespace


def _events(namespace: RealtimeNamespace) -> list:
	return [c.args[0] for c in namespace.emit.await_args_list]


@pytest.mark.asyncio
async def test_connect_creates_unmapped_connection():
	namespace = _namespace()

	await namespace.trigger_event("connect", "sid-1", _environ())

	connection = namespace.hub.connection("sid-1")
	assert connection is not None
	assert connection.announced is False
	namespace.emit.assert_not_awaited()


@pytest.mark.asyncio
async def test_announce_acks_and_broadcasts_online_to_others():
	namespace = _namespace()
	await namespace.trigger_event("connect", "sid-1", _environ())

	await namespace.trigger_event("announce", "sid-1", {"userId": 7})

	assert namespace.emit.await_args_list == [
		call("presence:changed", {"userId": "7", "status": "online"}, skip_sid="sid-1"),
		call("sys.ack", {"userId": "7", "cameOnline": True}, room="sid-1"),
	]


@pytest.mark.asyncio
async def test_announce_accepts_bare_identity():
	namespace = _namespace()
	await namespace.trigger_event("connect", "sid-1", _environ())

	await namespace.trigger_event("announce", "sid-1", "user-1")

	assert await namespace.hub.is_online("user-1") is True


@pytest.mark.asyncio
async def test_reannounce_does_not_rebroadcast_online():
	namespace = _namespace()
	await namespace.trigger_event("connect", "sid-1", _environ())
	await namespace.trigger_event("connect", "sid-2", _environ())
	await namespace.trigger_event("announce", "sid-1", {"userId": "1"})
	namespace.emit.reset_mock()

	await namespace.trigger_event("announce", "sid-2", {"userId": "1"})

	assert _events(namespace) == ["sys.ack"]
	assert namespace.emit.await_args.args[1] == {"userId": "1", "cameOnline": False}


@pytest.mark.asyncio
async def test_handshake_identity_must_match_announce():
	namespace = _namespace()
	await namespace.trigger_event("connect", "sid-1", _environ([(b"x-user-id", b"1")]))

	await namespace.trigger_event("announce", "sid-1", {"userId": "2"})

	namespace.emit.assert_awaited_once_with("sys.warn", {"code": "identity_mismatch", "event": "announce"}, room="sid-1")
	assert await namespace.hub.online_users() == []


@pytest.mark.asyncio
async def test_handshake_auth_payload_is_used():
	namespace = _namespace()
	await namespace.trigger_event("connect", "sid-1", _environ(), {"userId": "1"})

	assert namespace.hub.connection("sid-1").authenticated_user_id == "1"


@pytest.mark.asyncio
async def test_send_message_is_unicast_to_target():
	namespace = _namespace()
	for sid, user in (("sid-1", "1"), ("sid-2", "2")):
		await namespace.trigger_event("connect", sid, _environ())
		await namespace.trigger_event("announce", sid, {"userId": user})
	namespace.emit.reset_mock()

	await namespace.trigger_event(
		"send_message",
		"sid-1",
		{"targetUserId": 2, "conversationId": 5, "message": {"content": "hi"}},
	)

	namespace.emit.assert_awaited_once_with(
		"message:delivered",
		{"conversationId": "5", "fromUserId": "1", "message": {"content": "hi"}},
		room="sid-2",
	)


@pytest.mark.asyncio
async def test_typing_start_and_stop_reach_target():
	namespace = _namespace()
	for sid, user in (("sid-1", "1"), ("sid-2", "2")):
		await namespace.trigger_event("connect", sid, _environ())
		await namespace.trigger_event("announce", sid, {"userId": user})
	namespace.emit.reset_mock()

	await namespace.trigger_event("typing_start", "sid-2", {"targetUserId": "1", "conversationId": "c"})
	await namespace.trigger_event("typing_stop", "sid-2", {"targetUserId": "1", "conversationId": "c"})

	assert namespace.emit.await_args_list == [
		call("typing:indicator", {"conversationId": "c", "fromUserId": "2", "isTyping": True}, room="sid-1"),
		call("typing:indicator", {"conversationId": "c", "fromUserId": "2", "isTyping": False}, room="sid-1"),
	]


@pytest.mark.asyncio
async def test_malformed_event_is_rejected_without_disconnect():
	namespace = _namespace()
	await namespace.trigger_event("connect", "sid-1", _environ())
	await namespace.trigger_event("announce", "sid-1", {"userId": "1"})
	namespace.emit.reset_mock()

	await namespace.trigger_event("send_message", "sid-1", {"conversationId": "c", "message": "hi"})

	namespace.emit.assert_awaited_once_with("sys.warn", {"code": "invalid_payload", "event": "send_message"}, room="sid-1")
	assert await namespace.hub.is_online("1") is True


@pytest.mark.asyncio
async def test_events_before_announce_are_rejected():
	namespace = _namespace()
	await namespace.trigger_event("connect", "sid-1", _environ())

	await namespace.trigger_event("typing_start", "sid-1", {"targetUserId": "2", "conversationId": "c"})

	namespace.emit.assert_awaited_once_with("sys.warn", {"code": "not_announced", "event": "typing_start"}, room="sid-1")


@pytest.mark.asyncio
async def test_disconnect_broadcasts_offline_and_stops_delivery():
	namespace = _namespace()
	for sid, user in (("sid-1", "1"), ("sid-2", "2")):
		await namespace.trigger_event("connect", sid, _environ())
		await namespace.trigger_event("announce", sid, {"userId": user})
	namespace.emit.reset_mock()

	await namespace.trigger_event("disconnect", "sid-1")
	await namespace.trigger_event("typing_start", "sid-2", {"targetUserId": "1", "conversationId": "c"})

	assert namespace.emit.await_args_list == [
		call("presence:changed", {"userId": "1", "status": "offline"}, skip_sid="sid-1"),
	]


@pytest.mark.asyncio
async def test_announce_with_unreachable_registry_warns_sender(unreachable_registry):
	server = socketio.AsyncServer(async_mode="asgi")
	namespace = RealtimeNamespace(RealtimeHub(unreachable_registry))
	server.register_namespace(namespace)
	namespace.emit = AsyncMock()
	await namespace.trigger_event("connect", "sid-1", _environ())

	await namespace.trigger_event("announce", "sid-1", {"userId": "1"})
	await namespace.trigger_event("disconnect", "sid-1")

	namespace.emit.assert_awaited_once_with("sys.warn", {"code": "registry_unavailable", "event": "announce"}, room="sid-1")
