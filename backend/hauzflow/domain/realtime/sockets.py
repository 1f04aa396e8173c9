"""Socket.IO namespace for presence, direct-message delivery and typing indicators."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type, TypeVar

import socketio
from pydantic import BaseModel, ValidationError

from hauzflow.obs import metrics as obs_metrics

from .hub import RealtimeError, RealtimeHub
from .models import SYS_ACK, SYS_WARN
from .schemas import AnnounceIdentity, SendMessageEvent, TypingEvent

logger = logging.getLogger(__name__)

_Event = TypeVar("_Event", bound=BaseModel)


def _header(scope: dict, name: str) -> Optional[str]:
	target = name.encode().lower()
	for key, value in scope.get("headers", []):
		if key.lower() == target:
			return value.decode()
	return None


class RealtimeNamespace(socketio.AsyncNamespace):
	"""Maps transport events onto a RealtimeHub and doubles as its transport."""

	def __init__(self, hub: RealtimeHub, namespace: str = "/realtime") -> None:
		super().__init__(namespace)
		self.hub = hub
		hub.attach_transport(self)

	# Transport
	async def deliver(self, connection_id: str, event: str, payload: Dict[str, Any]) -> None:
		obs_metrics.socket_event(self.namespace, event)
		await self.emit(event, payload, room=connection_id)

	async def broadcast(self, event: str, payload: Dict[str, Any], *, skip: Optional[str] = None) -> None:
		obs_metrics.socket_event(self.namespace, event)
		await self.emit(event, payload, skip_sid=skip)

	# Inbound events
	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		obs_metrics.socket_connected(self.namespace)
		scope = environ.get("asgi.scope", environ)
		# python-socketio >=5 passes client-provided auth as a separate argument
		auth_payload = auth or environ.get("auth") or scope.get("auth") or {}
		authenticated = auth_payload.get("userId") or _header(scope, "x-user-id")
		self.hub.connect(sid, str(authenticated) if authenticated else None)
		logger.info("realtime connect sid=%s authenticated=%s", sid, bool(authenticated))

	async def on_disconnect(self, sid: str, reason: Any = None) -> None:
		obs_metrics.socket_disconnected(self.namespace)
		await self.hub.disconnect(sid)

	async def on_announce(self, sid: str, data: Any = None) -> None:
		obs_metrics.socket_event(self.namespace, "announce")
		if isinstance(data, (str, int)) and not isinstance(data, bool):
			data = {"userId": data}
		event = await self._parse(sid, "announce", AnnounceIdentity, data)
		if event is None:
			return
		try:
			result = await self.hub.announce(sid, event.user_id)
		except RealtimeError as exc:
			await self._warn(sid, "announce", exc.code)
			return
		await self.emit(
			SYS_ACK,
			{"userId": result.user_id, "cameOnline": result.came_online},
			room=sid,
		)

	async def on_send_message(self, sid: str, data: Any = None) -> None:
		obs_metrics.socket_event(self.namespace, "send_message")
		event = await self._parse(sid, "send_message", SendMessageEvent, data)
		if event is None:
			return
		try:
			await self.hub.send_message(sid, event.target_user_id, event.conversation_id, event.message)
		except RealtimeError as exc:
			await self._warn(sid, "send_message", exc.code)

	async def on_typing_start(self, sid: str, data: Any = None) -> None:
		await self._typing(sid, "typing_start", data, is_typing=True)

	async def on_typing_stop(self, sid: str, data: Any = None) -> None:
		await self._typing(sid, "typing_stop", data, is_typing=False)

	async def _typing(self, sid: str, name: str, data: Any, *, is_typing: bool) -> None:
		obs_metrics.socket_event(self.namespace, name)
		event = await self._parse(sid, name, TypingEvent, data)
		if event is None:
			return
		try:
			await self.hub.set_typing(sid, event.target_user_id, event.conversation_id, is_typing)
		except RealtimeError as exc:
			await self._warn(sid, name, exc.code)

	async def _parse(self, sid: str, name: str, model: Type[_Event], data: Any) -> Optional[_Event]:
		try:
			return model.model_validate(data if data is not None else {})
		except ValidationError:
			await self._warn(sid, name, "invalid_payload")
			return None

	async def _warn(self, sid: str, name: str, code: str) -> None:
		obs_metrics.socket_reject(self.namespace, name, code)
		logger.info("realtime reject sid=%s event=%s code=%s", sid, name, code)
		await self.emit(SYS_WARN, {"code": code, "event": name}, room=sid)
