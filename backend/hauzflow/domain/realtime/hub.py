"""Realtime hub: the façade the transport and the messaging API talk to."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .models import AnnounceResult, Connection, DeliveryEvent, DeliveryKind
from .presence import PresenceTracker
from .registry import ConnectionRegistry, InMemoryConnectionRegistry
from .router import EventRouter
from .transport import DetachedTransport, Transport

logger = logging.getLogger(__name__)


class RealtimeError(Exception):
	"""Rejected inbound event; ``code`` is reported back to the client."""

	def __init__(self, code: str) -> None:
		super().__init__(code)
		self.code = code


class RealtimeHub:
	"""Owns one registry, one presence tracker and one router.

	Create one per application and hand it to the transport and the services that
	emit events; nothing here is module-level state.
	"""

	def __init__(
		self,
		registry: Optional[ConnectionRegistry] = None,
		transport: Optional[Transport] = None,
	) -> None:
		self.registry: ConnectionRegistry = registry if registry is not None else InMemoryConnectionRegistry()
		self._connections: Dict[str, Connection] = {}
		self.attach_transport(transport if transport is not None else DetachedTransport())

	def attach_transport(self, transport: Transport) -> None:
		self.transport = transport
		self.presence = PresenceTracker(self.registry, transport)
		self.router = EventRouter(self.registry, transport)

	def connection(self, connection_id: str) -> Optional[Connection]:
		return self._connections.get(connection_id)

	def connect(self, connection_id: str, authenticated_user_id: Optional[str] = None) -> Connection:
		connection = Connection(connection_id=connection_id, authenticated_user_id=authenticated_user_id)
		self._connections[connection_id] = connection
		return connection

	async def announce(self, connection_id: str, user_id: str) -> AnnounceResult:
		connection = self._connections.get(connection_id)
		if connection is None:
			raise RealtimeError("unknown_connection")
		if connection.authenticated_user_id and connection.authenticated_user_id != user_id:
			raise RealtimeError("identity_mismatch")
		try:
			result = await self.registry.announce(connection_id, user_id)
		except Exception:
			logger.warning("realtime announce failed sid=%s user=%s", connection_id, user_id, exc_info=True)
			raise RealtimeError("registry_unavailable") from None
		connection.user_id = user_id
		superseded = self._connections.get(result.replaced_connection_id or "")
		if superseded is not None:
			superseded.user_id = None
		logger.info(
			"realtime announce sid=%s user=%s came_online=%s replaced=%s",
			connection_id,
			user_id,
			result.came_online,
			result.replaced_connection_id,
		)
		await self.presence.on_announce(result)
		return result

	async def disconnect(self, connection_id: str) -> Optional[str]:
		self._connections.pop(connection_id, None)
		try:
			user_id = await self.registry.remove_by_connection(connection_id)
		except Exception:
			logger.warning("realtime disconnect cleanup failed sid=%s", connection_id, exc_info=True)
			return None
		if user_id is None:
			return None
		logger.info("realtime disconnect sid=%s user=%s", connection_id, user_id)
		await self.presence.on_removal(user_id, connection_id)
		return user_id

	async def send_message(
		self,
		connection_id: str,
		target_user_id: str,
		conversation_id: str,
		message: Any,
	) -> None:
		sender_id = self._require_announced(connection_id)
		await self.deliver_message(sender_id, target_user_id, conversation_id, message)

	async def set_typing(
		self,
		connection_id: str,
		target_user_id: str,
		conversation_id: str,
		is_typing: bool,
	) -> None:
		sender_id = self._require_announced(connection_id)
		await self.router.route(
			DeliveryEvent(
				target_user_id=target_user_id,
				kind=DeliveryKind.TYPING_INDICATOR,
				payload={
					"conversationId": conversation_id,
					"fromUserId": sender_id,
					"isTyping": bool(is_typing),
				},
			)
		)

	async def deliver_message(
		self,
		sender_id: str,
		target_user_id: str,
		conversation_id: str,
		message: Any,
	) -> None:
		await self.router.route(
			DeliveryEvent(
				target_user_id=target_user_id,
				kind=DeliveryKind.MESSAGE_DELIVERED,
				payload={
					"conversationId": conversation_id,
					"fromUserId": sender_id,
					"message": message,
				},
			)
		)

	async def is_online(self, user_id: str) -> bool:
		return await self.registry.lookup(user_id) is not None

	async def online_users(self) -> List[str]:
		return await self.registry.online_users()

	def _require_announced(self, connection_id: str) -> str:
		connection = self._connections.get(connection_id)
		if connection is None or connection.user_id is None:
			raise RealtimeError("not_announced")
		return connection.user_id
