"""Presence tracking: registry mutations become online/offline broadcasts."""

from __future__ import annotations

import logging
from typing import Optional

from hauzflow.obs import metrics as obs_metrics

from .models import PRESENCE_CHANGED, AnnounceResult, PresenceEvent, PresenceStatus
from .registry import ConnectionRegistry
from .transport import Transport

logger = logging.getLogger(__name__)


class PresenceTracker:
	"""Broadcasts presence transitions to every connection but the originating one.

	Only the absent -> online transition is announced; re-announcing from the same
	or a new connection replaces the mapping quietly.
	"""

	def __init__(self, registry: ConnectionRegistry, transport: Transport) -> None:
		self._registry = registry
		self._transport = transport

	async def on_announce(self, result: AnnounceResult) -> None:
		if result.released_user_id is not None:
			await self._broadcast(
				PresenceEvent(result.released_user_id, PresenceStatus.OFFLINE),
				skip=result.connection_id,
			)
		if result.came_online:
			await self._broadcast(
				PresenceEvent(result.user_id, PresenceStatus.ONLINE),
				skip=result.connection_id,
			)
		await self._refresh_gauge()

	async def on_removal(self, user_id: str, connection_id: Optional[str] = None) -> None:
		await self._broadcast(PresenceEvent(user_id, PresenceStatus.OFFLINE), skip=connection_id)
		await self._refresh_gauge()

	async def _broadcast(self, event: PresenceEvent, *, skip: Optional[str]) -> None:
		obs_metrics.presence_transition(event.status.value)
		try:
			await self._transport.broadcast(PRESENCE_CHANGED, event.to_payload(), skip=skip)
		except Exception:
			logger.warning(
				"presence broadcast failed user=%s status=%s",
				event.user_id,
				event.status.value,
				exc_info=True,
			)

	async def _refresh_gauge(self) -> None:
		try:
			count = await self._registry.count()
		except Exception:
			logger.warning("presence gauge refresh failed", exc_info=True)
			return
		obs_metrics.presence_online(count)
