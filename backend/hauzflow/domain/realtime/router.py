"""Best-effort delivery of an event to one user's current connection."""

from __future__ import annotations

import logging

from hauzflow.obs import metrics as obs_metrics

from .models import DeliveryEvent
from .registry import ConnectionRegistry
from .transport import Transport

logger = logging.getLogger(__name__)


class EventRouter:
	def __init__(self, registry: ConnectionRegistry, transport: Transport) -> None:
		self._registry = registry
		self._transport = transport

	async def route(self, event: DeliveryEvent) -> None:
		"""Send ``event`` to its target if connected, otherwise drop it.

		Never raises: an offline recipient, a failed lookup and a failed send
		all end as a drop.
		"""
		kind = event.kind.value
		try:
			connection_id = await self._registry.lookup(event.target_user_id)
		except Exception:
			obs_metrics.delivery(kind, "failed")
			logger.warning(
				"realtime drop kind=%s target=%s reason=lookup_failed",
				kind,
				event.target_user_id,
				exc_info=True,
			)
			return
		if connection_id is None:
			obs_metrics.delivery(kind, "offline")
			logger.debug("realtime drop kind=%s target=%s reason=offline", kind, event.target_user_id)
			return
		try:
			await self._transport.deliver(connection_id, event.kind.event_name, event.payload)
		except Exception:
			obs_metrics.delivery(kind, "failed")
			logger.warning(
				"realtime drop kind=%s target=%s sid=%s reason=send_failed",
				kind,
				event.target_user_id,
				connection_id,
				exc_info=True,
			)
			return
		obs_metrics.delivery(kind, "delivered")
