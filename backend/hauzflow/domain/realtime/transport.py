"""Transport seam between the realtime core and the Socket.IO namespace."""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol


class Transport(Protocol):
	async def deliver(self, connection_id: str, event: str, payload: Dict[str, Any]) -> None:
		...

	async def broadcast(self, event: str, payload: Dict[str, Any], *, skip: Optional[str] = None) -> None:
		...


class DetachedTransport:
	"""Used until a namespace is attached; every emit is a no-op."""

	async def deliver(self, connection_id: str, event: str, payload: Dict[str, Any]) -> None:
		return None

	async def broadcast(self, event: str, payload: Dict[str, Any], *, skip: Optional[str] = None) -> None:
		return None
