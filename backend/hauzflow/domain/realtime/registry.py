"""Connection registry: which live connection currently represents which user."""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from .models import AnnounceResult


class ConnectionRegistry(Protocol):
	async def announce(self, connection_id: str, user_id: str) -> AnnounceResult:
		...

	async def lookup(self, user_id: str) -> Optional[str]:
		...

	async def remove_by_connection(self, connection_id: str) -> Optional[str]:
		...

	async def online_users(self) -> List[str]:
		...

	async def count(self) -> int:
		...


class InMemoryConnectionRegistry:
	"""Registry for a single process running a single event loop.

	Every mutation completes without awaiting, so handlers running on the loop
	never observe a half-applied announce or removal.
	"""

	def __init__(self) -> None:
		self._by_user: Dict[str, str] = {}
		# Reverse index; removal is keyed by connection, never by user.
		self._by_connection: Dict[str, str] = {}

	async def announce(self, connection_id: str, user_id: str) -> AnnounceResult:
		released: Optional[str] = None
		previous_user = self._by_connection.get(connection_id)
		if previous_user is not None and previous_user != user_id:
			# The same connection re-announcing as somebody else gives up its old identity.
			if self._by_user.get(previous_user) == connection_id:
				del self._by_user[previous_user]
				released = previous_user
		previous_connection = self._by_user.get(user_id)
		self._by_user[user_id] = connection_id
		self._by_connection[connection_id] = user_id
		replaced: Optional[str] = None
		if previous_connection is not None and previous_connection != connection_id:
			self._by_connection.pop(previous_connection, None)
			replaced = previous_connection
		return AnnounceResult(
			user_id=user_id,
			connection_id=connection_id,
			came_online=previous_connection is None,
			replaced_connection_id=replaced,
			released_user_id=released,
		)

	async def lookup(self, user_id: str) -> Optional[str]:
		return self._by_user.get(user_id)

	async def remove_by_connection(self, connection_id: str) -> Optional[str]:
		user_id = self._by_connection.pop(connection_id, None)
		if user_id is None:
			return None
		if self._by_user.get(user_id) != connection_id:
			return None
		del self._by_user[user_id]
		return user_id

	async def online_users(self) -> List[str]:
		return sorted(self._by_user)

	async def count(self) -> int:
		return len(self._by_user)

	def __len__(self) -> int:
		return len(self._by_user)
