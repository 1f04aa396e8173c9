"""Redis-backed connection registry for deployments running several workers.

The forward (user -> connection) and reverse (connection -> user) maps live in
two hashes. Every mutation runs in a WATCH/MULTI transaction over both hashes,
so concurrent workers cannot leave a user mapped to two connections or let a
superseded connection delete a newer mapping.
"""

from __future__ import annotations

from typing import List, Optional, Union

from redis.asyncio.client import Pipeline

from .models import AnnounceResult


def _text(value: Union[bytes, str, None]) -> Optional[str]:
	if value is None:
		return None
	if isinstance(value, bytes):
		return value.decode()
	return str(value)


class RedisConnectionRegistry:
	def __init__(self, client, *, key_prefix: str = "hauzflow:rt") -> None:
		self._redis = client
		self.users_key = f"{key_prefix}:users"
		self.connections_key = f"{key_prefix}:connections"

	async def announce(self, connection_id: str, user_id: str) -> AnnounceResult:
		async def _apply(pipe: Pipeline) -> AnnounceResult:
			released: Optional[str] = None
			previous_user = _text(await pipe.hget(self.connections_key, connection_id))
			if previous_user is not None and previous_user != user_id:
				owner = _text(await pipe.hget(self.users_key, previous_user))
				if owner == connection_id:
					released = previous_user
			previous_connection = _text(await pipe.hget(self.users_key, user_id))
			pipe.multi()
			if released is not None:
				pipe.hdel(self.users_key, released)
			if previous_connection is not None and previous_connection != connection_id:
				pipe.hdel(self.connections_key, previous_connection)
			pipe.hset(self.users_key, user_id, connection_id)
			pipe.hset(self.connections_key, connection_id, user_id)
			return AnnounceResult(
				user_id=user_id,
				connection_id=connection_id,
				came_online=previous_connection is None,
				replaced_connection_id=(
					previous_connection
					if previous_connection is not None and previous_connection != connection_id
					else None
				),
				released_user_id=released,
			)

		return await self._redis.transaction(
			_apply,
			self.users_key,
			self.connections_key,
			value_from_callable=True,
		)

	async def lookup(self, user_id: str) -> Optional[str]:
		return _text(await self._redis.hget(self.users_key, user_id))

	async def remove_by_connection(self, connection_id: str) -> Optional[str]:
		async def _apply(pipe: Pipeline) -> Optional[str]:
			user_id = _text(await pipe.hget(self.connections_key, connection_id))
			owner = _text(await pipe.hget(self.users_key, user_id)) if user_id is not None else None
			pipe.multi()
			if user_id is None:
				return None
			pipe.hdel(self.connections_key, connection_id)
			if owner != connection_id:
				return None
			pipe.hdel(self.users_key, user_id)
			return user_id

		return await self._redis.transaction(
			_apply,
			self.users_key,
			self.connections_key,
			value_from_callable=True,
		)

	async def online_users(self) -> List[str]:
		keys = await self._redis.hkeys(self.users_key)
		return sorted(_text(key) or "" for key in keys)

	async def count(self) -> int:
		return int(await self._redis.hlen(self.users_key))

	async def clear(self) -> None:
		"""Drop every mapping; used when a single worker restarts with stale state."""
		await self._redis.delete(self.users_key, self.connections_key)
