"""Persistence for direct conversations and messages."""

from __future__ import annotations

import asyncio
import itertools
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Set

from hauzflow.infra.postgres import get_pool

from .models import DIRECT, ChatUser, Conversation, Message


class ChatRepository(Protocol):
	async def find_direct_conversation(self, user_a: int, user_b: int) -> Optional[Conversation]:
		...

	async def create_direct_conversation(self, user_a: int, user_b: int) -> Conversation:
		...

	async def list_user_conversations(self, user_id: int) -> List[Conversation]:
		...

	async def list_participants(self, conversation_id: int, *, exclude_user_id: int) -> List[ChatUser]:
		...

	async def participant_ids(self, conversation_id: int) -> List[int]:
		...

	async def is_participant(self, conversation_id: int, user_id: int) -> bool:
		...

	async def last_message(self, conversation_id: int) -> Optional[Message]:
		...

	async def count_unread(self, conversation_id: int, user_id: int) -> int:
		...

	async def create_message(self, conversation_id: int, sender_id: int, content: str) -> Message:
		...

	async def touch_conversation(self, conversation_id: int) -> None:
		...

	async def list_messages(self, conversation_id: int, *, limit: int, offset: int) -> List[Message]:
		...

	async def mark_read(self, conversation_id: int, user_id: int) -> int:
		...

	async def list_company_users(self, company_id: int, *, exclude_user_id: int) -> List[ChatUser]:
		...


def _now() -> datetime:
	return datetime.now(timezone.utc)


class InMemoryChatRepository:
	"""Process-local store used in development and tests."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._users: Dict[int, ChatUser] = {}
		self._conversations: Dict[int, Conversation] = {}
		self._participants: Dict[int, Set[int]] = {}
		self._messages: Dict[int, List[Message]] = {}
		self._conversation_ids = itertools.count(1)
		self._message_ids = itertools.count(1)

	def add_user(self, user_id: int, email: str, role: str = "member", company_id: Optional[int] = None) -> ChatUser:
		user = ChatUser(id=user_id, email=email, role=role, company_id=company_id)
		self._users[user_id] = user
		return user

	async def find_direct_conversation(self, user_a: int, user_b: int) -> Optional[Conversation]:
		async with self._lock:
			for conversation_id, members in self._participants.items():
				conversation = self._conversations[conversation_id]
				if conversation.type == DIRECT and user_a != user_b and {user_a, user_b} <= members:
					return conversation
			return None

	async def create_direct_conversation(self, user_a: int, user_b: int) -> Conversation:
		async with self._lock:
			now = _now()
			conversation = Conversation(id=next(self._conversation_ids), type=DIRECT, created_at=now, updated_at=now)
			self._conversations[conversation.id] = conversation
			self._participants[conversation.id] = {user_a, user_b}
			self._messages[conversation.id] = []
			return conversation

	async def list_user_conversations(self, user_id: int) -> List[Conversation]:
		async with self._lock:
			rows = [
				self._conversations[conversation_id]
				for conversation_id, members in self._participants.items()
				if user_id in members
			]
			return sorted(rows, key=lambda c: (c.updated_at, c.id), reverse=True)

	async def list_participants(self, conversation_id: int, *, exclude_user_id: int) -> List[ChatUser]:
		async with self._lock:
			members = self._participants.get(conversation_id, set())
			return [
				self._users[member]
				for member in sorted(members)
				if member != exclude_user_id and member in self._users
			]

	async def participant_ids(self, conversation_id: int) -> List[int]:
		async with self._lock:
			return sorted(self._participants.get(conversation_id, set()))

	async def is_participant(self, conversation_id: int, user_id: int) -> bool:
		async with self._lock:
			return user_id in self._participants.get(conversation_id, set())

	async def last_message(self, conversation_id: int) -> Optional[Message]:
		async with self._lock:
			messages = self._messages.get(conversation_id) or []
			if not messages:
				return None
			return max(messages, key=lambda m: (m.created_at, m.id))

	async def count_unread(self, conversation_id: int, user_id: int) -> int:
		async with self._lock:
			return sum(
				1
				for message in self._messages.get(conversation_id, [])
				if message.sender_id != user_id and not message.read
			)

	async def create_message(self, conversation_id: int, sender_id: int, content: str) -> Message:
		async with self._lock:
			message = Message(
				id=next(self._message_ids),
				conversation_id=conversation_id,
				sender_id=sender_id,
				content=content,
				read=False,
				created_at=_now(),
			)
			self._messages.setdefault(conversation_id, []).append(message)
			return message

	async def touch_conversation(self, conversation_id: int) -> None:
		async with self._lock:
			conversation = self._conversations.get(conversation_id)
			if conversation is not None:
				conversation.updated_at = _now()

	async def list_messages(self, conversation_id: int, *, limit: int, offset: int) -> List[Message]:
		async with self._lock:
			ordered = sorted(
				self._messages.get(conversation_id, []),
				key=lambda m: (m.created_at, m.id),
				reverse=True,
			)
			page: List[Message] = []
			for message in ordered[offset : offset + limit]:
				sender = self._users.get(message.sender_id)
				if sender is None:
					# Matches the INNER JOIN on users in the SQL store
					continue
				page.append(
					Message(
						id=message.id,
						conversation_id=message.conversation_id,
						sender_id=message.sender_id,
						content=message.content,
						read=message.read,
						created_at=message.created_at,
						sender_email=sender.email,
						sender_role=sender.role,
					)
				)
			return page

	async def mark_read(self, conversation_id: int, user_id: int) -> int:
		async with self._lock:
			updated = 0
			for message in self._messages.get(conversation_id, []):
				if message.sender_id != user_id and not message.read:
					message.read = True
					updated += 1
			return updated

	async def list_company_users(self, company_id: int, *, exclude_user_id: int) -> List[ChatUser]:
		async with self._lock:
			users = [
				user
				for user in self._users.values()
				if user.company_id == company_id and user.id != exclude_user_id
			]
			# role DESC, email ASC
			users.sort(key=lambda u: u.email)
			users.sort(key=lambda u: u.role, reverse=True)
			return users


class PostgresChatRepository:
	"""Repository backed by asyncpg."""

	async def find_direct_conversation(self, user_a: int, user_b: int) -> Optional[Conversation]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				"""
				SELECT c.id, c.type, c.created_at, c.updated_at
				FROM conversations c
				INNER JOIN conversation_participants cp1 ON c.id = cp1.conversation_id
				INNER JOIN conversation_participants cp2 ON c.id = cp2.conversation_id
				WHERE c.type = 'direct'
					AND cp1.user_id = $1 AND cp2.user_id = $2
					AND cp1.user_id != cp2.user_id
				LIMIT 1
				""",
				user_a,
				user_b,
			)
			return Conversation.from_record(row) if row else None

	async def create_direct_conversation(self, user_a: int, user_b: int) -> Conversation:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				row = await conn.fetchrow(
					"""
					INSERT INTO conversations (type) VALUES ($1)
					RETURNING id, type, created_at, updated_at
					""",
					DIRECT,
				)
				await conn.execute(
					"""
					INSERT INTO conversation_participants (conversation_id, user_id)
					VALUES ($1, $2), ($1, $3)
					""",
					row["id"],
					user_a,
					user_b,
				)
				return Conversation.from_record(row)

	async def list_user_conversations(self, user_id: int) -> List[Conversation]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT c.id, c.type, c.created_at, c.updated_at
				FROM conversations c
				INNER JOIN conversation_participants cp ON c.id = cp.conversation_id
				WHERE cp.user_id = $1
				ORDER BY c.updated_at DESC
				""",
				user_id,
			)
			return [Conversation.from_record(row) for row in rows]

	async def list_participants(self, conversation_id: int, *, exclude_user_id: int) -> List[ChatUser]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT u.id, u.email, u.role
				FROM users u
				INNER JOIN conversation_participants cp ON u.id = cp.user_id
				WHERE cp.conversation_id = $1 AND u.id != $2
				""",
				conversation_id,
				exclude_user_id,
			)
			return [ChatUser.from_record(row) for row in rows]

	async def participant_ids(self, conversation_id: int) -> List[int]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"SELECT user_id FROM conversation_participants WHERE conversation_id = $1 ORDER BY user_id",
				conversation_id,
			)
			return [int(row["user_id"]) for row in rows]

	async def is_participant(self, conversation_id: int, user_id: int) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				"SELECT id FROM conversation_participants WHERE conversation_id = $1 AND user_id = $2",
				conversation_id,
				user_id,
			)
			return row is not None

	async def last_message(self, conversation_id: int) -> Optional[Message]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				"""
				SELECT id, conversation_id, sender_id, content, read, created_at
				FROM messages
				WHERE conversation_id = $1
				ORDER BY created_at DESC
				LIMIT 1
				""",
				conversation_id,
			)
			return Message.from_record(row) if row else None

	async def count_unread(self, conversation_id: int, user_id: int) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			count = await conn.fetchval(
				"""
				SELECT COUNT(*)
				FROM messages
				WHERE conversation_id = $1 AND sender_id != $2 AND read = false
				""",
				conversation_id,
				user_id,
			)
			return int(count or 0)

	async def create_message(self, conversation_id: int, sender_id: int, content: str) -> Message:
		pool = await get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				"""
				INSERT INTO messages (conversation_id, sender_id, content)
				VALUES ($1, $2, $3)
				RETURNING id, conversation_id, sender_id, content, read, created_at
				""",
				conversation_id,
				sender_id,
				content,
			)
			return Message.from_record(row)

	async def touch_conversation(self, conversation_id: int) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute(
				"UPDATE conversations SET updated_at = CURRENT_TIMESTAMP WHERE id = $1",
				conversation_id,
			)

	async def list_messages(self, conversation_id: int, *, limit: int, offset: int) -> List[Message]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT
					m.id,
					m.conversation_id,
					m.content,
					m.sender_id,
					m.read,
					m.created_at,
					u.email AS sender_email,
					u.role AS sender_role
				FROM messages m
				INNER JOIN users u ON m.sender_id = u.id
				WHERE m.conversation_id = $1
				ORDER BY m.created_at DESC
				LIMIT $2 OFFSET $3
				""",
				conversation_id,
				limit,
				offset,
			)
			return [Message.from_record(row) for row in rows]

	async def mark_read(self, conversation_id: int, user_id: int) -> int:
		pool = await get_pool()
		async with pool.acquire() as conn:
			status = await conn.execute(
				"""
				UPDATE messages SET read = true
				WHERE conversation_id = $1 AND sender_id != $2 AND read = false
				""",
				conversation_id,
				user_id,
			)
			# asyncpg returns the command tag, e.g. "UPDATE 3"
			return int(status.split()[-1]) if status else 0

	async def list_company_users(self, company_id: int, *, exclude_user_id: int) -> List[ChatUser]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT u.id, u.email, u.role, u.company_id
				FROM users u
				WHERE u.company_id = $1 AND u.id != $2
				ORDER BY u.role DESC, u.email ASC
				""",
				company_id,
				exclude_user_id,
			)
			return [ChatUser.from_record(row) for row in rows]
