"""Direct-messaging service.

Messages are written to the repository first; live delivery through the
realtime hub happens afterwards and its outcome never affects the caller.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from hauzflow.domain.realtime.hub import RealtimeHub
from hauzflow.obs import metrics as obs_metrics

from .exceptions import ForbiddenError, InvalidRequestError
from .models import Conversation
from .repo import ChatRepository, InMemoryChatRepository
from .schemas import (
	AvailableUser,
	ConversationSummary,
	MessageItem,
	Participant,
)

logger = logging.getLogger(__name__)


class ChatService:
	def __init__(self, repository: Optional[ChatRepository] = None, hub: Optional[RealtimeHub] = None) -> None:
		self._repo: ChatRepository = repository if repository is not None else InMemoryChatRepository()
		self._hub = hub

	async def get_or_create_conversation(
		self,
		user_id_1: Optional[int],
		user_id_2: Optional[int],
	) -> Tuple[Conversation, bool]:
		"""Return the direct conversation between two users and whether it was created."""
		if not user_id_1 or not user_id_2:
			raise InvalidRequestError("user_ids_required")
		if user_id_1 == user_id_2:
			raise InvalidRequestError("cannot_message_self")
		existing = await self._repo.find_direct_conversation(user_id_1, user_id_2)
		if existing is not None:
			return existing, False
		conversation = await self._repo.create_direct_conversation(user_id_1, user_id_2)
		logger.info("chat conversation created id=%s", conversation.id)
		return conversation, True

	async def list_user_conversations(self, user_id: int) -> List[ConversationSummary]:
		conversations = await self._repo.list_user_conversations(user_id)
		summaries: List[ConversationSummary] = []
		for conversation in conversations:
			participants = await self._repo.list_participants(conversation.id, exclude_user_id=user_id)
			last = await self._repo.last_message(conversation.id)
			unread = await self._repo.count_unread(conversation.id, user_id)
			summaries.append(
				ConversationSummary(
					id=conversation.id,
					type=conversation.type,
					created_at=conversation.created_at,
					updated_at=conversation.updated_at,
					participants=[Participant.from_model(user) for user in participants],
					last_message=last.content if last else None,
					last_message_at=last.created_at if last else None,
					unread_count=unread,
				)
			)
		return summaries

	async def send_message(
		self,
		conversation_id: Optional[int],
		sender_id: Optional[int],
		content: Optional[str],
	) -> int:
		if not conversation_id or not sender_id or not content:
			raise InvalidRequestError("conversation_id_sender_id_content_required")
		if not await self._repo.is_participant(conversation_id, sender_id):
			raise ForbiddenError()
		message = await self._repo.create_message(conversation_id, sender_id, content)
		await self._repo.touch_conversation(conversation_id)
		obs_metrics.inc_chat_send()
		if self._hub is not None:
			payload = message.to_dict()
			for participant_id in await self._repo.participant_ids(conversation_id):
				if participant_id == sender_id:
					continue
				await self._hub.deliver_message(str(sender_id), str(participant_id), str(conversation_id), payload)
		return message.id

	async def list_messages(
		self,
		conversation_id: int,
		user_id: Optional[int],
		*,
		limit: int = 50,
		offset: int = 0,
	) -> List[MessageItem]:
		if user_id is None or not await self._repo.is_participant(conversation_id, user_id):
			raise ForbiddenError()
		rows = await self._repo.list_messages(conversation_id, limit=limit, offset=offset)
		# Page is fetched newest-first; clients render oldest-first
		return [MessageItem.from_model(message) for message in reversed(rows)]

	async def mark_as_read(self, conversation_id: int, user_id: Optional[int]) -> int:
		if not user_id:
			raise InvalidRequestError("user_id_required")
		return await self._repo.mark_read(conversation_id, user_id)

	async def available_users(self, user_id: Optional[int], company_id: Optional[int]) -> List[AvailableUser]:
		if not user_id or not company_id:
			raise InvalidRequestError("user_id_company_id_required")
		users = await self._repo.list_company_users(company_id, exclude_user_id=user_id)
		return [AvailableUser.from_model(user) for user in users]
