"""Pydantic schemas for the direct-messaging API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import ChatUser, Conversation, Message


class ConversationRequest(BaseModel):
	user_id_1: Optional[int] = None
	user_id_2: Optional[int] = None


class ConversationResponse(BaseModel):
	id: int
	type: str
	created_at: datetime

	@classmethod
	def from_model(cls, conversation: Conversation) -> "ConversationResponse":
		return cls(id=conversation.id, type=conversation.type, created_at=conversation.created_at)


class Participant(BaseModel):
	id: int
	email: str
	role: str

	@classmethod
	def from_model(cls, user: ChatUser) -> "Participant":
		return cls(id=user.id, email=user.email, role=user.role)


class ConversationSummary(BaseModel):
	id: int
	type: str
	created_at: datetime
	updated_at: datetime
	participants: List[Participant]
	last_message: Optional[str] = None
	last_message_at: Optional[datetime] = None
	unread_count: int = 0


class SendMessageRequest(BaseModel):
	conversation_id: Optional[int] = None
	sender_id: Optional[int] = None
	content: Optional[str] = Field(default=None, max_length=4000)


class SendMessageResponse(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	message: str = "message_sent"
	message_id: int = Field(..., serialization_alias="messageId")


class MessageItem(BaseModel):
	id: int
	content: str
	sender_id: int
	read: bool
	created_at: datetime
	sender_email: Optional[str] = None
	sender_role: Optional[str] = None

	@classmethod
	def from_model(cls, message: Message) -> "MessageItem":
		return cls(
			id=message.id,
			content=message.content,
			sender_id=message.sender_id,
			read=message.read,
			created_at=message.created_at,
			sender_email=message.sender_email,
			sender_role=message.sender_role,
		)


class MarkReadRequest(BaseModel):
	user_id: Optional[int] = None


class MarkReadResponse(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	message: str = "messages_marked_read"
	updated_count: int = Field(..., serialization_alias="updatedCount")


class AvailableUser(BaseModel):
	id: int
	email: str
	role: str
	company_id: Optional[int] = None
	has_conversation: bool = False

	@classmethod
	def from_model(cls, user: ChatUser) -> "AvailableUser":
		return cls(id=user.id, email=user.email, role=user.role, company_id=user.company_id)
