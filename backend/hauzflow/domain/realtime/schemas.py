"""Pydantic schemas for inbound realtime events."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _InboundEvent(BaseModel):
	model_config = ConfigDict(populate_by_name=True, extra="ignore")

	@field_validator("*", mode="before")
	@classmethod
	def _ids_as_text(cls, value: Any, info) -> Any:
		# Clients send numeric ids straight from SQL rows
		if info.field_name != "message" and isinstance(value, int) and not isinstance(value, bool):
			return str(value)
		return value


class AnnounceIdentity(_InboundEvent):
	user_id: str = Field(..., min_length=1, alias="userId")


class SendMessageEvent(_InboundEvent):
	target_user_id: str = Field(..., min_length=1, alias="targetUserId")
	conversation_id: str = Field(..., min_length=1, alias="conversationId")
	message: Any = Field(...)


class TypingEvent(_InboundEvent):
	target_user_id: str = Field(..., min_length=1, alias="targetUserId")
	conversation_id: str = Field(..., min_length=1, alias="conversationId")
