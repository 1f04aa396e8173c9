"""Custom exceptions for the messaging service."""

from __future__ import annotations

from fastapi import status


class ChatError(Exception):
	"""Base class for messaging errors."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "chat_error"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class InvalidRequestError(ChatError):
	"""Required identifiers missing or contradictory."""

	detail = "invalid_request"


class ForbiddenError(ChatError):
	"""Raised when the acting user does not participate in the conversation."""

	status_code = status.HTTP_403_FORBIDDEN
	detail = "not_a_participant"
