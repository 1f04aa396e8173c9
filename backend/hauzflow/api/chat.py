"""FastAPI endpoints for direct conversations and messages."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from hauzflow.api.deps import get_chat_service
from hauzflow.api.errors import to_http_error
from hauzflow.domain.chat.exceptions import ChatError
from hauzflow.domain.chat.schemas import (
	AvailableUser,
	ConversationRequest,
	ConversationResponse,
	ConversationSummary,
	MarkReadRequest,
	MarkReadResponse,
	MessageItem,
	SendMessageRequest,
	SendMessageResponse,
)
from hauzflow.domain.chat.service import ChatService

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/conversations", response_model=ConversationResponse)
async def get_or_create_conversation_endpoint(
	payload: ConversationRequest,
	response: Response,
	service: ChatService = Depends(get_chat_service),
) -> ConversationResponse:
	try:
		conversation, created = await service.get_or_create_conversation(payload.user_id_1, payload.user_id_2)
	except ChatError as exc:
		raise to_http_error(exc) from None
	response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
	return ConversationResponse.from_model(conversation)


@router.get("/conversations/user/{user_id}", response_model=List[ConversationSummary])
async def list_user_conversations_endpoint(
	user_id: int,
	service: ChatService = Depends(get_chat_service),
) -> List[ConversationSummary]:
	return await service.list_user_conversations(user_id)


@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageItem])
async def list_messages_endpoint(
	conversation_id: int,
	user_id: Optional[int] = Query(default=None),
	limit: int = Query(default=50, ge=1, le=200),
	offset: int = Query(default=0, ge=0),
	service: ChatService = Depends(get_chat_service),
) -> List[MessageItem]:
	try:
		return await service.list_messages(conversation_id, user_id, limit=limit, offset=offset)
	except ChatError as exc:
		raise to_http_error(exc) from None


@router.post(
	"/messages",
	response_model=SendMessageResponse,
	response_model_by_alias=True,
	status_code=status.HTTP_201_CREATED,
)
async def send_message_endpoint(
	payload: SendMessageRequest,
	service: ChatService = Depends(get_chat_service),
) -> SendMessageResponse:
	try:
		message_id = await service.send_message(payload.conversation_id, payload.sender_id, payload.content)
	except ChatError as exc:
		raise to_http_error(exc) from None
	return SendMessageResponse(message_id=message_id)


@router.put(
	"/conversations/{conversation_id}/read",
	response_model=MarkReadResponse,
	response_model_by_alias=True,
)
async def mark_read_endpoint(
	conversation_id: int,
	payload: MarkReadRequest,
	service: ChatService = Depends(get_chat_service),
) -> MarkReadResponse:
	try:
		updated = await service.mark_as_read(conversation_id, payload.user_id)
	except ChatError as exc:
		raise to_http_error(exc) from None
	return MarkReadResponse(updated_count=updated)


@router.get("/users/available", response_model=List[AvailableUser])
async def available_users_endpoint(
	user_id: Optional[int] = Query(default=None),
	company_id: Optional[int] = Query(default=None),
	service: ChatService = Depends(get_chat_service),
) -> List[AvailableUser]:
	try:
		return await service.available_users(user_id, company_id)
	except ChatError as exc:
		raise to_http_error(exc) from None
