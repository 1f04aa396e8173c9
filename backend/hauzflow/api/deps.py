"""Request-scoped accessors for the services built in ``create_app``."""

from __future__ import annotations

from fastapi import Request

from hauzflow.domain.chat.service import ChatService
from hauzflow.domain.realtime.hub import RealtimeHub


def get_hub(request: Request) -> RealtimeHub:
	return request.app.state.hub


def get_chat_service(request: Request) -> ChatService:
	return request.app.state.chat_service
