"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hauzflow.api import chat, ops, presence
from hauzflow.api.errors import install_error_handlers
from hauzflow.api.middleware_request_id import RequestIdMiddleware
from hauzflow.domain.chat import ChatService, InMemoryChatRepository, PostgresChatRepository
from hauzflow.domain.chat.repo import ChatRepository
from hauzflow.domain.realtime import (
	ConnectionRegistry,
	InMemoryConnectionRegistry,
	RealtimeHub,
	RedisConnectionRegistry,
)
from hauzflow.domain.realtime.sockets import RealtimeNamespace
from hauzflow.infra import postgres
from hauzflow.infra import redis as redis_infra
from hauzflow.infra.redis import redis_client
from hauzflow.obs import init as obs_init
from hauzflow.settings import settings


def _build_registry() -> ConnectionRegistry:
	if settings.realtime_registry == "redis":
		return RedisConnectionRegistry(redis_client, key_prefix=settings.redis_key_prefix)
	return InMemoryConnectionRegistry()


def _build_chat_repository() -> ChatRepository:
	if settings.chat_store == "postgres":
		return PostgresChatRepository()
	return InMemoryChatRepository()


def _allowed_origins() -> list[str]:
	allow_origins = list(settings.cors_allow_origins)
	if not allow_origins:
		allow_origins = ["http://localhost:5173", "http://localhost:3000"] if settings.is_dev() else []
	# Starlette disallows wildcard '*' with allow_credentials=True
	if "*" in allow_origins:
		allow_origins = ["http://localhost:5173", "http://localhost:3000"] if settings.is_dev() else []
	return allow_origins


@asynccontextmanager
async def lifespan(app: FastAPI):
	if settings.chat_store == "postgres":
		await postgres.init_pool()
	try:
		yield
	finally:
		if settings.chat_store == "postgres":
			await postgres.close_pool()
		if settings.realtime_registry == "redis":
			await redis_infra.close_client()


def create_app(
	*,
	hub: Optional[RealtimeHub] = None,
	chat_repository: Optional[ChatRepository] = None,
) -> FastAPI:
	"""Build the HTTP app, its Socket.IO server and the realtime hub they share.

	The combined ASGI entrypoint is stored on ``app.state.socket_app``.
	"""
	app = FastAPI(title="HauzFlow Realtime", lifespan=lifespan)
	install_error_handlers(app)

	allow_origins = _allowed_origins()
	app.add_middleware(
		CORSMiddleware,
		allow_origins=allow_origins,
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)

	if hub is None:
		hub = RealtimeHub(_build_registry())
	repository = chat_repository if chat_repository is not None else _build_chat_repository()

	# Use the same allowed origins for Socket.IO as for the REST API
	sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=allow_origins)
	namespace = RealtimeNamespace(hub, settings.realtime_namespace)
	sio.register_namespace(namespace)
	socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
	obs_init(app)

	# Ensure every request carries an X-Request-Id and make it available on request.state
	app.add_middleware(RequestIdMiddleware)

	app.state.hub = hub
	app.state.sio = sio
	app.state.realtime_namespace = namespace
	app.state.chat_repository = repository
	app.state.chat_service = ChatService(repository, hub)
	app.state.socket_app = socket_app

	app.include_router(chat.router, tags=["chat"])
	app.include_router(presence.router, tags=["presence"])
	app.include_router(ops.router, tags=["ops"])
	return app


app = create_app()
socket_app = app.state.socket_app
