"""Realtime presence and targeted delivery."""

from .hub import RealtimeError, RealtimeHub
from .registry import ConnectionRegistry, InMemoryConnectionRegistry
from .redis_registry import RedisConnectionRegistry

__all__ = [
	"ConnectionRegistry",
	"InMemoryConnectionRegistry",
	"RealtimeError",
	"RealtimeHub",
	"RedisConnectionRegistry",
]
