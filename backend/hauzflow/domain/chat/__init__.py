"""Direct messaging domain exports."""

from .repo import InMemoryChatRepository, PostgresChatRepository
from .service import ChatService

__all__ = [
	"ChatService",
	"InMemoryChatRepository",
	"PostgresChatRepository",
]
