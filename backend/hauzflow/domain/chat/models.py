"""Domain models for direct messaging."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

DIRECT = "direct"


@dataclass(slots=True)
class ChatUser:
	id: int
	email: str
	role: str
	company_id: Optional[int] = None

	@classmethod
	def from_record(cls, row: Any) -> "ChatUser":
		return cls(
			id=int(row["id"]),
			email=str(row["email"]),
			role=str(row["role"]),
			company_id=row["company_id"] if "company_id" in set(row.keys()) else None,
		)


@dataclass(slots=True)
class Conversation:
	id: int
	type: str
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_record(cls, row: Any) -> "Conversation":
		return cls(
			id=int(row["id"]),
			type=str(row["type"]),
			created_at=row["created_at"],
			updated_at=row["updated_at"] or row["created_at"],
		)


@dataclass(slots=True)
class Message:
	id: int
	conversation_id: int
	sender_id: int
	content: str
	read: bool
	created_at: datetime
	sender_email: Optional[str] = None
	sender_role: Optional[str] = None

	@classmethod
	def from_record(cls, row: Any) -> "Message":
		keys = set(row.keys())
		return cls(
			id=int(row["id"]),
			conversation_id=int(row["conversation_id"]),
			sender_id=int(row["sender_id"]),
			content=str(row["content"]),
			read=bool(row["read"]),
			created_at=row["created_at"],
			sender_email=row["sender_email"] if "sender_email" in keys else None,
			sender_role=row["sender_role"] if "sender_role" in keys else None,
		)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"conversation_id": self.conversation_id,
			"sender_id": self.sender_id,
			"content": self.content,
			"read": self.read,
			"created_at": self.created_at.isoformat(),
		}
