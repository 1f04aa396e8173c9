"""Domain models for the realtime side-channel."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

PRESENCE_CHANGED = "presence:changed"
MESSAGE_DELIVERED = "message:delivered"
TYPING_INDICATOR = "typing:indicator"
SYS_ACK = "sys.ack"
SYS_WARN = "sys.warn"


class PresenceStatus(str, Enum):
	ONLINE = "online"
	OFFLINE = "offline"


class DeliveryKind(str, Enum):
	MESSAGE_DELIVERED = "message-delivered"
	TYPING_INDICATOR = "typing-indicator"

	@property
	def event_name(self) -> str:
		if self is DeliveryKind.MESSAGE_DELIVERED:
			return MESSAGE_DELIVERED
		return TYPING_INDICATOR


@dataclass(slots=True)
class Connection:
	"""One live transport session; the registry only ever stores its id."""

	connection_id: str
	user_id: Optional[str] = None
	authenticated_user_id: Optional[str] = None

	@property
	def announced(self) -> bool:
		return self.user_id is not None


@dataclass(slots=True, frozen=True)
class AnnounceResult:
	"""Outcome of a registry announce.

	``came_online`` is True only for the absent -> online transition.
	``replaced_connection_id`` names a different connection that previously
	represented the user and has now been superseded. ``released_user_id`` is
	set when the announcing connection used to represent another user, who is
	now offline.
	"""

	user_id: str
	connection_id: str
	came_online: bool
	replaced_connection_id: Optional[str] = None
	released_user_id: Optional[str] = None

	@property
	def changed(self) -> bool:
		return (
			self.came_online
			or self.replaced_connection_id is not None
			or self.released_user_id is not None
		)


@dataclass(slots=True, frozen=True)
class PresenceEvent:
	user_id: str
	status: PresenceStatus

	def to_payload(self) -> Dict[str, str]:
		return {"userId": self.user_id, "status": self.status.value}


@dataclass(slots=True, frozen=True)
class DeliveryEvent:
	target_user_id: str
	kind: DeliveryKind
	payload: Dict[str, Any] = field(default_factory=dict)
