"""Read-only presence lookups over HTTP."""

from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter, Depends

from hauzflow.api.deps import get_hub
from hauzflow.domain.realtime.hub import RealtimeHub
from hauzflow.domain.realtime.models import PresenceStatus

router = APIRouter(prefix="/api/presence", tags=["presence"])


@router.get("/online")
async def online_users(hub: RealtimeHub = Depends(get_hub)) -> Dict[str, List[str]]:
	return {"users": await hub.online_users()}


@router.get("/{user_id}")
async def user_presence(user_id: str, hub: RealtimeHub = Depends(get_hub)) -> Dict[str, str]:
	online = await hub.is_online(user_id)
	status = PresenceStatus.ONLINE if online else PresenceStatus.OFFLINE
	return {"userId": user_id, "status": status.value}
