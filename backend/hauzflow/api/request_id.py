"""Request ID helpers for endpoints and error handlers."""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from hauzflow.obs import logging as obs_logging

REQUEST_ID_ATTR = obs_logging.REQUEST_ID_ATTR


def get_request_id(request: Optional[Request] = None, default: str = "unknown") -> str:
	"""Return the id bound to ``request`` or to the logging context, else ``default``."""
	if request is not None:
		rid = getattr(request.state, REQUEST_ID_ATTR, None)
		if rid:
			return str(rid)
	return obs_logging.current_request_id() or default
