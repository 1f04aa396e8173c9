import json
import logging

from hauzflow.obs import logging as obs_logging


def _record(**extra) -> logging.LogRecord:
	record = logging.LogRecord("hauzflow.test", logging.INFO, __file__, 1, "chat message stored", None, None)
	for key, value in extra.items():
		setattr(record, key, value)
	return record


def test_formatter_includes_bound_context_and_redacts_content():
	tokens = obs_logging.bind_context(request_id="req-1", route="/api/messages", client_ip="10.0.0.1")
	try:
		line = obs_logging.JSONLogFormatter().format(_record(content="secret words", conversation_id=3))
	finally:
		obs_logging.reset_context(tokens)

	payload = json.loads(line)
	assert payload["msg"] == "chat message stored"
	assert payload["request_id"] == "req-1"
	assert payload["route"] == "/api/messages"
	assert payload["ip"] == "10.0.0.1"
	assert payload["content"] == "[redacted]"
	assert payload["conversation_id"] == 3


def test_reset_context_clears_request_id():
	tokens = obs_logging.bind_context(request_id="req-2")
	assert obs_logging.current_request_id() == "req-2"

	obs_logging.reset_context(tokens)

	assert obs_logging.current_request_id() is None
	payload = json.loads(obs_logging.JSONLogFormatter().format(_record()))
	assert "request_id" not in payload
