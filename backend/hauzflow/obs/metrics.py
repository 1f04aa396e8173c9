"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNTER = Counter(
	"hauzflow_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"hauzflow_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"hauzflow_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"hauzflow_socketio_events_total",
	"Socket.IO events handled per namespace",
	["namespace", "event"],
)

SOCKET_REJECTS = Counter(
	"hauzflow_socketio_rejects_total",
	"Socket.IO inbound events rejected",
	["namespace", "event", "code"],
)

PRESENCE_TRANSITIONS = Counter(
	"hauzflow_presence_transitions_total",
	"Presence transitions broadcast to connected clients",
	["status"],
)

PRESENCE_ONLINE = Gauge(
	"hauzflow_presence_online_users",
	"Users currently mapped to a live connection",
)

REALTIME_DELIVERIES = Counter(
	"hauzflow_realtime_deliveries_total",
	"Targeted realtime deliveries by outcome",
	["kind", "outcome"],
)

CHAT_MESSAGES = Counter(
	"hauzflow_chat_messages_total",
	"Direct messages persisted",
)

REDIS_UP = Gauge("hauzflow_redis_up", "Redis reachability (1 = reachable)")
POSTGRES_UP = Gauge("hauzflow_postgres_up", "Postgres reachability (1 = reachable)")


def observe_request(route: str, method: str, status: int, duration_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(duration_seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def socket_reject(namespace: str, event: str, code: str) -> None:
	SOCKET_REJECTS.labels(namespace=namespace, event=event, code=code).inc()


def presence_transition(status: str) -> None:
	PRESENCE_TRANSITIONS.labels(status=status).inc()


def presence_online(count: int) -> None:
	PRESENCE_ONLINE.set(float(count))


def delivery(kind: str, outcome: str) -> None:
	REALTIME_DELIVERIES.labels(kind=kind, outcome=outcome).inc()


def inc_chat_send() -> None:
	CHAT_MESSAGES.inc()


def mark_redis(ok: bool) -> None:
	REDIS_UP.set(1.0 if ok else 0.0)


def mark_postgres(ok: bool) -> None:
	POSTGRES_UP.set(1.0 if ok else 0.0)
