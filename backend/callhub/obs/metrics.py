"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Histogram


REQUEST_COUNTER = Counter(
	"callhub_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"callhub_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SUBMISSIONS_TOTAL = Counter(
	"callhub_submissions_total",
	"Accepted intake drafts by kind",
	["kind"],
)

DECISIONS_TOTAL = Counter(
	"callhub_decisions_total",
	"Operator decisions by kind, decision and outcome",
	["kind", "decision", "outcome"],
)

DECISION_DURATION_SECONDS = Histogram(
	"callhub_decision_duration_seconds",
	"Time spent applying an operator decision",
	["decision"],
	buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

BOOKMARK_TRANSITIONS_TOTAL = Counter(
	"callhub_bookmark_transitions_total",
	"Bookmark state machine transitions",
	["transition"],
)

REPORT_TRANSITIONS_TOTAL = Counter(
	"callhub_report_transitions_total",
	"Report triage transitions by resulting status",
	["status"],
)

STORE_ERRORS_TOTAL = Counter(
	"callhub_store_errors_total",
	"Content store failures by collection and operation",
	["collection", "op"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_submission(kind: str) -> None:
	SUBMISSIONS_TOTAL.labels(kind=kind).inc()


def inc_decision(kind: str, decision: str, outcome: str) -> None:
	DECISIONS_TOTAL.labels(kind=kind, decision=decision, outcome=outcome).inc()


def observe_decision(decision: str, elapsed_seconds: float) -> None:
	DECISION_DURATION_SECONDS.labels(decision=decision).observe(elapsed_seconds)


def inc_bookmark_transition(transition: str) -> None:
	BOOKMARK_TRANSITIONS_TOTAL.labels(transition=transition).inc()


def inc_report_transition(status: str) -> None:
	REPORT_TRANSITIONS_TOTAL.labels(status=status).inc()


def inc_store_error(collection: str, op: str) -> None:
	STORE_ERRORS_TOTAL.labels(collection=collection, op=op).inc()
