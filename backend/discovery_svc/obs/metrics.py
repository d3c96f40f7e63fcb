"""Central registry for Prometheus metrics used across the discovery service."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNTER = Counter(
	"discovery_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"discovery_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

PRESENCE_HEARTBEATS = Counter(
	"discovery_presence_heartbeats_total",
	"Presence heartbeats accepted",
)

PRESENCE_TOGGLES = Counter(
	"discovery_presence_toggles_total",
	"Explicit availability toggles",
	["state"],
)

BROADCAST_WRITES = Counter(
	"discovery_broadcast_writes_total",
	"Broadcast mutations",
	["action"],
)

SEARCH_REQUESTS = Counter(
	"discovery_search_requests_total",
	"Semantic search calls by outcome",
	["outcome"],
)

SEARCH_FALLBACKS = Counter(
	"discovery_search_fallback_total",
	"Semantic search calls that degraded to unranked results",
	["reason"],
)

RANKING_BATCH_SIZE = Histogram(
	"discovery_ranking_batch_size",
	"Candidates scored per ranking batch",
	buckets=(1, 5, 10, 25, 50, 100, 250, 500, 1000, 5000),
)

RANKING_BATCH_DURATION = Histogram(
	"discovery_ranking_batch_duration_seconds",
	"Ranking batch wall time",
	buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5),
)

WEIGHTS_CACHE = Counter(
	"discovery_ranking_weights_cache_total",
	"Ranking weights cache lookups",
	["result"],
)

BACKGROUND_RUNS = Counter(
	"discovery_jobs_runs_total",
	"Background job executions",
	["name", "result"],
)

BACKGROUND_DURATION = Histogram(
	"discovery_jobs_duration_seconds",
	"Background job duration",
	["name"],
	buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 15.0, 30.0, 60.0),
)

BACKGROUND_ROWS = Counter(
	"discovery_jobs_rows_total",
	"Rows affected by background jobs",
	["name"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_presence_heartbeat() -> None:
	PRESENCE_HEARTBEATS.inc()


def inc_presence_toggle(is_available: bool) -> None:
	PRESENCE_TOGGLES.labels(state="available" if is_available else "unavailable").inc()


def inc_broadcast_write(action: str) -> None:
	BROADCAST_WRITES.labels(action=action).inc()


def inc_search_request(outcome: str) -> None:
	SEARCH_REQUESTS.labels(outcome=outcome).inc()


def inc_search_fallback(reason: str) -> None:
	SEARCH_FALLBACKS.labels(reason=reason).inc()


def observe_ranking_batch(size: int, elapsed_seconds: float) -> None:
	RANKING_BATCH_SIZE.observe(size)
	RANKING_BATCH_DURATION.observe(elapsed_seconds)


def mark_weights_cache(hit: bool) -> None:
	WEIGHTS_CACHE.labels(result="hit" if hit else "miss").inc()


def record_job_run(name: str, *, result: str, duration_seconds: float | None = None, rows: int = 0) -> None:
	BACKGROUND_RUNS.labels(name=name, result=result).inc()
	if duration_seconds is not None:
		BACKGROUND_DURATION.labels(name=name).observe(duration_seconds)
	if rows:
		BACKGROUND_ROWS.labels(name=name).inc(rows)
