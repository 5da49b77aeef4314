"""Prometheus metric definitions for the statement service."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


statement_requests_total = Counter("statement_requests_total", "Total statement requests", ["service"])
statement_failures_total = Counter(
    "statement_failures_total",
    "Statement requests that could not be produced",
    ["service", "reason"],
)
statement_build_seconds = Histogram(
    "statement_build_seconds",
    "Wall time to collect and build one statement",
    ["service"],
)
statement_partial_total = Counter(
    "statement_partial_total",
    "Statements produced with at least one degraded source",
    ["service"],
)
source_fetch_seconds = Histogram(
    "source_fetch_seconds",
    "Latency of one source record-set fetch",
    ["service", "source"],
)
source_fetch_failures_total = Counter(
    "source_fetch_failures_total",
    "Source fetches that failed or timed out and were degraded to empty",
    ["service", "source", "error_type"],
)
duplicate_deposits_skipped_total = Counter(
    "duplicate_deposits_skipped_total",
    "Deposit credits suppressed because their dedup key was already emitted",
    ["service", "kind"],
)
malformed_amounts_total = Counter(
    "malformed_amounts_total",
    "Monetary fields that failed to parse and were coerced to zero",
    ["service", "field"],
)
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
