import prometheus_client
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

# Guard against duplicated metric registration when the module is imported
# multiple times (for example, when running uvicorn with the reloader).
REQUEST_COUNT = getattr(prometheus_client, "secretlink_REQUEST_COUNT", None)
REQUEST_LATENCY = getattr(prometheus_client, "secretlink_REQUEST_LATENCY", None)
TOKEN_OPERATIONS = getattr(prometheus_client, "secretlink_TOKEN_OPERATIONS", None)
STORE_OPERATIONS = getattr(prometheus_client, "secretlink_STORE_OPERATIONS", None)
STORE_OPERATION_DURATION = getattr(prometheus_client, "secretlink_STORE_OPERATION_DURATION", None)
STORE_ERRORS = getattr(prometheus_client, "secretlink_STORE_ERRORS", None)
SWEEP_EVICTIONS = getattr(prometheus_client, "secretlink_SWEEP_EVICTIONS", None)
LIVE_TOKENS = getattr(prometheus_client, "secretlink_LIVE_TOKENS", None)
NOTIFY_FAILURES = getattr(prometheus_client, "secretlink_NOTIFY_FAILURES", None)
RATE_LIMIT_HITS = getattr(prometheus_client, "secretlink_RATE_LIMIT_HITS", None)

if REQUEST_COUNT is None:
    # HTTP Metrics
    REQUEST_COUNT = Counter(
        "http_requests_total", "Total HTTP requests", ["method", "endpoint", "http_status"]
    )
    REQUEST_LATENCY = Histogram(
        "http_request_latency_seconds", "HTTP request latency in seconds", ["method", "endpoint"]
    )

    # Token lifecycle metrics
    TOKEN_OPERATIONS = Counter(
        "token_operations_total",
        "Total token operations",
        # operation: issue/validate/redeem/revoke; outcome: ok/valid/not_found/expired/...
        ["operation", "kind", "outcome"],
    )
    SWEEP_EVICTIONS = Counter("token_sweep_evictions_total", "Tokens evicted by expiry sweeps")
    LIVE_TOKENS = Gauge("tokens_live", "Tokens left in the store after the last sweep")
    NOTIFY_FAILURES = Counter(
        "token_notify_failures_total", "Issued tokens revoked because delivery failed", ["kind"]
    )

    RATE_LIMIT_HITS = Counter(
        "rate_limit_hits_total", "Requests rejected by the rate limiter", ["group"]
    )

    # Store metrics
    STORE_OPERATIONS = Counter(
        "token_store_operations_total", "Total token store operations", ["operation", "backend"]
    )
    STORE_OPERATION_DURATION = Histogram(
        "token_store_operation_duration_seconds",
        "Token store operation duration in seconds",
        ["operation", "backend"],
    )
    STORE_ERRORS = Counter(
        "token_store_errors_total", "Token store failures", ["operation", "backend"]
    )

    prometheus_client.secretlink_REQUEST_COUNT = REQUEST_COUNT  # type: ignore[attr-defined]
    prometheus_client.secretlink_REQUEST_LATENCY = REQUEST_LATENCY  # type: ignore[attr-defined]
    prometheus_client.secretlink_TOKEN_OPERATIONS = TOKEN_OPERATIONS  # type: ignore[attr-defined]
    prometheus_client.secretlink_STORE_OPERATIONS = STORE_OPERATIONS  # type: ignore[attr-defined]
    prometheus_client.secretlink_STORE_OPERATION_DURATION = STORE_OPERATION_DURATION  # type: ignore[attr-defined]
    prometheus_client.secretlink_STORE_ERRORS = STORE_ERRORS  # type: ignore[attr-defined]
    prometheus_client.secretlink_SWEEP_EVICTIONS = SWEEP_EVICTIONS  # type: ignore[attr-defined]
    prometheus_client.secretlink_LIVE_TOKENS = LIVE_TOKENS  # type: ignore[attr-defined]
    prometheus_client.secretlink_NOTIFY_FAILURES = NOTIFY_FAILURES  # type: ignore[attr-defined]
    prometheus_client.secretlink_RATE_LIMIT_HITS = RATE_LIMIT_HITS  # type: ignore[attr-defined]


def record_token_operation(operation: str, kind: str, outcome: str) -> None:
    if TOKEN_OPERATIONS is not None:
        TOKEN_OPERATIONS.labels(operation=operation, kind=kind, outcome=outcome).inc()


def record_store_operation(
    operation: str, backend: str, duration: float | None = None, failed: bool = False
) -> None:
    if STORE_OPERATIONS is not None:
        STORE_OPERATIONS.labels(operation=operation, backend=backend).inc()
    if duration is not None and STORE_OPERATION_DURATION is not None:
        STORE_OPERATION_DURATION.labels(operation=operation, backend=backend).observe(duration)
    if failed and STORE_ERRORS is not None:
        STORE_ERRORS.labels(operation=operation, backend=backend).inc()


def metrics_response():
    data = generate_latest()
    return data, CONTENT_TYPE_LATEST
