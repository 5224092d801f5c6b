"""Prometheus metrics, served at `/metrics` by the HTTP service.

Actions and fee refreshes:

    token_deployer_actions_total{kind, outcome}
        Finished deploy and mint actions. `outcome` is one of `succeeded`,
        `reverted`, `dropped` or `failed`.

    token_deployer_action_duration_seconds{kind}
        Time from submission to confirmation of successful actions.

    token_deployer_fee_refreshes_total{outcome}
        Gas station fetches, `succeeded` or `failed`.

HTTP endpoints, labelled by `method` and `path`:

    token_deployer_http_requests_total
    token_deployer_http_exceptions_total
    token_deployer_http_request_latency_seconds
"""
import functools

from prometheus_client import Counter, Histogram

ACTIONS_TOTAL = Counter(
    "token_deployer_actions_total", "Finished actions.", labelnames=["kind", "outcome"]
)
ACTION_DURATION = Histogram(
    "token_deployer_action_duration_seconds",
    "Duration of successful actions, from submission to confirmation.",
    labelnames=["kind"],
    buckets=(1, 2.5, 5, 10, 20, 30, 60, 120, 300, 600),
)
FEE_REFRESHES_TOTAL = Counter(
    "token_deployer_fee_refreshes_total", "Gas station fetches.", labelnames=["outcome"]
)

HTTP_REQUESTS_TOTAL = Counter(
    "token_deployer_http_requests_total", "HTTP requests received.", labelnames=["method", "path"]
)
HTTP_EXCEPTIONS_TOTAL = Counter(
    "token_deployer_http_exceptions_total",
    "HTTP requests ending in an exception, including aborts.",
    labelnames=["method", "path"],
)
HTTP_REQUEST_LATENCY = Histogram(
    "token_deployer_http_request_latency_seconds",
    "Time spent processing HTTP requests.",
    labelnames=["method", "path"],
)


def record_action(kind: str, outcome: str, duration_seconds=None) -> None:
    ACTIONS_TOTAL.labels(kind, outcome).inc()
    if duration_seconds is not None:
        ACTION_DURATION.labels(kind).observe(float(duration_seconds))


def record_fee_refresh(outcome: str) -> None:
    FEE_REFRESHES_TOTAL.labels(outcome).inc()


def track_request(method: str, path: str):
    """Decorate a view to count its requests and exceptions and time it."""

    def decorator(view):
        @functools.wraps(view)
        def wrapper(*args, **kwargs):
            HTTP_REQUESTS_TOTAL.labels(method, path).inc()
            with HTTP_EXCEPTIONS_TOTAL.labels(method, path).count_exceptions():
                with HTTP_REQUEST_LATENCY.labels(method, path).time():
                    return view(*args, **kwargs)

        return wrapper

    return decorator
