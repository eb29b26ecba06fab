from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "studymood_requests_total",
    "Total HTTP requests processed by the study mood tracker",
    ("method", "path", "status"),
)

REQUEST_LATENCY = Histogram(
    "studymood_request_latency_seconds",
    "HTTP request latency in seconds",
    ("method", "path"),
)

REQUEST_ERRORS = Counter(
    "studymood_request_errors_total",
    "HTTP requests resulting in server errors",
    ("method", "path", "status"),
)

USER_API_COUNTER = Counter(
    "studymood_user_api_hits_total",
    "Authenticated API hits per endpoint",
    ("endpoint",),
)

SUGGESTIONS_EMITTED = Counter(
    "studymood_suggestions_total",
    "Study suggestions produced by the rule engine",
    ("category",),
)

ANALYTICS_FAILURES = Counter(
    "studymood_analytics_failures_total",
    "Analytics requests that could not be served",
    ("reason",),
)

__all__ = [
    "ANALYTICS_FAILURES",
    "REQUEST_COUNT",
    "REQUEST_ERRORS",
    "REQUEST_LATENCY",
    "SUGGESTIONS_EMITTED",
    "USER_API_COUNTER",
]
