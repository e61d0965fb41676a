"""
Prometheus metrics for the license service.

Custom metrics for business outcomes and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# License metrics
licenses_issued_total = Counter(
    "licenses_issued_total",
    "Total licenses issued",
    ["tier"],
)

licenses_revoked_total = Counter(
    "licenses_revoked_total",
    "Total licenses revoked",
)

licenses_expired_total = Counter(
    "licenses_expired_total",
    "Total licenses flipped to expired",
)

license_validations_total = Counter(
    "license_validations_total",
    "License validations by outcome",
    ["mode", "result"],
)

# Activation metrics
licenses_activated_total = Counter(
    "licenses_activated_total",
    "Total new hardware activations",
)

licenses_deactivated_total = Counter(
    "licenses_deactivated_total",
    "Total hardware deactivations",
)

activation_limit_reached_total = Counter(
    "activation_limit_reached_total",
    "Activations refused because every slot was taken",
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors",
    ["error_type", "endpoint"],
)
