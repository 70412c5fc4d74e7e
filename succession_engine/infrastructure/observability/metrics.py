"""Prometheus metrics for monitoring scenario calculations and notification delivery"""

from prometheus_client import Counter, Histogram

# Calculation metrics
scenario_calculation_counter = Counter(
    "succession_scenario_calculations_total",
    "Scenario calculations run",
    ["regime", "outcome"],  # outcome: completed | error
)

scenario_residual_counter = Counter(
    "succession_scenario_residual_total",
    "Calculated scenarios by residual bucket",
    ["bucket"],  # none | rounding | undistributed | over_allocated
)

# Notification metrics
notification_latency_histogram = Histogram(
    "notification_latency_seconds",
    "Notification webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

notification_failure_counter = Counter(
    "notification_failures_total",
    "Failed notification deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_scenario_calculation(regime: str | None, completed: bool, residual_minor_units: int = 0) -> None:
    """Record one scenario calculation and bucket its undistributed residual"""
    outcome = "completed" if completed else "error"
    scenario_calculation_counter.labels(regime=regime or "unresolved", outcome=outcome).inc()
    if not completed:
        return

    if residual_minor_units == 0:
        bucket = "none"
    elif abs(residual_minor_units) <= 100:
        bucket = "rounding"
    elif residual_minor_units > 0:
        bucket = "undistributed"
    else:
        bucket = "over_allocated"

    scenario_residual_counter.labels(bucket=bucket).inc()
