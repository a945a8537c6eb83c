"""Prometheus metrics for the engine workers."""

from prometheus_client import Counter, Histogram, Info

ENGINE_INFO = Info("visibility_engine", "Brand visibility engine info")
ENGINE_INFO.info({"version": "1.0.0", "name": "visibility_engine"})

RESPONSES_SCORED = Counter(
    "responses_scored_total",
    "Total responses scored",
    ["flag"],
)

CITATIONS_REJECTED = Counter(
    "citations_rejected_total",
    "Cited URLs dropped during validation",
    ["reason"],
)

SCOPE_AGGREGATIONS = Counter(
    "scope_aggregations_total",
    "Total scope aggregation runs",
    ["scope_kind", "status"],
)

SCOPE_AGGREGATION_DURATION = Histogram(
    "scope_aggregation_duration_seconds",
    "Scope aggregation duration in seconds",
    ["scope_kind"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5],
)
