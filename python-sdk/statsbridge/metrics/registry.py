"""Bridge self-telemetry in the default prometheus_client registry."""

from prometheus_client import REGISTRY, Counter

# Use default registry
Registry = REGISTRY

records_total = Counter(
    "statsbridge_records_total",
    "Recording attempts forwarded to the exporters",
    ["family", "status"],
    registry=Registry,
)

measures_registered_total = Counter(
    "statsbridge_measures_registered_total",
    "Measures and views created on first observation of a metric name",
    ["family"],
    registry=Registry,
)

flushes_total = Counter(
    "statsbridge_flushes_total",
    "Flush events handled",
    registry=Registry,
)
