"""Metric registration cache and bridge self-telemetry."""

from statsbridge.metrics.cache import Family, MetricRegistrationCache, sanitize
from statsbridge.metrics.registry import Registry

__all__ = ["Family", "MetricRegistrationCache", "sanitize", "Registry"]
