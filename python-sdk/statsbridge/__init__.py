"""
Statistics bridge for Python

Forwards statsd-style flushed aggregates (counters, gauges, timers) to
Stackdriver and Prometheus through OpenTelemetry exporters.
"""

from statsbridge.backend import OpenCensusBackend, init
from statsbridge.errors import (
    ConfigurationError,
    RecordingError,
    RegistrationError,
    StatsBridgeError,
)
from statsbridge.exporters import ExporterRegistry
from statsbridge.logging import LogConfig, new_logger
from statsbridge.metrics import Family, MetricRegistrationCache
from statsbridge.stats import Stats

__all__ = [
    # Backend
    "OpenCensusBackend",
    "init",
    # Errors
    "ConfigurationError",
    "RecordingError",
    "RegistrationError",
    "StatsBridgeError",
    # Core
    "ExporterRegistry",
    "Family",
    "MetricRegistrationCache",
    "Stats",
    # Logging
    "LogConfig",
    "new_logger",
]

__version__ = "0.1.0"
