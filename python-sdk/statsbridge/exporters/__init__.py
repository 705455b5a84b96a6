"""Backend exporters and their configuration."""

from statsbridge.exporters.base import OpenTelemetryExporter
from statsbridge.exporters.config import (
    PrometheusConfig,
    StackdriverConfig,
    load_backend_configs,
)
from statsbridge.exporters.prometheus import PrometheusExporter
from statsbridge.exporters.registry import ExporterRegistry
from statsbridge.exporters.stackdriver import StackdriverExporter

__all__ = [
    "OpenTelemetryExporter",
    "PrometheusConfig",
    "StackdriverConfig",
    "load_backend_configs",
    "PrometheusExporter",
    "ExporterRegistry",
    "StackdriverExporter",
]
