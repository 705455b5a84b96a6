"""Prometheus exporter with an embedded scrape endpoint."""

import structlog
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from prometheus_client import start_http_server

from statsbridge.errors import ConfigurationError
from statsbridge.exporters.base import OpenTelemetryExporter

logger = structlog.get_logger(__name__)


class PrometheusExporter(OpenTelemetryExporter):
    """Exposes aggregated views in the default prometheus_client registry.

    The bridge's own counters live in the same registry, so one scrape
    returns both.
    """

    backend_name = "prometheus"

    def __init__(self, port: int, host: str = "0.0.0.0", start_server: bool = True, **kwargs):
        self.port = port
        self.host = host
        self._server = None
        self._thread = None
        super().__init__(PrometheusMetricReader(), **kwargs)
        if start_server:
            self._start_server()

    def _start_server(self) -> None:
        """Start the scrape endpoint.

        Raises:
            ConfigurationError: the port cannot be bound.
        """
        try:
            self._server, self._thread = start_http_server(self.port, addr=self.host)
        except OSError as exc:
            logger.error("prometheus.server_failed", port=self.port, host=self.host, error=str(exc))
            super().shutdown()
            raise ConfigurationError(
                f"cannot start prometheus endpoint on {self.host}:{self.port}: {exc}",
                field="port",
            ) from exc
        logger.info(
            "prometheus.server_started",
            endpoint=f"http://{self.host}:{self.port}/metrics",
        )

    def shutdown(self) -> None:
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        super().shutdown()
