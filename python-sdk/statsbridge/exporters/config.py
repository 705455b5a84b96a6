"""Backend configuration adapters.

Each adapter validates one backend section of the host configuration and
normalizes it into the keyword arguments its exporter constructor takes.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from statsbridge.errors import ConfigurationError

# Left behind by host config templates when a value was never filled in
PLACEHOLDER = "undefined"

DEFAULT_PROMETHEUS_PORT = 9464
DEFAULT_PROMETHEUS_HOST = "0.0.0.0"
DEFAULT_EXPORT_INTERVAL_SECONDS = 60


@dataclass(frozen=True)
class StackdriverConfig:
    """Google Cloud Monitoring (Stackdriver) settings."""

    name = "stackdriver"

    project_id: str
    export_interval_seconds: float = DEFAULT_EXPORT_INTERVAL_SECONDS

    @classmethod
    def from_section(cls, section: Optional[Mapping[str, Any]]) -> "StackdriverConfig":
        section = section if isinstance(section, Mapping) else {}
        project_id = section.get("projectId")
        if not isinstance(project_id, str) or not project_id.strip() or project_id == PLACEHOLDER:
            raise ConfigurationError(
                "stackdriver backend requires a GCP project id (opencensus.stackdriver.projectId)",
                field="projectId",
            )

        interval = section.get("exportIntervalSeconds", DEFAULT_EXPORT_INTERVAL_SECONDS)
        if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0:
            raise ConfigurationError(
                f"opencensus.stackdriver.exportIntervalSeconds must be a positive number, got {interval!r}",
                field="exportIntervalSeconds",
            )
        return cls(project_id=project_id.strip(), export_interval_seconds=interval)

    def get(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "export_interval_millis": int(self.export_interval_seconds * 1000),
        }


@dataclass(frozen=True)
class PrometheusConfig:
    """Prometheus scrape endpoint settings."""

    name = "prometheus"

    port: int = DEFAULT_PROMETHEUS_PORT
    host: str = DEFAULT_PROMETHEUS_HOST

    @classmethod
    def from_section(cls, section: Optional[Mapping[str, Any]]) -> "PrometheusConfig":
        section = section if isinstance(section, Mapping) else {}
        port = section.get("port")
        if port is None:
            port = DEFAULT_PROMETHEUS_PORT
        elif isinstance(port, str) and port.strip().isdigit():
            port = int(port)

        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
            raise ConfigurationError(
                f"opencensus.prometheus.port must be an integer between 1 and 65535, got {port!r}",
                field="port",
            )

        host = section.get("host") or DEFAULT_PROMETHEUS_HOST
        return cls(port=port, host=host)

    def get(self) -> Dict[str, Any]:
        # The exporter always runs its own scrape endpoint
        return {"port": self.port, "host": self.host, "start_server": True}


BACKEND_ADAPTERS = (StackdriverConfig, PrometheusConfig)


def load_backend_configs(config: Optional[Mapping[str, Any]]) -> List:
    """Validate every configured backend section.

    Args:
        config: Host configuration holding an ``opencensus`` section.

    Returns:
        One adapter per configured backend, in stackdriver, prometheus order.

    Raises:
        ConfigurationError: no ``opencensus`` section, no supported backend in
            it, or a backend section with missing or invalid settings.
    """
    section = (config or {}).get("opencensus")
    if not isinstance(section, Mapping):
        raise ConfigurationError("missing 'opencensus' configuration section", field="opencensus")

    adapters = [
        adapter.from_section(section[adapter.name])
        for adapter in BACKEND_ADAPTERS
        if section.get(adapter.name) is not None
    ]
    if not adapters:
        names = ", ".join(adapter.name for adapter in BACKEND_ADAPTERS)
        raise ConfigurationError(
            f"opencensus configuration names no supported backend (expected one of: {names})",
            field="opencensus",
        )
    return adapters
