"""Exporter registry: builds the configured backends behind one facade."""

from typing import Any, Dict, Mapping, Optional

import structlog

from statsbridge.exporters.config import load_backend_configs
from statsbridge.exporters.prometheus import PrometheusExporter
from statsbridge.exporters.stackdriver import StackdriverExporter
from statsbridge.stats import Stats

logger = structlog.get_logger(__name__)

EXPORTER_CLASSES = {
    "stackdriver": StackdriverExporter,
    "prometheus": PrometheusExporter,
}


class ExporterRegistry:
    """Backend exporters keyed by name, all registered with ``stats``."""

    def __init__(self, stats: Stats, exporters: Dict[str, Any]):
        self.stats = stats
        self.exporters = exporters

    @classmethod
    def construct(cls, config: Optional[Mapping[str, Any]], stats: Optional[Stats] = None) -> "ExporterRegistry":
        """Validate *config* and build every configured exporter.

        All backend sections are validated before any exporter is built. If
        building one fails, those already built are shut down and nothing is
        registered with the facade.

        Raises:
            ConfigurationError: see ``load_backend_configs``, or an exporter
                could not start.
        """
        adapters = load_backend_configs(config)

        exporters: Dict[str, Any] = {}
        try:
            for adapter in adapters:
                params = adapter.get()
                exporters[adapter.name] = EXPORTER_CLASSES[adapter.name](**params)
                logger.info("exporter.created", backend=adapter.name, **params)
        except Exception:
            for exporter in exporters.values():
                exporter.shutdown()
            raise

        stats = stats if stats is not None else Stats()
        for exporter in exporters.values():
            stats.register_exporter(exporter)
        return cls(stats, exporters)

    def shutdown(self) -> None:
        for name, exporter in self.exporters.items():
            logger.info("exporter.shutdown", backend=name)
            self.stats.unregister_exporter(exporter)
            exporter.shutdown()
