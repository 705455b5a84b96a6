"""Host-facing backend: flush and status handlers.

Usage:
    from statsbridge.backend import init

    backend = init(startup_time, config, events)

``events`` is the host's event source; anything with ``on(name, callback)``.
The host then calls ``flush(timestamp, metrics)`` once per interval and
``status(respond)`` for liveness probes.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

import structlog

from statsbridge.errors import RegistrationError
from statsbridge.exporters.registry import ExporterRegistry
from statsbridge.logging import new_logger
from statsbridge.metrics.cache import Family, MetricRegistrationCache
from statsbridge.metrics.registry import flushes_total, records_total
from statsbridge.stats import Stats

BACKEND_NAME = "opencensus"

# Deterministic flush order
FAMILY_ORDER = (Family.COUNTER, Family.GAUGE, Family.TIMER)


class OpenCensusBackend:
    """Forwards flushed statsd aggregates to the configured exporters."""

    def __init__(
        self,
        config: Mapping[str, Any],
        logger: Optional[structlog.BoundLogger] = None,
        stats: Optional[Stats] = None,
    ):
        self.logger = logger or structlog.get_logger(__name__)
        self.registry = ExporterRegistry.construct(config, stats)
        self.stats = self.registry.stats
        self.cache = MetricRegistrationCache(self.stats)
        self.logger.info("backend.ready", exporters=sorted(self.registry.exporters))

    def flush(self, timestamp: float, metrics: Optional[Mapping[str, Any]]) -> None:
        """Record one interval's aggregates. Never raises."""
        self.logger.info("flush", flushed_at=_format_time(timestamp))
        flushes_total.inc()

        metrics = metrics or {}
        if not isinstance(metrics, Mapping):
            self.logger.warning("flush.bad_batch", kind=type(metrics).__name__)
            return
        for family in FAMILY_ORDER:
            values = metrics.get(family.value)
            if not values:
                continue
            if not isinstance(values, Mapping):
                self.logger.warning("flush.bad_family", family=family.value, kind=type(values).__name__)
                continue
            for name, value in values.items():
                self.logger.debug("flush.metric", family=family.value, metric=name, value=value)
                self._record(family, name, value)

    def _record(self, family: Family, name: str, value) -> None:
        tags = {"status": "OK"}
        try:
            measure = self.cache.ensure(family, name)
            self.stats.record(measure, tags, value)
        except RegistrationError as e:
            tags["status"] = "ERROR"
            tags["error"] = str(e)
            self.logger.error("flush.registration_failed", family=family.value, metric=name, **tags)
        except Exception as e:
            tags["status"] = "ERROR"
            tags["error"] = str(e)
            self.logger.warning("flush.record_failed", family=family.value, metric=name, **tags)
        records_total.labels(
            family=family.value,
            status="ok" if tags["status"] == "OK" else "error",
        ).inc()

    def status(self, respond: Callable[..., Any]) -> None:
        """Liveness self-report: f(error, backend_name, stat_name, stat_value)."""
        self.logger.debug("status")
        respond(None, BACKEND_NAME, "stat-name", 0)

    def shutdown(self) -> None:
        self.registry.shutdown()


def _format_time(timestamp) -> str:
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()
    except (TypeError, ValueError, OverflowError, OSError):
        return repr(timestamp)


def init(startup_time, config: Mapping[str, Any], events, logger: Optional[structlog.BoundLogger] = None) -> OpenCensusBackend:
    """Build the backend and attach it to the host's ``flush``/``status`` events.

    Args:
        startup_time: Host start time, unix seconds.
        config: Host configuration with an ``opencensus`` section.
        events: Host event source exposing ``on(name, callback)``.
        logger: Logger to use; a structured logger is created when omitted.

    Returns:
        The attached backend.

    Raises:
        ConfigurationError: the configuration is missing or invalid; no handler
            is attached.
    """
    logger = logger or new_logger("statsbridge")
    logger.info("backend.init", startup_time=_format_time(startup_time))

    backend = OpenCensusBackend(config, logger=logger)

    logger.info("backend.attach", event="flush")
    events.on("flush", backend.flush)
    logger.info("backend.attach", event="status")
    events.on("status", backend.status)
    return backend
