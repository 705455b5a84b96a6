"""OpenTelemetry-backed exporter base."""

import threading
from typing import Any, Dict, Tuple

import structlog
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource

from statsbridge.errors import RecordingError, RegistrationError
from statsbridge.stats.view import AggregationType, View

logger = structlog.get_logger(__name__)

METER_NAME = "statsbridge"


class OpenTelemetryExporter:
    """Maps registered views onto instruments of a private MeterProvider.

    count        -> Counter, incremented by one per recording
    sum          -> UpDownCounter, incremented by the recorded value
    distribution -> Histogram, bucket boundaries passed as advisory

    Subclasses supply the metric reader that ships the collected data.
    """

    backend_name = "opentelemetry"

    def __init__(self, reader: MetricReader, service_name: str = METER_NAME, service_version: str = "unknown"):
        resource = Resource.create({
            SERVICE_NAME: service_name,
            SERVICE_VERSION: service_version,
        })
        self._reader = reader
        self._provider = MeterProvider(resource=resource, metric_readers=[reader])
        self._meter = self._provider.get_meter(METER_NAME, service_version)
        self._instruments: Dict[Tuple[str, Any], Any] = {}
        self._lock = threading.Lock()
        self._closed = False

    @property
    def reader(self) -> MetricReader:
        return self._reader

    def on_register_view(self, view: View) -> None:
        """Create the instrument backing *view*."""
        key = (view.name, view.measure)
        with self._lock:
            if key in self._instruments:
                raise RegistrationError(
                    f"{self.backend_name}: view {view.name} is already registered"
                )
            try:
                instrument = self._create_instrument(view)
            except Exception as e:
                raise RegistrationError(
                    f"{self.backend_name}: cannot create instrument for view {view.name}: {e}"
                ) from e
            self._instruments[key] = instrument

        logger.debug(
            "exporter.view_registered",
            backend=self.backend_name,
            view=view.name,
            aggregation=view.aggregation.aggregation_type.value,
        )

    def _create_instrument(self, view: View):
        aggregation_type = view.aggregation.aggregation_type
        unit = view.measure.unit
        description = view.description or view.measure.description

        if aggregation_type is AggregationType.COUNT:
            return self._meter.create_counter(view.name, unit=unit, description=description)
        if aggregation_type is AggregationType.SUM:
            return self._meter.create_up_down_counter(view.name, unit=unit, description=description)
        if aggregation_type is AggregationType.DISTRIBUTION:
            boundaries = list(view.aggregation.boundaries) or None
            return self._meter.create_histogram(
                view.name,
                unit=unit,
                description=description,
                explicit_bucket_boundaries_advisory=boundaries,
            )
        raise ValueError(f"unsupported aggregation {aggregation_type}")

    def export(self, view: View, tags: dict, value) -> None:
        """Record one observation against the instrument for *view*."""
        if self._closed:
            raise RecordingError(f"{self.backend_name}: exporter is shut down")

        instrument = self._instruments.get((view.name, view.measure))
        if instrument is None:
            raise RecordingError(f"{self.backend_name}: view {view.name} is not registered")

        attributes = view.columns(tags)
        aggregation_type = view.aggregation.aggregation_type
        if aggregation_type is AggregationType.COUNT:
            instrument.add(1, attributes)
        elif aggregation_type is AggregationType.SUM:
            instrument.add(value, attributes)
        else:
            instrument.record(value, attributes)

    def force_flush(self, timeout_millis: float = 10_000) -> bool:
        return self._provider.force_flush(timeout_millis)

    def shutdown(self) -> None:
        """Flush pending data and stop the reader."""
        if self._closed:
            return
        self._closed = True
        self._provider.shutdown()
