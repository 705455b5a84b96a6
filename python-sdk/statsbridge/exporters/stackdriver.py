"""Google Cloud Monitoring (Stackdriver) exporter."""

from google.auth.exceptions import DefaultCredentialsError
from opentelemetry.exporter.cloud_monitoring import CloudMonitoringMetricsExporter
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader

from statsbridge.errors import ConfigurationError
from statsbridge.exporters.base import OpenTelemetryExporter

# Series land where the OpenCensus Stackdriver exporter used to put them
METRIC_PREFIX = "custom.googleapis.com/opencensus"


class StackdriverExporter(OpenTelemetryExporter):
    """Pushes aggregated views to Cloud Monitoring on a fixed interval."""

    backend_name = "stackdriver"

    def __init__(self, project_id: str, export_interval_millis: int = 60_000, **kwargs):
        self.project_id = project_id
        try:
            exporter = CloudMonitoringMetricsExporter(project_id=project_id, prefix=METRIC_PREFIX)
        except DefaultCredentialsError as e:
            raise ConfigurationError(
                f"no Google Cloud credentials available for project {project_id}: {e}",
                field="credentials",
            ) from e
        reader = PeriodicExportingMetricReader(exporter, export_interval_millis=export_interval_millis)
        super().__init__(reader, **kwargs)
