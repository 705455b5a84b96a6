"""Tests for exporter registry construction."""

from __future__ import annotations

import pytest

from statsbridge.errors import ConfigurationError
from statsbridge.exporters import registry
from statsbridge.exporters.registry import ExporterRegistry
from statsbridge.stats import Stats


class TestConstruct:
    """Tests for ExporterRegistry.construct."""

    def test_stackdriver(self, fake_backends) -> None:
        """Test a stackdriver section builds one exporter with normalized params."""
        built = ExporterRegistry.construct({"opencensus": {"stackdriver": {"projectId": "p1"}}})

        assert list(built.exporters) == ["stackdriver"]
        (exporter,) = fake_backends["stackdriver"]
        assert exporter.params == {"project_id": "p1", "export_interval_millis": 60_000}
        assert built.stats.exporters == [exporter]

    def test_prometheus_default_port(self, fake_backends) -> None:
        """Test prometheus alone succeeds on port 9464 with a server."""
        built = ExporterRegistry.construct({"opencensus": {"prometheus": {}}})

        (exporter,) = fake_backends["prometheus"]
        assert exporter.params == {"port": 9464, "host": "0.0.0.0", "start_server": True}
        assert list(built.exporters) == ["prometheus"]

    def test_both_share_one_facade(self, fake_backends) -> None:
        """Test every exporter registers with the same facade."""
        stats = Stats()
        built = ExporterRegistry.construct(
            {"opencensus": {"stackdriver": {"projectId": "p1"}, "prometheus": {"port": 9100}}},
            stats,
        )

        assert built.stats is stats
        assert stats.exporters == [fake_backends["stackdriver"][0], fake_backends["prometheus"][0]]

    def test_no_backend(self, fake_backends) -> None:
        """Test a configuration naming neither backend fails."""
        with pytest.raises(ConfigurationError):
            ExporterRegistry.construct({"opencensus": {}})

        assert fake_backends == {"stackdriver": [], "prometheus": []}

    def test_invalid_section_builds_nothing(self, fake_backends) -> None:
        """Test validation happens before any exporter is built."""
        with pytest.raises(ConfigurationError, match="projectId"):
            ExporterRegistry.construct({"opencensus": {"prometheus": {}, "stackdriver": {}}})

        assert fake_backends["prometheus"] == []

    def test_failed_exporter_rolls_back(self, fake_backends, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test exporters already built are shut down when a later one fails."""

        def broken(**params):
            raise ConfigurationError("cannot start prometheus endpoint", field="port")

        monkeypatch.setitem(registry.EXPORTER_CLASSES, "prometheus", broken)
        stats = Stats()

        with pytest.raises(ConfigurationError, match="prometheus endpoint"):
            ExporterRegistry.construct(
                {"opencensus": {"stackdriver": {"projectId": "p1"}, "prometheus": {}}},
                stats,
            )

        assert fake_backends["stackdriver"][0].closed
        assert stats.exporters == []

    def test_shutdown(self, fake_backends) -> None:
        """Test shutdown detaches and closes every exporter."""
        built = ExporterRegistry.construct({"opencensus": {"prometheus": {}}})

        built.shutdown()

        assert fake_backends["prometheus"][0].closed
        assert built.stats.exporters == []
