"""Shared fakes for the bridge tests."""

from __future__ import annotations

from typing import Any

import pytest

from statsbridge.exporters import registry
from statsbridge.stats import Stats


class RecordingExporter:
    """Exporter double that keeps every view and observation it receives."""

    backend_name = "recording"

    def __init__(self, **params: Any) -> None:
        self.params = params
        self.views: list = []
        self.exports: list[tuple[str, dict, Any]] = []
        self.closed = False

    def on_register_view(self, view) -> None:
        self.views.append(view)

    def export(self, view, tags: dict, value) -> None:
        self.exports.append((view.name, dict(tags), value))

    def shutdown(self) -> None:
        self.closed = True


class SpyStats(Stats):
    """Stats facade that logs every create/register call and can fail records."""

    def __init__(self, fail_records: set[str] | None = None) -> None:
        super().__init__()
        self.calls: list[tuple[str, str]] = []
        self.fail_records = fail_records or set()

    def create_measure_int64(self, name, unit, description):
        self.calls.append(("create_measure_int64", name))
        return super().create_measure_int64(name, unit, description)

    def create_measure_double(self, name, unit, description):
        self.calls.append(("create_measure_double", name))
        return super().create_measure_double(name, unit, description)

    def create_view(self, name, measure, aggregation, tag_keys, description=""):
        self.calls.append(("create_view", name))
        return super().create_view(name, measure, aggregation, tag_keys, description)

    def register_view(self, view) -> None:
        self.calls.append(("register_view", view.name))
        super().register_view(view)

    def record(self, measure, tags, value) -> None:
        self.calls.append(("record", measure.name))
        if measure.name in self.fail_records:
            raise RuntimeError(f"backend rejected {measure.name}")
        super().record(measure, tags, value)

    def creations(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] != "record"]


class FakeEvents:
    """Host event source: remembers the callbacks attached with ``on``."""

    def __init__(self) -> None:
        self.handlers: dict[str, Any] = {}

    def on(self, name: str, callback) -> None:
        self.handlers[name] = callback

    def emit(self, name: str, *args) -> None:
        self.handlers[name](*args)


@pytest.fixture
def exporter() -> RecordingExporter:
    return RecordingExporter()


@pytest.fixture
def stats(exporter: RecordingExporter) -> SpyStats:
    spy = SpyStats()
    spy.register_exporter(exporter)
    return spy


@pytest.fixture
def fake_backends(monkeypatch: pytest.MonkeyPatch) -> dict[str, list[RecordingExporter]]:
    """Replace the network-bound exporters with recording doubles."""
    built: dict[str, list[RecordingExporter]] = {"stackdriver": [], "prometheus": []}

    def factory(name: str):
        def build(**params: Any) -> RecordingExporter:
            instance = RecordingExporter(**params)
            instance.backend_name = name
            built[name].append(instance)
            return instance

        return build

    monkeypatch.setitem(registry.EXPORTER_CLASSES, "stackdriver", factory("stackdriver"))
    monkeypatch.setitem(registry.EXPORTER_CLASSES, "prometheus", factory("prometheus"))
    return built
