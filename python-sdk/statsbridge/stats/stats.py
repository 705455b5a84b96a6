"""Statistics facade shared by every exporter."""

import threading
from typing import Dict, List, Optional, Sequence

from statsbridge.errors import RecordingError, RegistrationError
from statsbridge.stats.measure import Measure, MeasureDouble, MeasureInt64
from statsbridge.stats.view import Aggregation, View


class Stats:
    """Creates measures and views and fans recordings out to exporters.

    Exporters implement ``on_register_view(view)``, ``export(view, tags, value)``
    and ``shutdown()``. Views registered before an exporter joins are replayed
    to it on registration.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._exporters: List = []
        self._measures: Dict[Measure, Measure] = {}
        self._views: Dict[Measure, List[View]] = {}

    @property
    def exporters(self) -> list:
        return list(self._exporters)

    def register_exporter(self, exporter) -> None:
        """Attach *exporter* and replay the views registered so far."""
        with self._lock:
            if exporter in self._exporters:
                return
            for views in self._views.values():
                for view in views:
                    exporter.on_register_view(view)
            self._exporters.append(exporter)

    def unregister_exporter(self, exporter) -> None:
        with self._lock:
            if exporter in self._exporters:
                self._exporters.remove(exporter)

    def create_measure_int64(self, name: str, unit: str, description: str) -> MeasureInt64:
        return self._add_measure(MeasureInt64(name, unit, description))

    def create_measure_double(self, name: str, unit: str, description: str) -> MeasureDouble:
        return self._add_measure(MeasureDouble(name, unit, description))

    def _add_measure(self, measure: Measure) -> Measure:
        with self._lock:
            if measure in self._measures:
                raise RegistrationError(f"measure {measure.name} ({measure.unit}) already exists")
            self._measures[measure] = measure
        return measure

    def create_view(
        self,
        name: str,
        measure: Measure,
        aggregation: Aggregation,
        tag_keys: Sequence[str],
        description: str = "",
    ) -> View:
        """Build a view; it has no effect until passed to ``register_view``."""
        return View(name, measure, aggregation, tuple(tag_keys), description)

    def register_view(self, view: View) -> None:
        """Make *view* visible to every exporter.

        Raises:
            RegistrationError: the view's measure is unknown, a view with the
                same name is already registered for it, or an exporter could not
                build it. The view stays registered with the exporters that did.
        """
        with self._lock:
            if view.measure not in self._measures:
                raise RegistrationError(
                    f"view {view.name} refers to unknown measure {view.measure.name}"
                )
            views = self._views.setdefault(view.measure, [])
            if any(v.name == view.name for v in views):
                raise RegistrationError(f"view {view.name} is already registered")
            views.append(view)
            exporters = list(self._exporters)

        failures = []
        for exporter in exporters:
            try:
                exporter.on_register_view(view)
            except Exception as e:
                failures.append(e)
        if failures:
            raise RegistrationError(
                f"view {view.name} rejected by {len(failures)} exporter(s): {failures[0]}"
            ) from failures[0]

    def get_views(self, measure: Measure) -> List[View]:
        return list(self._views.get(measure, ()))

    def record(self, measure: Measure, tags: Optional[dict], value) -> None:
        """Record one observation of *measure* with *tags*.

        Every exporter is attempted even when an earlier one fails.

        Raises:
            RecordingError: unknown measure, invalid value, no registered view
                (the observation is discarded), or exporter failure.
        """
        if measure not in self._measures:
            raise RecordingError(f"measure {measure.name} is not registered")
        try:
            value = measure.coerce(value)
        except TypeError as e:
            raise RecordingError(str(e)) from e

        views = self._views.get(measure)
        if not views:
            raise RecordingError(f"measure {measure.name} has no registered view, observation discarded")

        tags = tags or {}
        failures = []
        for view in views:
            for exporter in self._exporters:
                try:
                    exporter.export(view, tags, value)
                except Exception as e:
                    failures.append((exporter, e))

        if failures:
            exporter, error = failures[0]
            raise RecordingError(
                f"{type(exporter).__name__} rejected {measure.name}: {error}"
            ) from error
