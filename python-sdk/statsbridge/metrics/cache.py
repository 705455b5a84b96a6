"""Lazily-populated registry of measures, one per metric name and family."""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Mapping, Tuple, Union

import structlog

from statsbridge.metrics.registry import measures_registered_total
from statsbridge.stats import (
    Aggregation,
    CountAggregation,
    DistributionAggregation,
    Measure,
    MeasureUnit,
    Stats,
    SumAggregation,
)

logger = structlog.get_logger(__name__)

DESCRIPTION = "None provided"
TAG_KEYS = ("status",)
TIMER_BUCKETS_MS = (0, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000)


class Family(str, Enum):
    """Metric families of a flush batch; the value is the batch key."""

    COUNTER = "counters"
    GAUGE = "gauges"
    TIMER = "timers"


@dataclass(frozen=True)
class FamilySettings:
    create_measure: Callable[[Stats], Callable[..., Measure]]
    unit: str
    aggregation: Aggregation


FAMILY_SETTINGS: Dict[Family, FamilySettings] = {
    Family.COUNTER: FamilySettings(lambda s: s.create_measure_int64, MeasureUnit.UNIT, CountAggregation()),
    Family.GAUGE: FamilySettings(lambda s: s.create_measure_double, MeasureUnit.UNIT, SumAggregation()),
    Family.TIMER: FamilySettings(
        lambda s: s.create_measure_double,
        MeasureUnit.MS,
        DistributionAggregation(TIMER_BUCKETS_MS),
    ),
}

_ALIASES = {"counter": Family.COUNTER, "gauge": Family.GAUGE, "timer": Family.TIMER}


def sanitize(name: str) -> str:
    """Backend-visible form of a dotted metric name."""
    return name.replace(".", "_")


def to_family(family: Union[Family, str]) -> Family:
    if isinstance(family, Family):
        return family
    if family in _ALIASES:
        return _ALIASES[family]
    try:
        return Family(family)
    except ValueError:
        raise ValueError(f"unknown metric family {family!r}") from None


class MetricRegistrationCache:
    """Measures keyed by original metric name, one mapping per family.

    The first ``ensure`` for a name creates the measure, creates and registers
    its view, then caches the measure. Entries are never evicted.
    """

    def __init__(self, stats: Stats):
        self.stats = stats
        self._measures: Dict[Family, Dict[str, Measure]] = {family: {} for family in Family}
        self._lock = threading.Lock()

    def ensure(self, family: Union[Family, str], name: str) -> Measure:
        """Return the measure for *name* in *family*, creating it on first use.

        Raises:
            ValueError: unknown family.
            RegistrationError: the facade refused the measure or view.
        """
        family = to_family(family)
        measures = self._measures[family]

        # Held until the view is registered, so no caller sees a viewless measure
        with self._lock:
            measure = measures.get(name)
            if measure is None:
                measure = self._register(family, name, measures)
        return measure

    def _register(self, family: Family, name: str, measures: Dict[str, Measure]) -> Measure:
        settings = FAMILY_SETTINGS[family]
        clean_name = sanitize(name)
        logger.info("cache.register", family=family.value, metric=name, backend_name=clean_name)

        try:
            measure = settings.create_measure(self.stats)(clean_name, settings.unit, DESCRIPTION)
        except Exception as e:
            logger.error("cache.register_failed", family=family.value, metric=name, error=str(e))
            raise
        # The facade refuses a second measure of the same name, so cache it now
        measures[name] = measure

        try:
            # Without a view, recordings are discarded
            view = self.stats.create_view(clean_name, measure, settings.aggregation, TAG_KEYS, DESCRIPTION)
            self.stats.register_view(view)
        except Exception as e:
            logger.error("cache.view_failed", family=family.value, metric=name, error=str(e))
            raise

        measures_registered_total.labels(family=family.value).inc()
        return measure

    def measures(self, family: Union[Family, str]) -> Mapping[str, Measure]:
        return dict(self._measures[to_family(family)])

    def __contains__(self, key: Tuple[Union[Family, str], str]) -> bool:
        family, name = key
        return name in self._measures[to_family(family)]

    def __len__(self) -> int:
        return sum(len(measures) for measures in self._measures.values())
