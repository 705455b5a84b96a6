"""Views: bind a measure to an aggregation and a set of tag keys."""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Tuple

from statsbridge.stats.measure import Measure


class AggregationType(str, Enum):
    COUNT = "count"
    SUM = "sum"
    DISTRIBUTION = "distribution"


@dataclass(frozen=True)
class Aggregation:
    aggregation_type: ClassVar[AggregationType]


@dataclass(frozen=True)
class CountAggregation(Aggregation):
    """Number of recorded observations."""

    aggregation_type: ClassVar[AggregationType] = AggregationType.COUNT


@dataclass(frozen=True)
class SumAggregation(Aggregation):
    """Sum of recorded values."""

    aggregation_type: ClassVar[AggregationType] = AggregationType.SUM


@dataclass(frozen=True)
class DistributionAggregation(Aggregation):
    """Bucketed distribution of recorded values."""

    aggregation_type: ClassVar[AggregationType] = AggregationType.DISTRIBUTION

    boundaries: Tuple[float, ...] = ()

    def __post_init__(self):
        boundaries = tuple(self.boundaries)
        if any(lo >= hi for lo, hi in zip(boundaries, boundaries[1:])):
            raise ValueError(f"bucket boundaries must be strictly increasing: {boundaries}")
        object.__setattr__(self, "boundaries", boundaries)


@dataclass(frozen=True)
class View:
    """A measure exposed to exporters under an aggregation.

    Recordings against a measure with no registered view are discarded.
    """

    name: str
    measure: Measure
    aggregation: Aggregation
    tag_keys: Tuple[str, ...] = ()
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "tag_keys", tuple(self.tag_keys))

    def columns(self, tags: dict) -> dict:
        """Restrict *tags* to this view's tag keys, the attribute set exported."""
        return {key: str(tags[key]) for key in self.tag_keys if key in tags}
