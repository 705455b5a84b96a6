"""Measures, views and the recording facade."""

from statsbridge.stats.measure import Measure, MeasureDouble, MeasureInt64, MeasureUnit
from statsbridge.stats.stats import Stats
from statsbridge.stats.view import (
    Aggregation,
    AggregationType,
    CountAggregation,
    DistributionAggregation,
    SumAggregation,
    View,
)

__all__ = [
    "Measure",
    "MeasureDouble",
    "MeasureInt64",
    "MeasureUnit",
    "Stats",
    "Aggregation",
    "AggregationType",
    "CountAggregation",
    "DistributionAggregation",
    "SumAggregation",
    "View",
]
