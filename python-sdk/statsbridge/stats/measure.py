"""Measures: named, typed, unit-tagged quantities."""

import math
from dataclasses import dataclass


class MeasureUnit:
    """Unit strings understood by the exporters (UCUM)."""

    UNIT = "1"
    MS = "ms"


@dataclass(frozen=True)
class Measure:
    """A quantity a backend can record."""

    name: str
    unit: str = MeasureUnit.UNIT
    description: str = ""

    def coerce(self, value):
        """Return *value* in the form this measure records.

        Raises:
            TypeError: *value* is not a real number (bools included).
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(
                f"measure {self.name} expects a number, got {type(value).__name__}"
            )
        return value


@dataclass(frozen=True)
class MeasureInt64(Measure):
    """Integer-valued measure; floats are truncated toward zero."""

    def coerce(self, value) -> int:
        value = super().coerce(value)
        if isinstance(value, float):
            if not math.isfinite(value):
                raise TypeError(f"measure {self.name} expects a finite number, got {value}")
            return int(value)
        return value


@dataclass(frozen=True)
class MeasureDouble(Measure):
    """Floating point measure; integers are accepted."""
