#!/usr/bin/env python3

import math
from dataclasses import dataclass, field

METRIC_NAME_LABEL = "__name__"


def parse_value(raw) -> float:
    # Prometheus sends sample values as strings ("NaN", "+Inf", "1.5")
    return float(raw)


def format_value(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


@dataclass
class SampleSeries:
    labels: dict[str, str]
    points: list[tuple[float, float]] = field(default_factory=list)

    @property
    def name(self) -> str | None:
        return self.labels.get(METRIC_NAME_LABEL)

    @classmethod
    def from_record(cls, record: dict) -> "SampleSeries":
        """Build a series from one element of a Prometheus matrix result"""
        labels = {str(k): str(v) for k, v in record.get("metric", {}).items()}
        points = [(round(float(ts), 3), parse_value(val)) for ts, val in record.get("values", [])]
        return cls(labels, points)

    def to_record(self) -> dict:
        return {
            "metric": dict(self.labels),
            "values": [[ts, format_value(val)] for ts, val in self.points],
        }

    def __eq__(self, other):
        if not isinstance(other, SampleSeries):
            return NotImplemented
        if self.labels != other.labels or len(self.points) != len(other.points):
            return False
        for (ts, val), (other_ts, other_val) in zip(self.points, other.points):
            if ts != other_ts:
                return False
            # NaN samples are legitimate and compare equal to each other here
            if val != other_val and not (math.isnan(val) and math.isnan(other_val)):
                return False
        return True


def matrix_to_series(matrix: dict) -> list[SampleSeries]:
    return [SampleSeries.from_record(record) for record in matrix["result"]]
