"""Accumulation strategies turning recorded values into reportable points"""
from typing import List, Optional, Union
from metrics.models import MetricData, Point


class AggregatedCombiner:
    """Keeps every recorded value as its own point, in call order"""

    def __init__(self):
        self.points: List[Point] = []

    def add(self, value: float) -> None:
        self.points.append(Point(value))

    def drain(self) -> List[Point]:
        points, self.points = self.points, []
        return points

    def merge(self, metric_data: MetricData) -> None:
        self.points.extend(metric_data.points or [])


class ConflatedCombiner:
    """Keeps a single running sum, materialized on first add"""

    def __init__(self):
        self.point: Optional[Point] = None

    def add(self, value: float) -> None:
        if self.point is None:
            self.point = Point(0)
        self.point.value += value

    def drain(self) -> List[Point]:
        if self.point is None:
            return []
        point, self.point = self.point, None
        return [point]

    def merge(self, metric_data: MetricData) -> None:
        for point in metric_data.points or []:
            self.add(point.value)


Combiner = Union[AggregatedCombiner, ConflatedCombiner]
