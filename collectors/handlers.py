"""Handlers binding a metric to its combiner(s)"""
from typing import Callable, Dict, List, Optional, Union
from metrics.models import IastMetric, MetricData
from .combiners import AggregatedCombiner, Combiner, ConflatedCombiner


class DefaultHandler:
    """Untagged metric backed by one combiner"""

    def __init__(self, metric: IastMetric, combiner: Combiner):
        self.metric = metric
        self.combiner = combiner

    def add(self, value: float, tag: Optional[str] = None) -> None:
        self.combiner.add(value)

    def drain(self) -> List[MetricData]:
        points = self.combiner.drain()
        if not points:
            return []
        return [MetricData(self.metric, points)]

    def merge(self, metric_data: MetricData) -> None:
        self.combiner.merge(metric_data)


class TaggedHandler:
    """Tagged metric with one lazily created combiner per tag value"""

    def __init__(self, metric: IastMetric, supplier: Callable[[], Combiner]):
        self.metric = metric
        self.supplier = supplier
        self.combiners: Dict[str, Combiner] = {}

    def add(self, value: float, tag: Optional[str] = None) -> None:
        self.get_or_create_combiner(tag).add(value)

    def drain(self) -> List[MetricData]:
        result = []
        for tag, combiner in self.combiners.items():
            points = combiner.drain()
            if points:
                result.append(MetricData(self.metric, points, tag))
        return result

    def get_or_create_combiner(self, tag: Optional[str]) -> Combiner:
        tag = tag or ''
        combiner = self.combiners.get(tag)
        if combiner is None:
            combiner = self.supplier()
            self.combiners[tag] = combiner
        return combiner

    def merge(self, metric_data: MetricData) -> None:
        self.get_or_create_combiner(metric_data.tag).merge(metric_data)


class DelegatingHandler:
    """Writes through to another collector instead of buffering"""

    def __init__(self, metric: IastMetric, collector):
        self.metric = metric
        self.collector = collector

    def add(self, value: float, tag: Optional[str] = None) -> None:
        self.collector.add_metric(self.metric, value, tag)

    def drain(self) -> List[MetricData]:
        return []

    def merge(self, metric_data: MetricData) -> None:
        pass


Handler = Union[DefaultHandler, TaggedHandler, DelegatingHandler]


def aggregated(metric: IastMetric) -> Handler:
    if metric.metric_tag:
        return TaggedHandler(metric, AggregatedCombiner)
    return DefaultHandler(metric, AggregatedCombiner())


def conflated(metric: IastMetric) -> Handler:
    if metric.metric_tag:
        return TaggedHandler(metric, ConflatedCombiner)
    return DefaultHandler(metric, ConflatedCombiner())


def delegating(metric: IastMetric, collector) -> Handler:
    return DelegatingHandler(metric, collector)
