"""Telemetry collector owning one handler per metric"""
import threading
from contextlib import nullcontext
from typing import Callable, Dict, Iterable, List, Optional
from metrics.models import IastMetric, MetricData
from .handlers import Handler, aggregated, conflated, delegating


HandlerBuilder = Callable[[IastMetric], Handler]


class TelemetryCollector:
    """Metric -> handler map supporting add, drain and merge

    Collectors created for a single operation have exactly one writer and run
    without a lock. The process-wide collector is shared by finishing
    operations and the reporting thread, so it is built with one.
    """

    def __init__(self, builder: HandlerBuilder, lock: Optional[threading.RLock] = None):
        self.handlers: Dict[IastMetric, Handler] = {}
        self.builder = builder
        self._lock = lock if lock is not None else nullcontext()

    def add_metric(self, metric: IastMetric, value: float, tag: Optional[str] = None) -> None:
        with self._lock:
            self.get_or_create_handler(metric).add(value, tag)

    def get_or_create_handler(self, metric: IastMetric) -> Handler:
        handler = self.handlers.get(metric)
        if handler is None:
            handler = self.builder(metric)
            self.handlers[metric] = handler
        return handler

    def drain_metrics(self) -> List[MetricData]:
        with self._lock:
            result = []
            for handler in self.handlers.values():
                result.extend(handler.drain())
            self.handlers.clear()
            return result

    def merge(self, metrics: Optional[Iterable[MetricData]]) -> None:
        if not metrics:
            return
        with self._lock:
            for metric_data in metrics:
                if metric_data is None or metric_data.metric is None:
                    continue
                self.get_or_create_handler(metric_data.metric).merge(metric_data)

    def reset(self) -> None:
        with self._lock:
            self.handlers = {}


def global_handler_builder(metric: IastMetric) -> Handler:
    # Operation metrics only arrive here through merges: keep one point per finished operation
    return aggregated(metric) if metric.has_operation_scope() else conflated(metric)


def operation_handler_builder(global_collector: TelemetryCollector) -> HandlerBuilder:
    def build(metric: IastMetric) -> Handler:
        if metric.has_operation_scope():
            return conflated(metric)
        return delegating(metric, global_collector)
    return build


def create_global_collector() -> TelemetryCollector:
    return TelemetryCollector(global_handler_builder, lock=threading.RLock())


def create_operation_collector(global_collector: TelemetryCollector) -> TelemetryCollector:
    return TelemetryCollector(operation_handler_builder(global_collector))
