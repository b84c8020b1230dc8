"""Catalog of the IAST telemetry metrics"""
from typing import Dict, List, Optional, Union
from .models import IastMetric, MetricTag, Scope


INSTRUMENTED_PROPAGATION = IastMetric('instrumented.propagation', Scope.GLOBAL, MetricTag.PROPAGATION_TYPE)
INSTRUMENTED_SOURCE = IastMetric('instrumented.source', Scope.GLOBAL, MetricTag.SOURCE_TYPE)
INSTRUMENTED_SINK = IastMetric('instrumented.sink', Scope.GLOBAL, MetricTag.VULNERABILITY_TYPE)

EXECUTED_PROPAGATION = IastMetric('executed.propagation', Scope.OPERATION, MetricTag.PROPAGATION_TYPE)
EXECUTED_SOURCE = IastMetric('executed.source', Scope.OPERATION, MetricTag.SOURCE_TYPE)
EXECUTED_SINK = IastMetric('executed.sink', Scope.OPERATION, MetricTag.VULNERABILITY_TYPE)
EXECUTED_TAINTED = IastMetric('executed.tainted', Scope.OPERATION)

REQUEST_TAINTED = IastMetric('request.tainted', Scope.OPERATION)

INSTRUMENTATION_TIME = IastMetric('instrumentation.time', Scope.GLOBAL)


class MetricCatalog:
    """Registry of metric definitions keyed by name"""

    def __init__(self, metrics: List[IastMetric] = None):
        self._metrics: Dict[str, IastMetric] = {}
        for metric in metrics or []:
            self.register(metric)

    def register(self, metric: IastMetric) -> IastMetric:
        """Register a metric definition; names are unique"""
        existing = self._metrics.get(metric.name)
        if existing is not None and existing.metric_tag != metric.metric_tag:
            raise ValueError(f"Metric {metric.name} already defined with tag {existing.metric_tag}")
        self._metrics.setdefault(metric.name, metric)
        return self._metrics[metric.name]

    def get_metric(self, metric: Union[str, IastMetric, None]) -> Optional[IastMetric]:
        """Resolve a metric name; metric instances are returned unchanged"""
        if isinstance(metric, str):
            return self._metrics.get(metric)
        return metric

    def list_metrics(self) -> List[IastMetric]:
        return list(self._metrics.values())

    def __contains__(self, name: str) -> bool:
        return name in self._metrics


catalog = MetricCatalog([
    INSTRUMENTED_PROPAGATION,
    INSTRUMENTED_SOURCE,
    INSTRUMENTED_SINK,
    EXECUTED_PROPAGATION,
    EXECUTED_SOURCE,
    EXECUTED_SINK,
    EXECUTED_TAINTED,
    REQUEST_TAINTED,
    INSTRUMENTATION_TIME,
])


def get_metric(metric: Union[str, IastMetric, None]) -> Optional[IastMetric]:
    return catalog.get_metric(metric)


def get_executed_metric(metric_tag: Optional[MetricTag]) -> IastMetric:
    return EXECUTED_SINK if metric_tag == MetricTag.VULNERABILITY_TYPE else EXECUTED_SOURCE


def get_instrumented_metric(metric_tag: Optional[MetricTag]) -> IastMetric:
    return INSTRUMENTED_SINK if metric_tag == MetricTag.VULNERABILITY_TYPE else INSTRUMENTED_SOURCE
