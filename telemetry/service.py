"""IAST telemetry facade: verbosity gating, operation lifecycle and draining"""
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Union
from collectors.base import TelemetryCollector, create_global_collector, create_operation_collector
from config import Config
from logging_config import get_logger, log_error
from metrics.exporters.reporter import MetricsReporter, metrics_reporter
from metrics.models import IastMetric, MetricData, Point
from metrics.registry import get_metric
from metrics.verbosity import Verbosity, get_name, is_debug_allowed, is_info_allowed, parse_verbosity
from operations.context import OperationContext


logger = get_logger(__name__)

IAST_NAMESPACE = "iast"
TRACE_METRIC_PATTERN = "_dd.instrumentation_telemetry_data.iast"

MetricRef = Union[str, IastMetric]


class IastTelemetry:
    """Entry point used by analyzers and the host's request lifecycle"""

    def __init__(self,
                 global_collector: Optional[TelemetryCollector] = None,
                 reporter: Optional[MetricsReporter] = None):
        self.enabled = False
        self.verbosity = Verbosity.INFORMATION
        self.global_collector = global_collector or create_global_collector()
        self.reporter = reporter or metrics_reporter

    def configure(self, config: Config, register_provider: bool = True) -> None:
        self.enabled = config.telemetry_enabled
        verbosity = parse_verbosity(config.iast_telemetry_verbosity)
        self.verbosity = verbosity if verbosity is not None else Verbosity.INFORMATION
        self.reporter.interval = config.telemetry_heartbeat_interval
        if register_provider:
            self.reporter.register_provider(self.drain)

        logger.info(
            "IAST telemetry configured",
            enabled=self.enabled,
            verbosity=self.get_verbosity_name(),
            event_type="telemetry_configured"
        )

    def stop(self) -> None:
        """Flush pending metrics through the reporter, then detach from it"""
        self.reporter.on_send_data()
        self.reporter.unregister_provider(self.drain)
        self.enabled = False

    def is_enabled(self) -> bool:
        return self.enabled

    def is_collecting(self) -> bool:
        return self.enabled and self.verbosity != Verbosity.OFF

    def is_debug_enabled(self) -> bool:
        return self.is_enabled() and is_debug_allowed(self.verbosity)

    def is_information_enabled(self) -> bool:
        return self.is_enabled() and is_info_allowed(self.verbosity)

    def get_verbosity_name(self) -> str:
        return get_name(self.verbosity)

    def increase(self, metric: MetricRef, tag: Optional[str] = None, context: Optional[OperationContext] = None) -> None:
        self.add(metric, 1, tag, context)

    def add(self, metric: MetricRef, value: float, tag: Optional[str] = None,
            context: Optional[OperationContext] = None) -> None:
        """Record a value; never raises"""
        if not self.is_collecting():
            return

        try:
            resolved = get_metric(metric)
            if resolved is None:
                logger.debug("Unknown IAST metric ignored", metric=str(metric))
                return

            collector = self.get_collector(resolved, context)
            if collector is None:
                return
            collector.add_metric(resolved, value, tag)
        except Exception as e:
            logger.error("Failed to add IAST metric", metric=str(metric), error=str(e), exc_info=True)

    def get_collector(self, metric: IastMetric, context: Optional[OperationContext]) -> Optional[TelemetryCollector]:
        """Collector a write to ``metric`` belongs to

        Operation metrics without an operation collector are dropped rather
        than written to the process-wide collector.
        """
        if not metric.has_operation_scope():
            return self.global_collector

        collector = context.telemetry_collector if context is not None else None
        if collector is None:
            logger.debug("No operation collector, dropping operation metric", metric=metric.name)
        return collector

    def on_request_started(self, context: Optional[OperationContext]) -> Optional[TelemetryCollector]:
        if context is None or not self.is_collecting():
            return None

        collector = create_operation_collector(self.global_collector)
        context.telemetry_collector = collector
        return collector

    def on_request_ended(self, context: Optional[OperationContext], root_span: Any = None) -> Dict[str, float]:
        """Drain the operation collector into the global one; returns the operation summary"""
        if not self.is_enabled() or context is None:
            return {}

        collector = context.telemetry_collector
        if collector is None:
            return {}
        context.telemetry_collector = None

        try:
            metrics = collector.drain_metrics()
            if not metrics:
                return {}

            summary = self.get_operation_summary(metrics)
            self.add_metrics_to_span(root_span, summary)
            self.global_collector.merge(metrics)
            return summary
        except Exception as e:
            log_error(logger, e, {"operation_id": context.operation_id})
            return {}

    @staticmethod
    def flatten(metric_data: MetricData) -> float:
        return sum(point.value for point in metric_data.points or [])

    def get_operation_summary(self, metrics: List[MetricData]) -> Dict[str, float]:
        totals: Dict[IastMetric, float] = OrderedDict()
        for data in metrics:
            if not data or not data.metric or not data.metric.has_operation_scope():
                continue
            totals[data.metric] = totals.get(data.metric, 0) + self.flatten(data)

        return {f"{TRACE_METRIC_PATTERN}.{metric.name}": value for metric, value in totals.items()}

    @staticmethod
    def add_metrics_to_span(root_span: Any, summary: Dict[str, float]) -> None:
        if root_span is None or not summary:
            return
        set_attributes = getattr(root_span, "set_attributes", None)
        if callable(set_attributes):
            set_attributes(summary)

    def drain(self) -> List[Dict[str, Any]]:
        """Drain the process-wide collector into reporting records"""
        drained = []
        for metric_data in self.global_collector.drain_metrics():
            if metric_data.metric and metric_data.points:
                drained.append(self.get_payload_metric(metric_data.metric, metric_data.points, metric_data.tag))
        return drained

    @staticmethod
    def get_payload_metric(metric: IastMetric, points: List[Point], tag: Optional[str]) -> Dict[str, Any]:
        payload = {
            "metric": metric.name,
            "common": metric.common,
            "type": metric.type,
            "points": [[point.timestamp, point.value] for point in points],
            "namespace": IAST_NAMESPACE,
        }
        if metric.metric_tag and tag:
            payload["tag"] = f"{metric.metric_tag.value}:{tag}"
        return payload


telemetry = IastTelemetry()
