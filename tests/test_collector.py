"""Tests for telemetry collectors"""
import threading
from unittest.mock import Mock

from collectors.base import (
    TelemetryCollector,
    create_global_collector,
    create_operation_collector,
    global_handler_builder
)
from collectors.combiners import AggregatedCombiner, ConflatedCombiner
from collectors.handlers import DefaultHandler, DelegatingHandler, TaggedHandler
from metrics.models import IastMetric, MetricData, MetricTag, Point, Scope
from metrics.registry import (
    EXECUTED_SOURCE,
    INSTRUMENTED_SINK,
    INSTRUMENTED_SOURCE,
    INSTRUMENTATION_TIME,
    REQUEST_TAINTED
)


class TestTelemetryCollector:
    """Test handler management"""

    def setup_method(self):
        self.handler = Mock()
        self.handler.drain.return_value = [MetricData(REQUEST_TAINTED, [Point(1)])]
        self.builder = Mock(return_value=self.handler)
        self.collector = TelemetryCollector(self.builder)

    def test_add_metric_applies_builder(self):
        """Test the builder creates the handler on first add"""
        self.collector.add_metric(REQUEST_TAINTED, 5, "tag")

        self.builder.assert_called_once_with(REQUEST_TAINTED)
        self.handler.add.assert_called_once_with(5, "tag")

    def test_reuses_created_handlers(self):
        """Test one handler per metric"""
        self.collector.add_metric(REQUEST_TAINTED, 5)
        self.collector.add_metric(REQUEST_TAINTED, 6)

        assert self.builder.call_count == 1
        assert self.handler.add.call_count == 2

    def test_drain_all_handlers_and_clear(self):
        """Test drain flattens handler results and clears the handler map"""
        self.collector.add_metric(REQUEST_TAINTED, 5)

        drained = self.collector.drain_metrics()

        assert len(drained) == 1
        assert drained[0].metric == REQUEST_TAINTED
        assert self.collector.handlers == {}

    def test_merge_creates_handlers_on_demand(self):
        """Test merge builds handlers that were never added to"""
        data = [
            MetricData(REQUEST_TAINTED, [Point(1)]),
            MetricData(EXECUTED_SOURCE, [Point(2)], "unseen.tag"),
        ]

        self.collector.merge(data)

        assert self.builder.call_count == 2
        assert self.handler.merge.call_count == 2

    def test_merge_skips_incomplete_entries(self):
        """Test merge ignores None and metric-less entries"""
        self.collector.merge([None, MetricData(None, [Point(1)])])
        self.collector.merge(None)

        self.builder.assert_not_called()

    def test_reset(self):
        self.collector.add_metric(REQUEST_TAINTED, 5)
        self.collector.reset()

        assert self.collector.handlers == {}


class TestCollectorBuilders:
    """Test handler selection for the global and operation collectors"""

    def setup_method(self):
        self.global_collector = create_global_collector()
        self.operation_collector = create_operation_collector(self.global_collector)

    def test_global_uses_aggregated_for_operation_metrics(self):
        handler = global_handler_builder(REQUEST_TAINTED)

        assert isinstance(handler, DefaultHandler)
        assert isinstance(handler.combiner, AggregatedCombiner)

    def test_global_uses_conflated_for_global_metrics(self):
        handler = global_handler_builder(INSTRUMENTED_SOURCE)

        assert isinstance(handler, TaggedHandler)
        assert isinstance(handler.supplier(), ConflatedCombiner)

    def test_operation_uses_conflated_for_operation_metrics(self):
        handler = self.operation_collector.get_or_create_handler(REQUEST_TAINTED)

        assert isinstance(handler, DefaultHandler)
        assert isinstance(handler.combiner, ConflatedCombiner)

    def test_operation_delegates_global_metrics(self):
        handler = self.operation_collector.get_or_create_handler(INSTRUMENTED_SINK)

        assert isinstance(handler, DelegatingHandler)
        assert handler.collector is self.global_collector


class TestCollectorScenarios:
    """End to end aggregation scenarios"""

    def setup_method(self):
        self.global_collector = create_global_collector()

    def test_tagged_operation_metric(self):
        """Test per-tag sums for an operation-scoped tagged metric"""
        metric = IastMetric("test.tagged", Scope.OPERATION, MetricTag.SOURCE_TYPE)
        collector = create_operation_collector(self.global_collector)

        collector.add_metric(metric, 5, "A")
        collector.add_metric(metric, 3, "A")
        collector.add_metric(metric, 2, "B")
        drained = collector.drain_metrics()

        assert len(drained) == 2
        assert {d.tag: sum(p.value for p in d.points) for d in drained} == {"A": 8, "B": 2}

    def test_global_metric_written_through_from_two_operations(self):
        """Test delegated writes are counted once, without merge at operation end"""
        first = create_operation_collector(self.global_collector)
        second = create_operation_collector(self.global_collector)

        first.add_metric(INSTRUMENTATION_TIME, 1)
        second.add_metric(INSTRUMENTATION_TIME, 1)
        self.global_collector.merge(first.drain_metrics())
        self.global_collector.merge(second.drain_metrics())

        drained = self.global_collector.drain_metrics()
        assert len(drained) == 1
        assert [p.value for p in drained[0].points] == [2]

    def test_operation_results_merge_as_one_point_per_operation(self):
        """Test the global collector keeps each operation's total as a point"""
        for total in (3, 4):
            collector = create_operation_collector(self.global_collector)
            for _ in range(total):
                collector.add_metric(REQUEST_TAINTED, 1)
            self.global_collector.merge(collector.drain_metrics())

        drained = self.global_collector.drain_metrics()
        assert [p.value for p in drained[0].points] == [3, 4]

    def test_merge_into_empty_collector_with_new_tags(self):
        """Test merge on a fresh collector succeeds for unseen tags"""
        self.global_collector.merge([
            MetricData(EXECUTED_SOURCE, [Point(1)], "http.request.body"),
            MetricData(EXECUTED_SOURCE, [Point(2)], "http.request.parameter"),
        ])

        drained = self.global_collector.drain_metrics()
        assert sorted(d.tag for d in drained) == ["http.request.body", "http.request.parameter"]

    def test_concurrent_merges_are_not_lost(self):
        """Test serialized mutation of the global collector"""
        def finish_operations():
            for _ in range(200):
                collector = create_operation_collector(self.global_collector)
                collector.add_metric(INSTRUMENTED_SOURCE, 1, "src")
                collector.add_metric(REQUEST_TAINTED, 1)
                self.global_collector.merge(collector.drain_metrics())

        threads = [threading.Thread(target=finish_operations) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        drained = {d.metric.name: d for d in self.global_collector.drain_metrics()}
        assert drained["instrumented.source"].points[0].value == 800
        assert len(drained["request.tainted"].points) == 800
