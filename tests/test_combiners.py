"""Tests for combiners"""
from unittest.mock import patch

from collectors.combiners import AggregatedCombiner, ConflatedCombiner
from metrics.models import MetricData, Point
from metrics.registry import REQUEST_TAINTED


class TestConflatedCombiner:
    """Test running-sum accumulation"""

    def setup_method(self):
        self.combiner = ConflatedCombiner()

    def test_drain_untouched_is_empty(self):
        """Test drain before any add returns nothing"""
        assert self.combiner.drain() == []

    def test_drain_returns_single_sum(self):
        """Test every add folds into one point"""
        for value in (1, 2, 3.5, 10):
            self.combiner.add(value)

        points = self.combiner.drain()

        assert len(points) == 1
        assert points[0].value == 16.5

    def test_second_drain_is_empty(self):
        """Test drain resets the combiner"""
        self.combiner.add(4)
        self.combiner.drain()

        assert self.combiner.drain() == []

    def test_point_timestamp_is_millis(self):
        """Test the running point carries an epoch millisecond timestamp"""
        with patch('metrics.models.time.time', return_value=1700000000.5):
            self.combiner.add(1)

        assert self.combiner.drain()[0].timestamp == 1700000000500

    def test_merge_folds_foreign_points(self):
        """Test merge adds foreign values to the running sum"""
        self.combiner.add(2)
        self.combiner.merge(MetricData(REQUEST_TAINTED, [Point(3), Point(5)]))

        points = self.combiner.drain()
        assert len(points) == 1
        assert points[0].value == 10

    def test_merge_into_empty_combiner(self):
        """Test merge materializes the running point"""
        self.combiner.merge(MetricData(REQUEST_TAINTED, [Point(7)]))

        assert [p.value for p in self.combiner.drain()] == [7]


class TestAggregatedCombiner:
    """Test per-value accumulation"""

    def setup_method(self):
        self.combiner = AggregatedCombiner()

    def test_drain_keeps_call_order(self):
        """Test one point per add, in call order"""
        values = [5, 1, 3, 1]
        for value in values:
            self.combiner.add(value)

        points = self.combiner.drain()

        assert [p.value for p in points] == values

    def test_drain_empties_combiner(self):
        """Test the combiner is empty after drain"""
        self.combiner.add(1)
        self.combiner.drain()

        assert self.combiner.drain() == []
        assert self.combiner.points == []

    def test_merge_appends_foreign_points(self):
        """Test merge appends the exact foreign point objects"""
        foreign = [Point(8, timestamp=1), Point(9, timestamp=2)]
        self.combiner.add(1)
        self.combiner.merge(MetricData(REQUEST_TAINTED, foreign))

        points = self.combiner.drain()
        assert [p.value for p in points] == [1, 8, 9]
        assert points[1] is foreign[0]
