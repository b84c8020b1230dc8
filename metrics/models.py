"""IAST metric models"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Scope(Enum):
    """Lifetime of the collector a metric is written to"""
    GLOBAL = "GLOBAL"
    OPERATION = "OPERATION"


class MetricTag(Enum):
    """Tag dimensions splitting a metric into sub-series"""
    VULNERABILITY_TYPE = "vulnerability_type"
    SOURCE_TYPE = "source_type"
    PROPAGATION_TYPE = "propagation_type"


class PropagationType(Enum):
    STRING = "STRING"
    JSON = "JSON"
    URL = "URL"


def _now_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class Point:
    """Single recorded value"""
    value: float
    timestamp: int = field(default_factory=_now_millis)


@dataclass(frozen=True)
class IastMetric:
    """Counter definition; identity is the metric name"""
    name: str
    scope: Scope = field(compare=False)
    metric_tag: Optional[MetricTag] = field(default=None, compare=False)
    common: bool = field(default=True, compare=False)
    type: str = field(default="count", compare=False)

    def has_operation_scope(self) -> bool:
        return self.scope == Scope.OPERATION

    def aggregated(self):
        """Handler keeping one point per recorded value"""
        from collectors.handlers import aggregated
        return aggregated(self)

    def conflated(self):
        """Handler keeping a running sum"""
        from collectors.handlers import conflated
        return conflated(self)

    def delegating(self, collector):
        """Handler writing straight through to another collector"""
        from collectors.handlers import delegating
        return delegating(self, collector)


@dataclass
class MetricData:
    """Drained points of one metric series"""
    metric: Optional[IastMetric]
    points: List[Point]
    tag: Optional[str] = None
