"""Instrumentation telemetry around the external code rewriter"""
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional
from metrics.models import PropagationType
from metrics.registry import INSTRUMENTATION_TIME, INSTRUMENTED_PROPAGATION
from metrics.verbosity import Verbosity
from .service import IastTelemetry


@dataclass
class RewriteResult:
    content: Any
    metrics: Dict[str, float] = field(default_factory=dict)


Rewriter = Callable[[Any, str], RewriteResult]
RewriteFunction = Callable[[Any, str], Optional[RewriteResult]]


def _always(filename: str) -> bool:
    return True


def get_rewrite_function(rewriter: Rewriter, telemetry: IastTelemetry,
                         should_rewrite: Callable[[str], bool] = _always) -> RewriteFunction:
    """Pick the rewrite wrapper matching the current verbosity

    More verbose levels pay for more telemetry: INFORMATION counts
    instrumented propagation points, DEBUG also times every rewrite.
    """

    def telemetry_off_rewrite(content, filename):
        if should_rewrite(filename):
            return rewriter(content, filename)
        return None

    def telemetry_information_rewrite(content, filename):
        response = telemetry_off_rewrite(content, filename)
        if response is None:
            return None

        instrumented = response.metrics.get("instrumented_propagation") if response.metrics else None
        if instrumented:
            telemetry.add(INSTRUMENTED_PROPAGATION, instrumented, PropagationType.STRING.value)
        return response

    def telemetry_debug_rewrite(content, filename):
        start = time.perf_counter_ns()
        response = telemetry_information_rewrite(content, filename)
        if response is None:
            return None

        rewrite_time = (time.perf_counter_ns() - start) * 1e-6
        telemetry.add(INSTRUMENTATION_TIME, rewrite_time)
        return response

    if not telemetry.is_enabled() or telemetry.verbosity == Verbosity.OFF:
        return telemetry_off_rewrite
    if telemetry.verbosity == Verbosity.DEBUG:
        return telemetry_debug_rewrite
    return telemetry_information_rewrite
