"""OpenTelemetry sender for drained telemetry payloads"""
from typing import Any, Dict, Optional
from opentelemetry import metrics
from opentelemetry.metrics import Counter, MeterProvider
from logging_config import get_logger


logger = get_logger(__name__)

INSTRUMENTATION_SCOPE = "iast_telemetry"
INSTRUMENTATION_VERSION = "1.0.0"


class OpenTelemetrySender:
    """Records each drained series on an OpenTelemetry counter

    Usable as a MetricsReporter sender. Counter names are
    ``<record namespace>.<metric>``; the ``<dimension>:<value>`` tag becomes
    a single attribute.
    """

    def __init__(self, meter_provider: Optional[MeterProvider] = None):
        provider = meter_provider or metrics.get_meter_provider()
        self.meter = provider.get_meter(INSTRUMENTATION_SCOPE, INSTRUMENTATION_VERSION)
        self.instruments: Dict[str, Counter] = {}

    def __call__(self, payload: Dict[str, Any]) -> None:
        for record in payload.get("series", []):
            self.record(record)

    def record(self, record: Dict[str, Any]) -> None:
        name = f"{record.get('namespace', 'iast')}.{record['metric']}"
        total = sum(value for _, value in record.get("points", []))
        if total < 0:
            logger.warning("Skipping negative counter value", metric=name, value=total)
            return
        self._get_counter(name).add(total, attributes=self._tag_to_attributes(record.get("tag")))

    def _get_counter(self, name: str) -> Counter:
        counter = self.instruments.get(name)
        if counter is None:
            counter = self.meter.create_counter(name, unit="1", description=f"IAST telemetry {name}")
            self.instruments[name] = counter
        return counter

    @staticmethod
    def _tag_to_attributes(tag: Optional[str]) -> Dict[str, str]:
        if not tag:
            return {}
        key, _, value = tag.partition(":")
        return {key: value}
