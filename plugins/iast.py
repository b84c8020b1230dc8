"""IAST plugins: analyzer subscriptions wrapped with context, counting and error isolation"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
from logging_config import get_logger
from metrics.models import IastMetric, MetricTag
from metrics.registry import get_executed_metric, get_instrumented_metric
from operations.context import OperationContext, get_operation_context, get_store
from telemetry.service import IastTelemetry, telemetry as default_telemetry
from .base import Plugin
from .channels import INSTRUMENTATION_LOAD_CHANNEL, ChannelRegistry


logger = get_logger(__name__)


@dataclass
class IastPluginSubscription:
    """Analyzer subscription to a runtime event

    module_name identifies the instrumented module whose activation bumps the
    instrumented metric; channel_name carries execution events; tag names the
    source type (sources) or vulnerability type (sinks); metric_tag is the
    dimension, SOURCE_TYPE or VULNERABILITY_TYPE.
    """
    module_name: str
    channel_name: str
    tag: Optional[str] = None
    metric_tag: MetricTag = MetricTag.VULNERABILITY_TYPE


@dataclass
class IastPluginContext:
    """Second argument handed to every analyzer handler"""
    store: Optional[Mapping[str, Any]]
    iast_context: Optional[OperationContext]


IastHandler = Callable[[Any, IastPluginContext, Optional[str]], Any]
SubscriptionSpec = Union[str, IastPluginSubscription, Mapping[str, Any]]


def get_module_name(channel_name: str) -> str:
    """Second colon-delimited segment of a channel name, or the whole name"""
    parts = channel_name.split(":")
    if len(parts) == 1:
        return channel_name
    return parts[1]


class IastPlugin(Plugin):
    def __init__(self,
                 telemetry: Optional[IastTelemetry] = None,
                 channels: Optional[ChannelRegistry] = None,
                 store_getter: Callable[[], Optional[Mapping[str, Any]]] = get_store):
        super().__init__(channels)
        self.telemetry = telemetry or default_telemetry
        self.store_getter = store_getter
        self.configured = False
        self.plugin_subs: List[IastPluginSubscription] = []
        self.on_instrumentation_loaded_listener = None

    def _wrap_handler(self, handler: IastHandler, metric: Optional[IastMetric] = None, tag: Optional[str] = None):
        def wrapped(message: Any, name: Optional[str] = None) -> None:
            try:
                store = self.store_getter()
                iast_context = get_operation_context(store)
                if metric is not None:
                    self.telemetry.increase(metric, tag, iast_context)
                handler(message, IastPluginContext(store, iast_context), name)
            except Exception as e:
                logger.error("IAST handler failed", plugin=type(self).__name__, channel=name,
                             error=str(e), exc_info=True)

        return wrapped

    def add_sub(self, iast_sub: SubscriptionSpec, handler: IastHandler) -> Optional[IastPluginSubscription]:
        """Subscribe a handler; a plain channel name gets no telemetry counting"""
        if isinstance(iast_sub, str):
            super().add_sub(iast_sub, self._wrap_handler(handler))
            return None

        subscription = self.get_subscription(iast_sub)
        if subscription is None:
            return None

        self.plugin_subs.append(subscription)
        metric = get_executed_metric(subscription.metric_tag)
        super().add_sub(subscription.channel_name, self._wrap_handler(handler, metric, subscription.tag))
        return subscription

    def register(self, channel_name: str, metric_tag: MetricTag, tag: Optional[str],
                 handler: IastHandler) -> Optional[IastPluginSubscription]:
        return self.add_sub({"channel_name": channel_name, "metric_tag": metric_tag, "tag": tag}, handler)

    def on_configure(self) -> None:
        """Register subscriptions; runs once, on the first configure call"""

    def configure(self, config) -> None:
        if not self.configured:
            self.on_configure()
            self.configured = True

        super().configure(config)

        if self.telemetry.is_enabled() and self.enabled:
            self.enable_telemetry()
        else:
            self.disable_telemetry()

    def get_subscription(self, iast_sub: Union[IastPluginSubscription, Mapping[str, Any]]) -> Optional[IastPluginSubscription]:
        if isinstance(iast_sub, IastPluginSubscription):
            fields: Dict[str, Any] = vars(iast_sub).copy()
        else:
            fields = dict(iast_sub)

        channel_name = fields.get("channel_name")
        if not channel_name:
            return None

        return IastPluginSubscription(
            module_name=fields.get("module_name") or get_module_name(channel_name),
            channel_name=channel_name,
            tag=fields.get("tag"),
            metric_tag=fields.get("metric_tag") or MetricTag.VULNERABILITY_TYPE
        )

    def enable_telemetry(self) -> None:
        if self.on_instrumentation_loaded_listener is not None:
            return
        self.on_instrumentation_loaded_listener = self._on_instrumentation_load_message
        self.channels.channel(INSTRUMENTATION_LOAD_CHANNEL).subscribe(self.on_instrumentation_loaded_listener)

    def disable_telemetry(self) -> None:
        if self.on_instrumentation_loaded_listener is None:
            return
        self.channels.channel(INSTRUMENTATION_LOAD_CHANNEL).unsubscribe(self.on_instrumentation_loaded_listener)
        self.on_instrumentation_loaded_listener = None

    def _on_instrumentation_load_message(self, message: Any, name: Optional[str] = None) -> None:
        try:
            module = message.get("name") if isinstance(message, Mapping) else message
            self.on_instrumentation_loaded(module)
        except Exception as e:
            logger.error("Instrumentation load listener failed", error=str(e), exc_info=True)

    def on_instrumentation_loaded(self, name: Optional[str]) -> None:
        if not name:
            return
        for sub in self.plugin_subs:
            if name in sub.module_name:
                self.telemetry.increase(get_instrumented_metric(sub.metric_tag), sub.tag)


class SourceIastPlugin(IastPlugin):
    def get_subscription(self, iast_sub):
        subscription = super().get_subscription(iast_sub)
        if subscription is not None:
            subscription.metric_tag = MetricTag.SOURCE_TYPE
        return subscription


class SinkIastPlugin(IastPlugin):
    def get_subscription(self, iast_sub):
        subscription = super().get_subscription(iast_sub)
        if subscription is not None:
            subscription.metric_tag = MetricTag.VULNERABILITY_TYPE
        return subscription
