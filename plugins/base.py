"""Base plugin managing channel subscriptions"""
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union
from logging_config import get_logger
from .channels import ChannelRegistry, Subscriber, channels as default_channels


logger = get_logger(__name__)


@dataclass
class ChannelSubscription:
    channel_name: str
    handler: Subscriber


class Plugin:
    """Holds channel handlers and attaches them while the plugin is enabled"""

    def __init__(self, channels: Optional[ChannelRegistry] = None):
        self.channels = channels or default_channels
        self.config: Mapping[str, Any] = {}
        self._subscriptions: List[ChannelSubscription] = []
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    def add_sub(self, channel_name: str, handler: Subscriber) -> ChannelSubscription:
        subscription = ChannelSubscription(channel_name, handler)
        self._subscriptions.append(subscription)
        if self._enabled:
            self.channels.channel(channel_name).subscribe(handler)
        return subscription

    def configure(self, config: Union[bool, Mapping[str, Any]]) -> None:
        if isinstance(config, bool):
            config = {"enabled": config}
        self.config = config

        enabled = bool(config.get("enabled"))
        if enabled and not self._enabled:
            self._enabled = True
            for sub in self._subscriptions:
                self.channels.channel(sub.channel_name).subscribe(sub.handler)
        elif not enabled and self._enabled:
            self._enabled = False
            for sub in self._subscriptions:
                self.channels.channel(sub.channel_name).unsubscribe(sub.handler)
        logger.debug("Plugin configured", plugin=type(self).__name__, enabled=self._enabled)
