"""Named in-process event channels

Hosts with their own event bus can pass any object exposing ``channel(name)``
with the same ``subscribe`` / ``unsubscribe`` / ``publish`` surface.
"""
import threading
from typing import Any, Callable, Dict, List

Subscriber = Callable[[Any, str], None]

INSTRUMENTATION_LOAD_CHANNEL = "iast:instrumentation:load"


class Channel:
    def __init__(self, name: str):
        self.name = name
        self._subscribers: List[Subscriber] = []

    @property
    def has_subscribers(self) -> bool:
        return bool(self._subscribers)

    def subscribe(self, subscriber: Subscriber) -> None:
        # Copy-on-write so publish never iterates a list being mutated
        self._subscribers = self._subscribers + [subscriber]

    def unsubscribe(self, subscriber: Subscriber) -> bool:
        if subscriber not in self._subscribers:
            return False
        subscribers = list(self._subscribers)
        subscribers.remove(subscriber)
        self._subscribers = subscribers
        return True

    def publish(self, message: Any) -> None:
        for subscriber in self._subscribers:
            subscriber(message, self.name)


class ChannelRegistry:
    def __init__(self):
        self._channels: Dict[str, Channel] = {}
        self._lock = threading.Lock()

    def channel(self, name: str) -> Channel:
        with self._lock:
            channel = self._channels.get(name)
            if channel is None:
                channel = Channel(name)
                self._channels[name] = channel
            return channel

    def has_subscribers(self, name: str) -> bool:
        channel = self._channels.get(name)
        return channel is not None and channel.has_subscribers


channels = ChannelRegistry()
