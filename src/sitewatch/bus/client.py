"""Message bus client shared by every dashboard widget.

One instance owns one broker connection. Widgets subscribe with a callback
and receive raw text payloads; broad consumers read the last value per
topic. Connection problems never raise to callers: they show up as
`ConnectionState` changes and, when enabled, as simulated values.
"""

import logging
import random
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from src.sitewatch import config
from src.sitewatch.bus.dispatch import DispatchTable, GlobalCallback, TopicCallback
from src.sitewatch.bus.topics import TopicRegistry
from src.sitewatch.bus.transport import (
    ClientClosedError,
    ConnectionState,
    StateListener,
    Transport,
    TransportConnection,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Message:
    topic: str
    payload: str
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class LastValueCache:
    """Keep only the newest message per topic."""

    def __init__(self) -> None:
        self._latest: Dict[str, Message] = {}
        self._lock = threading.Lock()

    def __call__(self, topic: str, payload: str) -> None:
        with self._lock:
            self._latest[topic] = Message(topic, payload)

    def get(self, topic: str) -> Optional[Message]:
        with self._lock:
            return self._latest.get(topic)

    def values(self) -> Dict[str, str]:
        with self._lock:
            return {topic: msg.payload for topic, msg in self._latest.items()}

    def clear(self) -> None:
        with self._lock:
            self._latest.clear()


class Subscription:
    """Handle for one (topic, callback) registration."""

    def __init__(self, client: "MessageBusClient", topic: str, callback: Optional[TopicCallback]) -> None:
        self.client = client
        self.topic = topic
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        """Revoke this callback; drop the topic once nobody listens to it."""
        if not self.active:
            return
        self.active = False
        self.client._release(self)

    def __repr__(self) -> str:
        return f"Subscription(topic={self.topic!r}, active={self.active})"


class MessageBusClient:
    def __init__(
        self,
        transport: Transport,
        connect_timeout: float = config.BUS_CONNECT_TIMEOUT,
        simulate_when_offline: bool = config.BUS_SIMULATE_OFFLINE,
        simulation_interval: float = config.BUS_SIMULATION_INTERVAL,
        rng: Optional[random.Random] = None,
        autoconnect: bool = True,
    ) -> None:
        self.registry = TopicRegistry()
        self.dispatch = DispatchTable()
        self.cache = LastValueCache()
        self.dispatch.register_global(self.cache)
        # live Subscription handles per topic
        self._handles: Dict[str, List["Subscription"]] = {}
        self._handles_lock = threading.Lock()
        self.connection = TransportConnection(
            transport,
            self.registry,
            self.dispatch,
            connect_timeout=connect_timeout,
            simulate_when_offline=simulate_when_offline,
            simulation_interval=simulation_interval,
            rng=rng,
        )
        if autoconnect:
            self.connection.open()

    @classmethod
    def from_config(cls, url: str = config.MQTT_URL, **kwargs) -> "MessageBusClient":
        """Build a client on a paho-mqtt transport using `config` defaults."""
        from src.sitewatch.bus.mqtt_transport import MqttTransport

        transport = MqttTransport(url, reconnect_period=config.BUS_RECONNECT_PERIOD)
        return cls(transport, **kwargs)

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    @property
    def closed(self) -> bool:
        return self.connection.closed

    def _check_open(self) -> None:
        if self.connection.closed:
            raise ClientClosedError("bus client has been disconnected")

    def connect(self) -> None:
        self.connection.open()

    def subscribe(self, topic: str, callback: Optional[TopicCallback] = None) -> Subscription:
        self._check_open()
        if callback is not None:
            self.dispatch.register(topic, callback)
        subscription = Subscription(self, topic, callback)
        with self._handles_lock:
            self._handles.setdefault(topic, []).append(subscription)
        self.connection.want(topic)
        return subscription

    def unsubscribe(self, topic: str) -> None:
        """Forget ``topic`` and all of its callbacks. Unknown topics are ignored.

        Handles issued for the topic so far are revoked; cancelling them
        later does not touch subscriptions made after this call.
        """
        self.dispatch.unregister_all(topic)
        with self._handles_lock:
            revoked = self._handles.pop(topic, [])
        for subscription in revoked:
            subscription.active = False
        if not self.connection.closed:
            self.connection.drop(topic)

    def _release(self, subscription: Subscription) -> None:
        if self.connection.closed:
            return
        topic = subscription.topic
        with self._handles_lock:
            live = self._handles.get(topic, [])
            if not any(handle is subscription for handle in live):
                return
            live = [handle for handle in live if handle is not subscription]
            if live:
                self._handles[topic] = live
            else:
                del self._handles[topic]
        if subscription.callback is not None:
            self.dispatch.unregister(topic, subscription.callback)
        if not live and not self.dispatch.has_callbacks(topic):
            self.unsubscribe(topic)

    def handle_count(self, topic: str) -> int:
        """Number of live `Subscription` handles for ``topic``."""
        with self._handles_lock:
            return len(self._handles.get(topic, ()))

    def on_message(self, callback: GlobalCallback) -> None:
        self._check_open()
        self.dispatch.register_global(callback)

    def on_state_change(self, callback: StateListener) -> None:
        self._check_open()
        self.connection.add_state_listener(callback)

    def latest(self, topic: str) -> Optional[Message]:
        return self.cache.get(topic)

    def values(self) -> Dict[str, str]:
        return self.cache.values()

    def value(self, topic: str, default: float = 0.0) -> float:
        """Latest payload parsed as a number, or ``default``."""
        message = self.cache.get(topic)
        if message is None:
            return default
        try:
            return float(message.payload)
        except ValueError:
            return default

    def disconnect(self) -> None:
        """Release the connection and every registration. The client is unusable afterwards."""
        if self.connection.closed:
            return
        self.connection.close()
        self.dispatch.clear()
        self.registry.clear()
        self.cache.clear()
        with self._handles_lock:
            for handles in self._handles.values():
                for subscription in handles:
                    subscription.active = False
            self._handles.clear()
        logger.info("Bus client disconnected")

    def __enter__(self) -> "MessageBusClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()
