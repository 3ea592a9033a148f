"""Topic-keyed callback table for inbound bus messages."""

import logging
import threading
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

TopicCallback = Callable[[str], None]
GlobalCallback = Callable[[str, str], None]


class DispatchTable:
    """Map topic -> ordered callbacks, plus observers of every message.

    Delivery iterates over copies of the callback lists, so a callback may
    subscribe or unsubscribe while a message is being delivered.
    """

    def __init__(self) -> None:
        self._by_topic: Dict[str, List[TopicCallback]] = {}
        self._global: List[GlobalCallback] = []
        self._lock = threading.RLock()

    def register(self, topic: str, callback: TopicCallback) -> None:
        with self._lock:
            self._by_topic.setdefault(topic, []).append(callback)

    def register_global(self, callback: GlobalCallback) -> None:
        with self._lock:
            self._global.append(callback)

    def unregister(self, topic: str, callback: TopicCallback) -> bool:
        """Drop one registration of ``callback`` under ``topic``."""
        with self._lock:
            callbacks = self._by_topic.get(topic)
            if not callbacks or callback not in callbacks:
                return False
            callbacks.remove(callback)
            if not callbacks:
                del self._by_topic[topic]
            return True

    def unregister_all(self, topic: str) -> None:
        with self._lock:
            self._by_topic.pop(topic, None)

    def has_callbacks(self, topic: str) -> bool:
        with self._lock:
            return bool(self._by_topic.get(topic))

    def clear(self) -> None:
        with self._lock:
            self._by_topic.clear()
            self._global.clear()

    def deliver(self, topic: str, payload: str) -> int:
        """Invoke topic callbacks with ``(payload)``, then global ones with ``(topic, payload)``.

        A failing callback is logged and does not stop delivery to the rest.
        Returns the number of callbacks that completed.
        """
        with self._lock:
            scoped = list(self._by_topic.get(topic, ()))
            observers = list(self._global)

        delivered = 0
        for callback in scoped:
            try:
                callback(payload)
                delivered += 1
            except Exception:
                logger.exception("Callback for topic %s failed", topic)

        for observer in observers:
            try:
                observer(topic, payload)
                delivered += 1
            except Exception:
                logger.exception("Message observer failed on topic %s", topic)

        return delivered
