"""Registry of topics the dashboard currently wants from the broker."""

import threading
from typing import Dict, Iterator, List


class TopicRegistry:
    """Insertion-ordered set of topics with idempotent add/remove.

    The order is the order topics are replayed in after a (re)connect.
    """

    def __init__(self) -> None:
        self._topics: Dict[str, None] = {}
        self._lock = threading.RLock()

    def add(self, topic: str) -> bool:
        """Add a topic. Returns True only if it was not registered yet."""
        with self._lock:
            if topic in self._topics:
                return False
            self._topics[topic] = None
            return True

    def remove(self, topic: str) -> bool:
        """Remove a topic. Returns True if it was registered."""
        with self._lock:
            if topic not in self._topics:
                return False
            del self._topics[topic]
            return True

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self._topics)

    def clear(self) -> None:
        with self._lock:
            self._topics.clear()

    def __contains__(self, topic: object) -> bool:
        return topic in self._topics

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._topics)
