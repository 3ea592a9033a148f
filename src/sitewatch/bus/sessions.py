"""Bus subscriptions held on behalf of dashboard sessions."""

import logging
import threading
import time
from typing import Callable, Dict, Iterable, List

from src.sitewatch import config
from src.sitewatch.bus.client import MessageBusClient, Subscription

logger = logging.getLogger(__name__)


class SessionSubscriptions:
    """One topic set per session, released when the session goes away.

    A session watches the topics of the page it is showing. Switching pages
    calls `watch` with the new set or `release`. There is no notification
    when a browser tab closes, so sessions that have not checked in for
    ``idle_timeout`` seconds are released by `sweep`, which every `watch`
    runs first.
    """

    def __init__(
        self,
        bus: MessageBusClient,
        idle_timeout: float = config.SESSION_IDLE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.bus = bus
        self.idle_timeout = idle_timeout
        self.clock = clock
        self._held: Dict[str, List[Subscription]] = {}
        self._seen: Dict[str, float] = {}
        self._lock = threading.Lock()

    def watch(self, session_id: str, topics: Iterable[str]) -> None:
        """Keep ``session_id`` subscribed to exactly ``topics``."""
        self.sweep()
        wanted = list(dict.fromkeys(topics))
        with self._lock:
            self._seen[session_id] = self.clock()
            held = self._held.get(session_id, [])
            if [s.topic for s in held] == wanted and all(s.active for s in held):
                return
            self._held[session_id] = []
        for subscription in held:
            subscription.cancel()
        subscriptions = [self.bus.subscribe(topic) for topic in wanted]
        with self._lock:
            self._held[session_id] = subscriptions
        logger.debug("Session %s watching %d topics", session_id, len(wanted))

    def release(self, session_id: str) -> None:
        with self._lock:
            held = self._held.pop(session_id, [])
            self._seen.pop(session_id, None)
        for subscription in held:
            subscription.cancel()
        if held:
            logger.debug("Session %s released %d topics", session_id, len(held))

    def sweep(self) -> List[str]:
        """Release sessions idle for longer than ``idle_timeout``. Returns their ids."""
        now = self.clock()
        with self._lock:
            idle = [sid for sid, seen in self._seen.items() if now - seen > self.idle_timeout]
        for session_id in idle:
            logger.info("Releasing subscriptions of idle dashboard session %s", session_id)
            self.release(session_id)
        return idle

    def topics(self, session_id: str) -> List[str]:
        with self._lock:
            return [s.topic for s in self._held.get(session_id, [])]

    def sessions(self) -> List[str]:
        with self._lock:
            return list(self._held)
