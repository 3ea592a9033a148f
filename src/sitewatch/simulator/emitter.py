import logging
import random
import threading
from typing import Callable, Iterable, Optional

from src.sitewatch.simulator.values import simulated_value

logger = logging.getLogger(__name__)


class FallbackEmitter:
    """Periodically push simulated values for every wanted topic.

    - `topics` is called on every round so newly subscribed topics are picked up.
    - `deliver(topic, payload)` hands each value to the subscribers.
    - The first round is emitted one `interval` after `start()`.
    """

    def __init__(
        self,
        topics: Callable[[], Iterable[str]],
        deliver: Callable[[str, str], object],
        interval: float = 5.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.topics = topics
        self.deliver = deliver
        self.interval = interval
        self.rng = rng or random.Random()
        self.stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        logger.warning("Starting simulated data feed (every %.1fs)", self.interval)
        self.stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self.stop_event,), name="bus-fallback")
        self._thread.daemon = True
        self._thread.start()

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Simulated data round failed")

    def tick(self) -> int:
        """Emit one simulated value per topic. Returns how many were emitted."""
        count = 0
        for topic in list(self.topics()):
            self.deliver(topic, simulated_value(topic, self.rng))
            count += 1
        return count

    def stop(self) -> None:
        thread = self._thread
        self.stop_event.set()
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)
            logger.info("Simulated data feed stopped")
