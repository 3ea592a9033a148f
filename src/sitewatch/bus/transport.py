"""Broker connection state machine: reconnect, topic replay and simulated fallback."""

import logging
import random
import threading
from enum import Enum
from typing import Callable, List, Optional

from src.sitewatch.bus.dispatch import DispatchTable
from src.sitewatch.bus.topics import TopicRegistry
from src.sitewatch.simulator.emitter import FallbackEmitter

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SIMULATED_FALLBACK = "simulated_fallback"


class ClientClosedError(RuntimeError):
    """Raised when a torn-down bus client or connection is used again."""


StateListener = Callable[[ConnectionState], None]


class Transport:
    """One physical broker connection.

    Implementations report back to the bound listener through
    ``handle_connected``, ``handle_closed``, ``handle_error`` and
    ``handle_frame``. They may do so from any thread.
    """

    listener = None

    def bind(self, listener) -> None:
        self.listener = listener

    def connect(self) -> None:
        raise NotImplementedError

    def subscribe(self, topic: str) -> None:
        raise NotImplementedError

    def unsubscribe(self, topic: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class TransportConnection:
    """Drive a `Transport` and keep the broker in sync with the topic registry."""

    def __init__(
        self,
        transport: Transport,
        registry: TopicRegistry,
        dispatch: DispatchTable,
        connect_timeout: float = 5.0,
        simulate_when_offline: bool = True,
        simulation_interval: float = 5.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.transport = transport
        self.registry = registry
        self.dispatch = dispatch
        self.connect_timeout = connect_timeout
        self.simulate_when_offline = simulate_when_offline
        self.emitter = FallbackEmitter(
            topics=registry.snapshot,
            deliver=self._deliver_simulated,
            interval=simulation_interval,
            rng=rng,
        )
        self._state = ConnectionState.DISCONNECTED
        self._closed = False
        self._timer: Optional[threading.Timer] = None
        self._listeners: List[StateListener] = []
        self._lock = threading.RLock()
        transport.bind(self)

    # ------------------------------------------------------------------ state

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def add_state_listener(self, listener: StateListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        previous, self._state = self._state, state
        logger.info("Bus connection %s -> %s", previous.value, state.value)
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Connection state listener failed")

    def _arm_timer(self) -> None:
        self._cancel_timer()
        self._timer = threading.Timer(self.connect_timeout, self.handle_timeout)
        self._timer.daemon = True
        self._timer.start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fall_back(self) -> None:
        self._cancel_timer()
        if self.simulate_when_offline:
            self._set_state(ConnectionState.SIMULATED_FALLBACK)
            self.emitter.start()
        else:
            self._set_state(ConnectionState.DISCONNECTED)

    # -------------------------------------------------------------- lifecycle

    def open(self) -> None:
        """Start connecting. No-op while already connecting or connected."""
        with self._lock:
            if self._closed:
                raise ClientClosedError("bus connection has been closed")
            if self._state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
                return
            self._set_state(ConnectionState.CONNECTING)
            self._arm_timer()
        try:
            self.transport.connect()
        except Exception as exc:
            self.handle_error(exc)

    def reconnect(self) -> None:
        self.open()

    def close(self) -> None:
        """Tear down timers, the simulated feed and the transport. Final."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._cancel_timer()
            self._set_state(ConnectionState.DISCONNECTED)
            self._listeners.clear()
        self.emitter.stop()
        try:
            self.transport.close()
        except Exception:
            logger.exception("Failed to close bus transport")

    # --------------------------------------------------------------- topics

    def want(self, topic: str) -> bool:
        """Record interest in a topic; subscribe on the wire right away if connected."""
        with self._lock:
            if self._closed:
                raise ClientClosedError("bus connection has been closed")
            added = self.registry.add(topic)
            send = added and self._state is ConnectionState.CONNECTED
        if send:
            self._send_subscribe(topic)
        return added

    def drop(self, topic: str) -> bool:
        """Forget a topic; best-effort unsubscribe on the wire if connected."""
        with self._lock:
            removed = self.registry.remove(topic)
            send = removed and self._state is ConnectionState.CONNECTED and not self._closed
        if send:
            try:
                self.transport.unsubscribe(topic)
            except Exception:
                logger.exception("Error unsubscribing from %s", topic)
        return removed

    def _send_subscribe(self, topic: str) -> None:
        try:
            self.transport.subscribe(topic)
        except Exception:
            logger.exception("Error subscribing to %s", topic)

    # -------------------------------------------------------- transport events

    def handle_connected(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._cancel_timer()
            self._set_state(ConnectionState.CONNECTED)
            topics = self.registry.snapshot()
        self.emitter.stop()
        logger.info("Connected to broker, subscribing to %d topics", len(topics))
        for topic in topics:
            self._send_subscribe(topic)

    def handle_closed(self) -> None:
        with self._lock:
            if self._closed or self._state is not ConnectionState.CONNECTED:
                return
            logger.warning("Broker connection closed, waiting for reconnect")
            self._set_state(ConnectionState.DISCONNECTED)
            # fall back only if the transport's own reconnect does not land in time
            self._arm_timer()

    def handle_error(self, exc: BaseException) -> None:
        logger.error("Broker connection error: %s", exc)
        with self._lock:
            if self._closed:
                return
            if self._state in (ConnectionState.CONNECTING, ConnectionState.DISCONNECTED):
                self._fall_back()

    def handle_timeout(self) -> None:
        with self._lock:
            self._timer = None
            if self._closed or self._state in (ConnectionState.CONNECTED, ConnectionState.SIMULATED_FALLBACK):
                return
            logger.warning("No broker connection after %.1fs", self.connect_timeout)
            self._fall_back()

    def handle_frame(self, topic: str, payload: str) -> None:
        if self._closed:
            return
        logger.debug("Received message on %s: %s", topic, payload)
        self.dispatch.deliver(topic, payload)

    def _deliver_simulated(self, topic: str, payload: str) -> None:
        if self._closed or self._state is ConnectionState.CONNECTED:
            return
        self.dispatch.deliver(topic, payload)
