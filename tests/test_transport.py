"""Tests for the broker connection state machine."""

import random
import threading

import pytest

from src.sitewatch.bus.dispatch import DispatchTable
from src.sitewatch.bus.topics import TopicRegistry
from src.sitewatch.bus.transport import ClientClosedError, ConnectionState, TransportConnection


@pytest.fixture
def make_connection():
    """Build connections that never time out on their own unless asked to."""
    made = []

    def factory(transport, **kwargs):
        kwargs.setdefault("connect_timeout", 60.0)
        kwargs.setdefault("simulation_interval", 60.0)
        kwargs.setdefault("rng", random.Random(7))
        conn = TransportConnection(transport, TopicRegistry(), DispatchTable(), **kwargs)
        made.append(conn)
        return conn

    yield factory
    for conn in made:
        conn.close()


class TestLifecycle:

    def test_open_moves_to_connecting(self, transport, make_connection):
        conn = make_connection(transport)
        states = []
        conn.add_state_listener(states.append)

        conn.open()

        assert conn.state is ConnectionState.CONNECTING
        assert transport.connect_calls == 1
        assert states == [ConnectionState.CONNECTING]

    def test_open_twice_does_not_reconnect(self, transport, make_connection):
        conn = make_connection(transport)
        conn.open()
        conn.open()
        transport.accept()
        conn.reconnect()

        assert transport.connect_calls == 1
        assert conn.state is ConnectionState.CONNECTED

    def test_connected_replays_topics_in_order(self, transport, make_connection):
        conn = make_connection(transport)
        for topic in ["F21/PA1/Current L1", "F21/Env/T1", "F21/Network"]:
            conn.want(topic)
        conn.open()
        assert transport.subscribed == []

        transport.accept()

        assert transport.subscribed == ["F21/PA1/Current L1", "F21/Env/T1", "F21/Network"]

    def test_topic_added_while_connected_is_sent_once(self, transport, make_connection):
        conn = make_connection(transport)
        conn.open()
        transport.accept()

        assert conn.want("Site/Power") is True
        assert conn.want("Site/Power") is False

        assert transport.subscribed == ["Site/Power"]

    def test_drop_unsubscribes_only_when_connected(self, transport, make_connection):
        conn = make_connection(transport)
        conn.want("a")
        conn.drop("a")
        assert transport.unsubscribed == []

        conn.want("b")
        conn.open()
        transport.accept()
        assert conn.drop("b") is True
        assert conn.drop("b") is False
        assert transport.unsubscribed == ["b"]

    def test_frames_are_dispatched(self, transport, make_connection):
        conn = make_connection(transport)
        received = []
        conn.dispatch.register("Site/Power", received.append)
        conn.open()
        transport.accept()

        transport.publish("Site/Power", "42.5")

        assert received == ["42.5"]

    def test_reconnect_after_drop_replays_everything(self, transport, make_connection):
        conn = make_connection(transport)
        conn.want("a")
        conn.want("b")
        conn.open()
        transport.accept()
        transport.drop()

        assert conn.state is ConnectionState.DISCONNECTED

        transport.accept()

        assert conn.state is ConnectionState.CONNECTED
        assert transport.subscribed == ["a", "b", "a", "b"]

    def test_closed_event_ignored_unless_connected(self, transport, make_connection):
        conn = make_connection(transport)
        conn.open()
        transport.drop()
        assert conn.state is ConnectionState.CONNECTING


class TestFallback:

    def test_timeout_enters_simulated_fallback(self, transport, make_connection):
        conn = make_connection(transport)
        conn.open()

        conn.handle_timeout()

        assert conn.state is ConnectionState.SIMULATED_FALLBACK
        assert conn.emitter.running is True

    def test_timeout_after_connect_is_ignored(self, transport, make_connection):
        conn = make_connection(transport)
        conn.open()
        transport.accept()

        conn.handle_timeout()

        assert conn.state is ConnectionState.CONNECTED
        assert conn.emitter.running is False

    def test_connect_error_falls_back(self, failing_transport, make_connection):
        conn = make_connection(failing_transport)

        conn.open()

        assert conn.state is ConnectionState.SIMULATED_FALLBACK

    def test_fallback_disabled_stays_disconnected(self, failing_transport, make_connection):
        conn = make_connection(failing_transport, simulate_when_offline=False)

        conn.open()

        assert conn.state is ConnectionState.DISCONNECTED
        assert conn.emitter.running is False

    def test_error_while_connected_keeps_state(self, transport, make_connection):
        conn = make_connection(transport)
        conn.open()
        transport.accept()

        conn.handle_error(ConnectionError("keepalive missed"))

        assert conn.state is ConnectionState.CONNECTED

    def test_simulated_tick_reaches_subscribers(self, transport, make_connection):
        conn = make_connection(transport)
        received = []
        conn.dispatch.register("F21/PA1/Current L1", received.append)
        conn.want("F21/PA1/Current L1")
        conn.want("F21/Network")
        conn.open()
        conn.handle_timeout()

        assert conn.emitter.tick() == 2

        assert len(received) == 1
        assert 30.0 <= float(received[0]) <= 50.0

    def test_real_connection_stops_simulation(self, transport, make_connection):
        conn = make_connection(transport)
        received = []
        conn.dispatch.register("t/T1", received.append)
        conn.want("t/T1")
        conn.open()
        conn.handle_timeout()

        transport.accept()
        conn.emitter.tick()

        assert conn.state is ConnectionState.CONNECTED
        assert conn.emitter.running is False
        assert received == []
        assert transport.subscribed == ["t/T1"]

    def test_connect_timer_fires(self, transport, make_connection):
        conn = make_connection(transport, connect_timeout=0.05)
        reached = threading.Event()
        conn.add_state_listener(
            lambda state: reached.set() if state is ConnectionState.SIMULATED_FALLBACK else None
        )

        conn.open()

        assert reached.wait(2.0)

    def test_emitter_thread_delivers_periodically(self, failing_transport, make_connection):
        conn = make_connection(failing_transport, simulation_interval=0.02)
        got = threading.Event()
        conn.dispatch.register("F21/Water Level", lambda payload: got.set())
        conn.want("F21/Water Level")

        conn.open()

        assert got.wait(2.0)


class TestClose:

    def test_close_is_terminal(self, transport, make_connection):
        conn = make_connection(transport)
        conn.open()
        conn.close()

        assert conn.closed is True
        assert conn.state is ConnectionState.DISCONNECTED
        assert transport.closed is True
        assert conn._timer is None
        with pytest.raises(ClientClosedError):
            conn.open()
        with pytest.raises(ClientClosedError):
            conn.want("x")

    def test_events_after_close_are_ignored(self, transport, make_connection):
        conn = make_connection(transport)
        received = []
        conn.dispatch.register("t", received.append)
        conn.want("t")
        conn.open()
        conn.close()

        transport.accept()
        transport.publish("t", "1")
        conn.handle_timeout()

        assert conn.state is ConnectionState.DISCONNECTED
        assert received == []
        assert transport.subscribed == []

    def test_close_stops_simulation(self, failing_transport, make_connection):
        conn = make_connection(failing_transport)
        conn.open()
        assert conn.emitter.running is True

        conn.close()
        conn.close()

        assert conn.emitter.running is False
