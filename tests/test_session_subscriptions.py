"""Tests for the per-session bus subscriptions kept by the dashboard."""

import pytest

from src.sitewatch.bus.client import MessageBusClient
from src.sitewatch.bus.sessions import SessionSubscriptions


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def bus(transport):
    client = MessageBusClient(transport, connect_timeout=60.0, simulation_interval=60.0)
    transport.accept()
    yield client
    client.disconnect()


@pytest.fixture
def sessions(bus, clock):
    return SessionSubscriptions(bus, idle_timeout=120.0, clock=clock)


def test_watch_replaces_previous_topics(sessions, bus, transport):
    sessions.watch("a", ["F21/Network", "F21/Airflow"])
    sessions.watch("a", ["F21/Airflow", "F21/Water"])

    assert sessions.topics("a") == ["F21/Airflow", "F21/Water"]
    assert transport.unsubscribed == ["F21/Network", "F21/Airflow"]
    assert sorted(bus.registry.snapshot()) == ["F21/Airflow", "F21/Water"]


def test_same_topics_are_kept(sessions, bus, transport):
    sessions.watch("a", ["F21/Network"])
    sessions.watch("a", ["F21/Network"])

    assert transport.subscribed == ["F21/Network"]
    assert transport.unsubscribed == []
    assert bus.handle_count("F21/Network") == 1


def test_shared_topic_survives_one_release(sessions, bus, transport):
    sessions.watch("a", ["F21/Network"])
    sessions.watch("b", ["F21/Network"])

    sessions.release("a")

    assert "F21/Network" in bus.registry
    assert transport.unsubscribed == []

    sessions.release("b")

    assert "F21/Network" not in bus.registry
    assert transport.unsubscribed == ["F21/Network"]


def test_idle_session_is_swept(sessions, bus, transport, clock):
    sessions.watch("gone", ["F21/Network"])
    clock.now += 60
    sessions.watch("active", ["F21/Airflow"])
    clock.now += 100

    sessions.watch("active", ["F21/Airflow"])

    assert sessions.sessions() == ["active"]
    assert transport.unsubscribed == ["F21/Network"]
    assert bus.registry.snapshot() == ["F21/Airflow"]


def test_swept_session_subscribes_again_on_return(sessions, bus, transport, clock):
    sessions.watch("a", ["F21/Network"])
    clock.now += 500

    assert sessions.sweep() == ["a"]
    assert sessions.topics("a") == []

    sessions.watch("a", ["F21/Network"])

    assert transport.subscribed == ["F21/Network", "F21/Network"]
    assert sessions.topics("a") == ["F21/Network"]


def test_release_unknown_session_is_noop(sessions, transport):
    sessions.release("never-seen")
    assert transport.unsubscribed == []
