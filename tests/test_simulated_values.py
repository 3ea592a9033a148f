"""Tests for simulated sensor readings."""

import random

import pytest

from src.sitewatch.simulator.emitter import FallbackEmitter
from src.sitewatch.simulator.values import simulated_value


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.mark.parametrize(
    "topic, low, high",
    [
        ("F21/PA1/Current L2", 30.0, 50.0),
        ("F21/PA1/Phase V L1", 220.0, 230.0),
        ("F21/PA2/Neutral V", 220.0, 230.0),
        ("F21/PA1/Total Active Power", 80000, 90000),
        ("F21/PA1/Active Power L3", 25000, 30000),
        ("F21/PA1/Frequency", 49.8, 50.3),
        ("F21/Water Level", 70, 90),
        ("F21/Airflow", 7.0, 9.0),
        ("F21/Env/T3", 20, 40),
        ("F21/Env/H2", 40, 70),
    ],
)
def test_values_stay_in_range(rng, topic, low, high):
    for _ in range(50):
        assert low <= float(simulated_value(topic, rng)) <= high


def test_total_power_is_not_shadowed_by_phase_power(rng):
    values = {float(simulated_value("F22/PA1/Total Active Power", rng)) for _ in range(20)}
    assert min(values) >= 80000


def test_number_formats(rng):
    assert "." not in simulated_value("F21/Water Level", rng)
    assert "." not in simulated_value("F21/Env/T1", rng)
    assert "." not in simulated_value("F21/PA1/Active Power L1", rng)
    current = simulated_value("F21/PA1/Current L1", rng)
    assert len(current.split(".")[1]) == 1


def test_network_and_unknown_topics():
    assert simulated_value("F21/Network") == "1"
    assert simulated_value("F21/Door") == "0"


def test_emitter_tick_reads_topics_each_round(rng):
    topics = ["F21/Env/T1"]
    sent = []
    emitter = FallbackEmitter(lambda: topics, lambda t, p: sent.append(t), interval=60.0, rng=rng)

    assert emitter.tick() == 1
    topics.append("F21/Network")
    assert emitter.tick() == 2

    assert sent == ["F21/Env/T1", "F21/Env/T1", "F21/Network"]
    assert emitter.running is False


def test_emitter_start_stop():
    emitter = FallbackEmitter(lambda: [], lambda t, p: None, interval=60.0)
    emitter.start()
    emitter.start()
    assert emitter.running is True

    emitter.stop()

    assert emitter.running is False
    emitter.stop()
