"""Shared fixtures: an in-memory broker transport and a SQLite telemetry table."""

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from src.sitewatch.bus.transport import Transport


class FakeTransport(Transport):
    """Records wire traffic; tests fire broker events by hand."""

    def __init__(self, fail_connect: bool = False):
        self.fail_connect = fail_connect
        self.connect_calls = 0
        self.subscribed = []
        self.unsubscribed = []
        self.closed = False

    def connect(self):
        self.connect_calls += 1
        if self.fail_connect:
            raise ConnectionError("broker unreachable")

    def subscribe(self, topic):
        self.subscribed.append(topic)

    def unsubscribe(self, topic):
        self.unsubscribed.append(topic)

    def close(self):
        self.closed = True

    # broker-side events
    def accept(self):
        self.listener.handle_connected()

    def drop(self):
        self.listener.handle_closed()

    def publish(self, topic, payload):
        self.listener.handle_frame(topic, payload)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def failing_transport():
    return FakeTransport(fail_connect=True)


SAMPLE_ROWS = [
    # three readings on the first day, out of insertion order
    ("2024-03-01 10:30:00", 40.0, 220.0),
    ("2024-03-01 00:00:00", 30.0, 222.0),
    ("2024-03-01 23:59:59", 50.0, None),
    # second day, two in the same hour
    ("2024-03-02 08:05:00", 10.0, 230.0),
    ("2024-03-02 08:55:00", 20.0, 226.0),
    # outside every range used in the tests
    ("2024-06-01 12:00:00", 99.0, 199.0),
]


@pytest.fixture
def engine():
    """SQLite engine with an ``Al_Faqaa`` table shaped like the site tables."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with eng.begin() as conn:
        conn.execute(text(
            'CREATE TABLE Al_Faqaa ("timestamp" TEXT NOT NULL, Current_L1 REAL, Phase_L1_Phase_L2_Voltage REAL)'
        ))
        conn.execute(
            text('INSERT INTO Al_Faqaa ("timestamp", Current_L1, Phase_L1_Phase_L2_Voltage) VALUES (:ts, :c, :v)'),
            [{"ts": ts, "c": c, "v": v} for ts, c, v in SAMPLE_ROWS],
        )
    yield eng
    eng.dispose()
