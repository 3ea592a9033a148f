"""Tests for the topic registry."""

from src.sitewatch.bus.topics import TopicRegistry


def test_add_is_idempotent():
    registry = TopicRegistry()
    assert registry.add("F21/PA1/Current L1") is True
    assert registry.add("F21/PA1/Current L1") is False
    assert len(registry) == 1


def test_remove_unknown_topic_is_noop():
    registry = TopicRegistry()
    assert registry.remove("never/added") is False
    registry.add("a")
    assert registry.remove("a") is True
    assert registry.remove("a") is False
    assert "a" not in registry


def test_snapshot_keeps_insertion_order():
    registry = TopicRegistry()
    for topic in ["c", "a", "b", "a"]:
        registry.add(topic)
    registry.remove("a")
    registry.add("a")
    assert registry.snapshot() == ["c", "b", "a"]
    assert list(registry) == ["c", "b", "a"]


def test_snapshot_is_a_copy():
    registry = TopicRegistry()
    registry.add("x")
    snap = registry.snapshot()
    registry.add("y")
    assert snap == ["x"]
    registry.clear()
    assert len(registry) == 0
