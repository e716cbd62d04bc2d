import logging

import pytest

from delve.events import EventBus


def test_subscribers_called_in_order():
    bus = EventBus()
    calls = []
    bus.subscribe("x", lambda e: calls.append(("a", e.payload["n"])))
    bus.subscribe("x", lambda e: calls.append(("b", e.payload["n"])))
    bus.publish("x", {"n": 1})
    assert calls == [("a", 1), ("b", 1)]


def test_events_are_numbered_per_bus():
    bus = EventBus()
    seen = []
    bus.subscribe("y", seen.append)
    first = bus.publish("x", {})
    second = bus.publish("y", {"n": 2})
    assert (first.seq, second.seq) == (1, 2)
    assert seen == [second]
    assert EventBus().publish("x", {}).seq == 1


def test_failing_subscriber_is_logged_and_isolated(caplog):
    bus = EventBus()
    calls = []

    def boom(_event):
        raise RuntimeError("boom")

    bus.subscribe("x", boom)
    bus.subscribe("x", calls.append)
    with caplog.at_level(logging.ERROR, logger="delve.events"):
        bus.publish("x", {})
    assert len(calls) == 1
    assert "Listener for 'x' failed" in caplog.text


def test_callback_must_be_callable():
    with pytest.raises(TypeError):
        EventBus().subscribe("x", "not callable")
