"""
Unit tests for the publish/subscribe primitives.
"""

import pytest

from tasks_extended.utils.observable import Observable, Signal


@pytest.mark.unit
class TestSignal:
    """Test cases for Signal."""

    def test_emit_calls_subscribers(self):
        signal = Signal("focus")
        received = []
        signal.subscribe(lambda *args: received.append(args))

        signal.emit(1, "two")

        assert received == [(1, "two")]

    def test_unsubscribe(self):
        signal = Signal()
        received = []
        unsubscribe = signal.subscribe(received.append)

        unsubscribe()
        unsubscribe()
        signal.emit("ignored")

        assert received == []
        assert signal.subscriber_count == 0

    def test_failing_subscriber_does_not_stop_others(self, caplog):
        signal = Signal("focus")
        received = []

        def broken(value):
            raise RuntimeError("boom")

        signal.subscribe(broken)
        signal.subscribe(received.append)

        signal.emit("value")

        assert received == ["value"]
        assert "Subscriber of focus failed" in caplog.text

    def test_unsubscribe_while_notified(self):
        signal = Signal()
        received = []

        def once(value):
            received.append(value)
            unsubscribe()

        unsubscribe = signal.subscribe(once)
        signal.emit("first")
        signal.emit("second")

        assert received == ["first"]


@pytest.mark.unit
class TestObservable:
    """Test cases for Observable."""

    def test_publish_replaces_value(self):
        observable = Observable(0, name="counter")
        seen = []
        observable.subscribe(seen.append)

        observable.publish(1)

        assert observable.value == 1
        assert seen == [1]

    def test_value_updated_before_notification(self):
        observable = Observable("old")
        seen = []
        observable.subscribe(lambda value: seen.append(observable.value))

        observable.publish("new")

        assert seen == ["new"]

    def test_subscriber_count(self):
        observable = Observable(None)
        unsubscribe = observable.subscribe(lambda value: None)
        assert observable.subscriber_count == 1
        unsubscribe()
        assert observable.subscriber_count == 0
