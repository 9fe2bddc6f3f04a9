"""
Minimal publish/subscribe primitives.

``Signal`` is a plain event source (e.g. "window focus regained").
``Observable`` holds a current value and notifies subscribers whenever a new
value is published. Both are single-writer: only the owning component calls
``emit``/``publish``; everyone else subscribes.
"""

import logging
from typing import Any, Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class Signal:
    """Event source that calls every subscriber on ``emit``."""

    def __init__(self, name: str = "signal"):
        self.name = name
        self._callbacks: List[Callable[..., Any]] = []

    def subscribe(self, callback: Callable[..., Any]) -> Unsubscribe:
        """
        Register a callback.

        Args:
            callback: Called with the arguments passed to ``emit``

        Returns:
            A function that removes the callback again. Calling it twice is harmless.
        """
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def emit(self, *args: Any) -> None:
        # Copy so callbacks may unsubscribe while being notified
        for callback in list(self._callbacks):
            try:
                callback(*args)
            except Exception:
                logger.exception("Subscriber of %s failed", self.name)

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)


class Observable(Generic[T]):
    """Current value plus change notification."""

    def __init__(self, value: T, name: str = "observable"):
        self._value = value
        self._changed = Signal(name)

    @property
    def value(self) -> T:
        return self._value

    def publish(self, value: T) -> None:
        """Replace the current value in one step and notify subscribers."""
        self._value = value
        self._changed.emit(value)

    def subscribe(self, callback: Callable[[T], Any]) -> Unsubscribe:
        return self._changed.subscribe(callback)

    @property
    def subscriber_count(self) -> int:
        return self._changed.subscriber_count
