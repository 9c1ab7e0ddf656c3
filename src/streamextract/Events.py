"""Minimal synchronous event emitter shared by streams and pipeline stages."""

from collections import defaultdict
from typing import Any, Callable


class EventEmitter:
    """Register listeners by event name and call them in registration order."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callable[..., Any]]] = defaultdict(list)

    def on(self, event: str, listener: Callable[..., Any]) -> "EventEmitter":
        self._listeners[event].append(listener)
        return self

    def off(self, event: str, listener: Callable[..., Any]) -> "EventEmitter":
        if listener in self._listeners[event]:
            self._listeners[event].remove(listener)
        return self

    def listener_count(self, event: str) -> int:
        return len(self._listeners[event])

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener of `event` with `args`.

        Returns:
            bool: True if at least one listener was called.
        """
        # Copy so a listener may unsubscribe itself while being called.
        listeners = list(self._listeners[event])
        for listener in listeners:
            listener(*args)
        return bool(listeners)
