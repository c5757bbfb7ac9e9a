"""Minimal event emitter used by the transport's reader and writer."""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

from enginebridge.logging import get_logger

log = get_logger("transport.events")

T = TypeVar("T")

Disposable = Callable[[], None]


class Emitter(Generic[T]):
    """Fan a value out to subscribed listeners.

    Listeners run synchronously in subscription order. A failing listener
    is logged and does not stop delivery to the others.
    """

    def __init__(self, name: str = "event") -> None:
        self._name = name
        self._listeners: list[Callable[[T], None]] = []
        self._disposed = False

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def event(self, listener: Callable[[T], None]) -> Disposable:
        """Subscribe ``listener``.

        Returns:
            A function that unsubscribes the listener.
        """
        if self._disposed:
            return lambda: None
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def fire(self, value: T) -> None:
        if self._disposed:
            return
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception as e:
                log.error("Error in %s listener: %s", self._name, e)

    def dispose(self) -> None:
        self._listeners.clear()
        self._disposed = True
