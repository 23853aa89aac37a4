"""Minimal publish/subscribe registry used by the navigator and the shell."""

from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
Listener = Callable[[T], None]


class ListenerRegistry(Generic[T]):
    """Ordered set of listeners notified synchronously with a payload.

    A failing listener is logged and skipped so the remaining listeners and
    the emitting engine are unaffected.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._listeners: list[Listener[T]] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it again."""

        if not callable(listener):
            raise TypeError(f"{self._name} listener must be callable")
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: Listener[T]) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            logger.debug("Listener %r was not subscribed to %s", listener, self._name)

    def clear(self) -> None:
        self._listeners.clear()

    def emit(self, payload: T) -> None:
        for listener in tuple(self._listeners):
            try:
                listener(payload)
            except Exception:  # noqa: BLE001 - listener isolation
                logger.exception("%s listener %r failed", self._name, listener)


__all__ = ["Listener", "ListenerRegistry"]
