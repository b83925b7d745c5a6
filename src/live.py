"""Observable values for query results.

A :class:`LiveValue` holds a current value and pushes every change to its
subscribers. A :class:`LiveQuery` is a LiveValue backed by a loader
function; the repository refreshes active queries after each write so that
readers see every write that completed before them.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Observer = Callable[[T], None]


class LiveValue(Generic[T]):
    """Thread-safe value holder with push notification."""

    def __init__(self, initial: T):
        self._value = initial
        self._observers: list[Observer] = []
        self._lock = threading.RLock()

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    def set(self, value: T) -> None:
        """Replace the value and notify observers if it changed."""
        with self._lock:
            if value == self._value:
                return
            self._value = value
            observers = list(self._observers)
        for observer in observers:
            observer(value)

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer and immediately call it with the current value.

        Returns:
            Callable that removes the observer again
        """
        with self._lock:
            self._observers.append(observer)
            current = self._value
        observer(current)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._observers)


class LiveQuery(LiveValue[T]):
    """LiveValue whose content is (re)loaded from storage.

    Until the first load the query holds its initial value (an empty list,
    None or 0), never an error.
    """

    def __init__(self, loader: Callable[[], T], initial: T, name: str = "query"):
        super().__init__(initial)
        self._loader = loader
        self._active = False
        self.name = name

    @property
    def is_active(self) -> bool:
        return self._active

    def refresh(self) -> T:
        """Reload from storage and publish the result.

        Storage errors propagate and leave the last good value in place.
        """
        value = self._loader()
        self._active = True
        self.set(value)
        return value

    def get(self) -> T:
        """Return a freshly loaded value."""
        return self.refresh()

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        if not self._active:
            self.refresh()
        return super().subscribe(observer)

    def __repr__(self) -> str:
        return f"LiveQuery({self.name!r}, active={self._active})"
