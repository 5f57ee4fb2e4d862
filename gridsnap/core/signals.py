"""
gridsnap.core.signals - Event subscription primitives.

    - Connection  : cancellation token returned by every connect()
    - EventEmitter: keyed subscriber lists with fault-isolated emit
    - SignalGroup : scoped bag of connections, released per source or
                    all at once on teardown
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from typing import Any, Protocol

log = logging.getLogger(__name__)


# Type alias for subscriber callbacks.
Callback = Callable[..., Any]


class Connection:
    """
    Handle to one subscription.

    disconnect() is idempotent; after it returns the callback is never
    invoked again.
    """

    __slots__ = ("_release", "_connected")

    def __init__(self, release: Callable[[], None]) -> None:
        self._release = release
        self._connected = True

    @property
    def connected(self) -> bool:
        return self._connected

    def disconnect(self) -> None:
        if not self._connected:
            return
        self._connected = False
        self._release()


class EventEmitter:
    """
    Keyed subscriber lists.

    Usage:
        emitter = EventEmitter()
        conn = emitter.connect("layouts-changed", my_callback)
        emitter.emit("layouts-changed", layouts)
        conn.disconnect()
    """

    def __init__(self) -> None:
        # event -> list of callbacks
        self._subscribers: dict[Hashable, list[Callback]] = {}

    def connect(self, event: Hashable, callback: Callback) -> Connection:
        """Register a callback for *event*."""
        self._subscribers.setdefault(event, []).append(callback)

        def _release() -> None:
            callbacks = self._subscribers.get(event)
            if callbacks is None:
                return
            try:
                callbacks.remove(callback)
            except ValueError:
                pass

        return Connection(_release)

    def emit(self, event: Hashable, *args: Any) -> None:
        # Copy: callbacks may disconnect themselves while we iterate
        for cb in list(self._subscribers.get(event, ())):
            try:
                cb(*args)
            except Exception:
                log.exception("Error in callback for %s", event)

    def subscriber_count(self, event: Hashable) -> int:
        return len(self._subscribers.get(event, ()))

    def disconnect_all(self) -> None:
        self._subscribers.clear()


class SignalSource(Protocol):
    def connect(self, event: Any, callback: Callback) -> Connection: ...


class SignalGroup:
    """
    Scoped registry of (source, event, handler) subscriptions.

    A component connects everything it listens to through one group and
    releases it deterministically: per source with disconnect(source), or
    everything with disconnect().
    """

    def __init__(self) -> None:
        self._connections: list[tuple[object, Connection]] = []

    def connect(self, source: SignalSource, event: Any, callback: Callback) -> Connection:
        conn = source.connect(event, callback)
        self._connections.append((source, conn))
        return conn

    def track(self, source: object, conn: Connection) -> Connection:
        """Adopt a connection made elsewhere so it is released with *source*."""
        self._connections.append((source, conn))
        return conn

    def disconnect(self, source: object | None = None) -> None:
        """Release the connections of *source*, or all of them."""
        kept: list[tuple[object, Connection]] = []
        for owner, conn in self._connections:
            if source is None or owner == source:
                conn.disconnect()
            else:
                kept.append((owner, conn))
        self._connections = kept

    def __len__(self) -> int:
        return len(self._connections)
