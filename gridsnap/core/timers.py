"""
gridsnap.core.timers - Cooperative repeating timers.

The drag-tracking loop samples the pointer on a fixed interval while a
grab is active. Callbacks never block: each tick returns CONTINUE to be
called again or STOP to be removed. The host's main loop drives the
queue with advance() or run_due().
"""

from __future__ import annotations

import heapq
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

log = logging.getLogger(__name__)

CONTINUE = True
STOP = False

TimerCallback = Callable[[], bool]


class Scheduler(Protocol):
    """What the tiling engine needs from a main loop."""

    def timeout_add(self, interval_ms: int, callback: TimerCallback) -> Any: ...

    def source_remove(self, handle: Any) -> None: ...


@dataclass(eq=False)
class TimerHandle:
    """A scheduled repeating timer."""

    id: int
    interval_ms: int
    callback: TimerCallback = field(repr=False)
    due_ms: int = 0
    active: bool = True


class TimerQueue:
    """
    Single-threaded timer scheduler with a virtual clock.

    Usage:
        timers = TimerQueue()
        handle = timers.timeout_add(15, on_tick)
        timers.advance(15)          # runs on_tick once
        timers.source_remove(handle)
    """

    def __init__(self) -> None:
        self._now_ms = 0
        self._ids = itertools.count(1)
        self._heap: list[tuple[int, int, TimerHandle]] = []

    @property
    def now_ms(self) -> int:
        return self._now_ms

    @property
    def pending(self) -> int:
        """Number of active timers."""
        return sum(1 for _, _, h in self._heap if h.active)

    def timeout_add(self, interval_ms: int, callback: TimerCallback) -> TimerHandle:
        """Schedule *callback* every *interval_ms* until it returns STOP."""
        if interval_ms <= 0:
            raise ValueError(f"Timer interval must be positive: {interval_ms}")
        handle = TimerHandle(
            id=next(self._ids),
            interval_ms=interval_ms,
            callback=callback,
            due_ms=self._now_ms + interval_ms,
        )
        heapq.heappush(self._heap, (handle.due_ms, handle.id, handle))
        return handle

    def source_remove(self, handle: TimerHandle | None) -> None:
        """Cancel a timer. Safe to call twice or from inside its callback."""
        if handle is not None:
            handle.active = False

    def run_due(self, now_ms: int) -> int:
        """
        Advance the clock to *now_ms* and fire every due timer.

        Returns:
            Number of callbacks invoked.
        """
        fired = 0
        self._now_ms = max(self._now_ms, now_ms)

        while self._heap and self._heap[0][0] <= self._now_ms:
            _, _, handle = heapq.heappop(self._heap)
            if not handle.active:
                continue

            fired += 1
            try:
                keep = handle.callback()
            except Exception:
                log.exception("Error in timer callback #%d, removing it", handle.id)
                keep = STOP

            if keep and handle.active:
                handle.due_ms += handle.interval_ms
                heapq.heappush(self._heap, (handle.due_ms, handle.id, handle))
            else:
                handle.active = False

        return fired

    def advance(self, ms: int) -> int:
        """Advance the clock by *ms* milliseconds, firing due timers."""
        return self.run_due(self._now_ms + ms)
