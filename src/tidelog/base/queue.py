"""Unbounded FIFO hand-off between producer threads and the consumer.

The queue never applies backpressure: a producer that permanently outpaces
the consumer grows memory without bound. That is an accepted limitation.
"""

import queue
from typing import List, Optional, Union

from tidelog.base.events import LogEvent


class _Wake:
    """Marker put on the queue to unblock a waiting consumer."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<wake>"


_WAKE = _Wake()


class EventQueue:
    """Thread-safe, unbounded, FIFO queue of log events.

    Many threads may call ``submit`` concurrently; a single consumer calls
    ``take_next``. Wake markers share the FIFO with events but are never
    returned as events, so they cannot reorder anything.
    """

    def __init__(self) -> None:
        self._queue: "queue.SimpleQueue[Union[LogEvent, _Wake]]" = queue.SimpleQueue()

    def submit(self, event: LogEvent) -> None:
        """Append an event. Never blocks and never raises."""
        self._queue.put(event)

    def take_next(self) -> Optional[LogEvent]:
        """Block until an event is available or ``wake`` is called.

        Returns:
            The next event, or None when the wait was interrupted by a wake.
        """
        item = self._queue.get()
        if item is _WAKE:
            return None
        return item

    def wake(self) -> None:
        """Unblock a consumer waiting in ``take_next``."""
        self._queue.put(_WAKE)

    def drain(self) -> List[LogEvent]:
        """Remove and return every queued event in order, without blocking."""
        drained: List[LogEvent] = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return drained
            if item is not _WAKE:
                drained.append(item)

    def empty(self) -> bool:
        return self._queue.empty()

    def qsize(self) -> int:
        """Approximate number of queued items, wake markers included."""
        return self._queue.qsize()
