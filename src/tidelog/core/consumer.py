"""Background consumer that renders queued log events."""

import logging
import threading
import time
from enum import Enum

from tidelog.base.events import EventSink
from tidelog.base.filters import FilterSet
from tidelog.base.queue import EventQueue

logger = logging.getLogger("tidelog.core.consumer")


class ConsumerState(str, Enum):
    """Lifecycle of the console consumer."""

    STOPPED = "stopped"
    RUNNING = "running"
    STOPPING = "stopping"


class ConsumerThread(threading.Thread):
    """Daemon thread draining an ``EventQueue`` into a sink.

    Each event is checked against the ban filter, then the silence filter,
    and handed to the sink if it survives. Stopping is cooperative: the
    thread finishes the event it is rendering before it notices the request.
    Events still queued at that point stay queued.

    A failing stream (``OSError``, or ``ValueError`` from a closed file) ends
    the thread; nothing is retried.

    Args:
        queue: Source of events.
        filters: Silence and ban filters.
        sink: Renderer that writes events out.
    """

    def __init__(self, queue: EventQueue, filters: FilterSet, sink: EventSink) -> None:
        super().__init__(name="tidelog-consumer", daemon=True)
        self.queue = queue
        self.filters = filters
        self.sink = sink
        self._stop_requested = threading.Event()

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    def request_stop(self) -> None:
        """Ask the thread to exit and wake it if it is waiting for events."""
        self._stop_requested.set()
        self.queue.wake()

    def run(self) -> None:
        logger.debug("consumer started")
        try:
            while not self._stop_requested.is_set():
                event = self.queue.take_next()
                if event is None:
                    continue
                if self.filters.allows(event):
                    self.sink.emit(event)
                # Let producers in between renders.
                time.sleep(0)
            stream = getattr(self.sink, "stream", None)
            if stream is not None:
                stream.flush()
        except (OSError, ValueError):
            logger.debug("console stream failed, consumer exiting", exc_info=True)
        finally:
            logger.debug("consumer stopped")
