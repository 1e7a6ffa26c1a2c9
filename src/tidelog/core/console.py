"""The asynchronous console handle.

``AsyncConsole`` ties the queue, filters, renderer and consumer thread
together. The embedding application constructs one, passes it to whatever
produces log events, and must call ``drain_and_flush()`` before the process
exits (or leave ``register_atexit`` enabled, or use the console as a context
manager) so that nothing still queued is lost.
"""

import atexit
import logging
import re
import threading
from typing import Optional, TextIO

from tidelog.base.events import LogEvent
from tidelog.base.filters import FilterSet, PatternLike
from tidelog.base.queue import EventQueue
from tidelog.base.severity import Severity
from tidelog.base.sinks.console import ConsoleRenderer
from tidelog.core.config import ConsoleConfig
from tidelog.core.consumer import ConsumerState, ConsumerThread

logger = logging.getLogger("tidelog.core.console")


class AsyncConsole:
    """Asynchronous console log sink.

    Producers call ``submit`` from any thread; it never blocks. A single
    daemon thread renders events in submission order.

    Args:
        config: Console configuration. Defaults to plain output at INFO.
        stream: Output stream. Defaults to ``sys.stdout``.

    Attributes:
        config: Live configuration; toggles apply to later renders.
        filters: Silence and ban filters.
        queue: Pending events.
        renderer: Stateful renderer, used only by the consumer and by
            ``drain_and_flush`` once the consumer has exited.

    Example:
        >>> console = AsyncConsole(ConsoleConfig(ansi=True))
        >>> console.start()
        >>> console.submit(LogEvent.create("app.Main", Severity.INFO, "ready"))
        >>> console.drain_and_flush()
    """

    def __init__(self, config: Optional[ConsoleConfig] = None, stream: Optional[TextIO] = None) -> None:
        self.config = config or ConsoleConfig()
        self.filters = FilterSet(silence=self.config.silence, ban=self.config.ban)
        self.queue = EventQueue()
        self.renderer = ConsoleRenderer(stream, self.config)
        self._lock = threading.RLock()
        self._thread: Optional[ConsumerThread] = None
        self._atexit_registered = False

    def submit(self, event: LogEvent) -> None:
        """Queue an event for rendering. Never blocks and never raises."""
        self.queue.submit(event)

    def is_enabled(self, severity: Severity) -> bool:
        """Check the severity pre-filter adapters apply before building events."""
        return severity >= self.config.min_severity

    @property
    def state(self) -> ConsumerState:
        thread = self._thread
        if thread is None:
            return ConsumerState.STOPPED
        if thread.stop_requested:
            return ConsumerState.STOPPING if thread.is_alive() else ConsumerState.STOPPED
        if thread.is_alive():
            return ConsumerState.RUNNING
        return ConsumerState.STOPPED

    @property
    def is_running(self) -> bool:
        return self.state is ConsumerState.RUNNING

    def start(self) -> bool:
        """Start the consumer thread.

        A no-op while already running. If a previous consumer is still
        finishing its last render, waits for it first so that only one thread
        ever touches the renderer.

        Returns:
            True if a new consumer was started.
        """
        with self._lock:
            previous = self._thread
            if previous is not None and previous.is_alive() and not previous.stop_requested:
                return False
            if previous is not None:
                previous.join()
            self._thread = ConsumerThread(self.queue, self.filters, self.renderer)
            self._thread.start()
            if self.config.register_atexit and not self._atexit_registered:
                atexit.register(self.drain_and_flush)
                self._atexit_registered = True
            logger.debug("console started")
            return True

    def stop(self) -> bool:
        """Ask the consumer to exit after its current render.

        Events still queued stay queued; call ``drain_and_flush`` to render
        them.

        Returns:
            True if a running consumer was asked to stop.
        """
        with self._lock:
            thread = self._thread
            if thread is None or thread.stop_requested:
                return False
            thread.request_stop()
            if self._atexit_registered:
                atexit.unregister(self.drain_and_flush)
                self._atexit_registered = False
            logger.debug("console stopping")
            return True

    def drain_and_flush(self) -> int:
        """Stop the consumer and synchronously render everything still queued.

        Waits for the consumer thread to exit, renders every remaining event
        in order (filters still apply), then writes a trailing blank line and
        flushes. The embedding application must call this before exiting.

        Returns:
            Number of events rendered by the drain.
        """
        with self._lock:
            self.stop()
            thread = self._thread
            if thread is not None:
                thread.join()
                self._thread = None
            rendered = 0
            pending = self.queue.drain()
            try:
                for event in pending:
                    if self.filters.allows(event):
                        self.renderer.emit(event)
                        rendered += 1
                self.renderer.finish()
            except (OSError, ValueError):
                logger.debug("console stream failed during drain", exc_info=True)
            logger.debug("drained %d of %d queued events", rendered, len(pending))
            return rendered

    def __enter__(self) -> "AsyncConsole":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.drain_and_flush()

    def add_silence_pattern(self, pattern: PatternLike) -> re.Pattern[str]:
        """Drop events whose message content matches ``pattern``.

        Raises:
            InvalidPatternError: If the pattern does not compile.
        """
        return self.filters.add_silence_pattern(pattern)

    def add_ban_pattern(self, pattern: PatternLike) -> re.Pattern[str]:
        """Drop events whose full emitter name matches ``pattern``.

        Raises:
            InvalidPatternError: If the pattern does not compile.
        """
        return self.filters.add_ban_pattern(pattern)

    def set_minimum_severity(self, severity: "Severity | str") -> None:
        self.config.min_severity = Severity.parse(severity)

    @property
    def minimum_severity(self) -> Severity:
        return self.config.min_severity

    def set_ansi_enabled(self, enabled: bool) -> None:
        self.config.ansi = enabled

    def set_powerline_enabled(self, enabled: bool) -> None:
        self.config.powerline = enabled

    def set_repeat_collapse_enabled(self, enabled: bool) -> None:
        self.config.collapse_repeats = enabled

    def __repr__(self) -> str:
        return f"AsyncConsole(state={self.state.value}, pending={self.queue.qsize()})"
