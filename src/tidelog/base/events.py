"""Log event payload shared between producers and the console consumer.

Events are created on producer threads, handed through the queue, and
rendered on the consumer thread. They are never mutated after creation.
"""

import time
from dataclasses import dataclass
from typing import Optional, Protocol

from tidelog.base.severity import Severity


def short_name_for(full_name: str) -> str:
    """Derive the display name for an emitter.

    Dotted hierarchical paths such as ``"app.db.Pool"`` are truncated to their
    last segment. Anything else (``"worker-3"``, ``"main"``) is kept as-is.

    Args:
        full_name: Emitter identity.

    Returns:
        The short display name.
    """
    segments = full_name.split(".")
    if len(segments) < 2:
        return full_name
    if not all(segment.isidentifier() for segment in segments):
        return full_name
    return segments[-1]


@dataclass(frozen=True)
class LogEvent:
    """A single log line awaiting rendering.

    Attributes:
        emitter_name: Full identity of the emitter.
        short_name: Display form of the emitter identity.
        timestamp: Capture time as Unix epoch seconds.
        severity: Event severity.
        content: Pre-formatted message text.
        error: Optional exception to render as a traceback.
    """

    emitter_name: str
    short_name: str
    timestamp: float
    severity: Severity
    content: str
    error: Optional[BaseException] = None

    @classmethod
    def create(
        cls,
        emitter_name: str,
        severity: Severity,
        content: object,
        *,
        error: Optional[BaseException] = None,
        timestamp: Optional[float] = None,
    ) -> "LogEvent":
        """Build an event, capturing the current time unless one is given.

        Args:
            emitter_name: Full identity of the emitter.
            severity: Event severity.
            content: Message; converted with ``str()``.
            error: Optional attached exception.
            timestamp: Optional capture time (epoch seconds).

        Returns:
            A new immutable event.
        """
        return cls(
            emitter_name=emitter_name,
            short_name=short_name_for(emitter_name),
            timestamp=time.time() if timestamp is None else timestamp,
            severity=severity,
            content=str(content),
            error=error,
        )

    @property
    def timestamp_ms(self) -> int:
        return int(round(self.timestamp * 1000))


class EventSink(Protocol):
    """Protocol for anything that renders log events."""

    def emit(self, event: LogEvent) -> None:
        ...
