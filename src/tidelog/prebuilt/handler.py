"""Bridge from the stdlib ``logging`` module into an ``AsyncConsole``."""

import logging
from typing import Optional

from tidelog.base.events import LogEvent, short_name_for
from tidelog.base.severity import Severity
from tidelog.core.console import AsyncConsole

# Numeric level for TRACE messages sent through stdlib logging.
TRACE_LEVEL = 5


class AsyncConsoleHandler(logging.Handler):
    """``logging.Handler`` that submits records to an ``AsyncConsole``.

    The record's logger name becomes the emitter name, ``record.created``
    the capture time, and ``exc_info`` the attached error. Message arguments
    are merged on the calling thread; no ``logging.Formatter`` is applied.

    Args:
        console: Console that renders the records.
        level: Handler level, as for any ``logging.Handler``.
    """

    def __init__(self, console: AsyncConsole, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.console = console

    def emit(self, record: logging.LogRecord) -> None:
        try:
            severity = Severity.from_logging_level(record.levelno)
            if not self.console.is_enabled(severity):
                return
            error = record.exc_info[1] if record.exc_info else None
            self.console.submit(
                LogEvent(
                    emitter_name=record.name,
                    short_name=short_name_for(record.name),
                    timestamp=record.created,
                    severity=severity,
                    content=record.getMessage(),
                    error=error,
                )
            )
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


def install(
    console: AsyncConsole,
    logger: Optional[logging.Logger] = None,
    level: int = logging.NOTSET,
) -> AsyncConsoleHandler:
    """Attach an ``AsyncConsoleHandler`` to ``logger`` (the root logger by default).

    Args:
        console: Console that renders the records.
        logger: Logger to attach to.
        level: Handler level.

    Returns:
        The attached handler, so callers can remove it later.
    """
    handler = AsyncConsoleHandler(console, level)
    (logger or logging.getLogger()).addHandler(handler)
    return handler
