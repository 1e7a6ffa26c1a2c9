"""Per-emitter logger facade over an ``AsyncConsole``.

Loggers apply the console's minimum severity before doing any work, format
``%``-style arguments on the calling thread, and submit the finished event.
"""

import sys
import time
from typing import Any, Optional, Union

from tidelog.base.events import LogEvent, short_name_for
from tidelog.base.severity import Severity
from tidelog.core.console import AsyncConsole

ExcInfo = Union[bool, BaseException, None]


class EmitterLogger:
    """Logger bound to one emitter name.

    Args:
        console: Console that receives the events.
        name: Full emitter name, typically ``__name__`` or a dotted class path.

    Example:
        >>> log = get_logger(console, "app.db.Pool")
        >>> log.info("opened %d connections", 4)
        >>> try:
        ...     connect()
        ... except OSError:
        ...     log.exception("connect failed")
    """

    def __init__(self, console: AsyncConsole, name: str) -> None:
        self.console = console
        self.name = name
        self.short_name = short_name_for(name)

    def is_enabled_for(self, severity: Severity) -> bool:
        return self.console.is_enabled(severity)

    def is_trace_enabled(self) -> bool:
        return self.is_enabled_for(Severity.TRACE)

    def is_debug_enabled(self) -> bool:
        return self.is_enabled_for(Severity.DEBUG)

    def is_info_enabled(self) -> bool:
        return self.is_enabled_for(Severity.INFO)

    def is_warn_enabled(self) -> bool:
        return self.is_enabled_for(Severity.WARN)

    def is_error_enabled(self) -> bool:
        return self.is_enabled_for(Severity.ERROR)

    def log(self, severity: Severity, msg: Any, *args: Any, exc_info: ExcInfo = None) -> None:
        """Submit a message at ``severity`` if it passes the pre-filter.

        Args:
            severity: Message severity.
            msg: Message, or a ``%``-style format string when ``args`` are given.
            *args: Format arguments.
            exc_info: Exception to attach, or True for the one being handled.
        """
        if not self.console.is_enabled(severity):
            return
        self.console.submit(
            LogEvent(
                emitter_name=self.name,
                short_name=self.short_name,
                timestamp=time.time(),
                severity=severity,
                content=_format_message(msg, args),
                error=_resolve_error(exc_info),
            )
        )

    def trace(self, msg: Any, *args: Any, exc_info: ExcInfo = None) -> None:
        self.log(Severity.TRACE, msg, *args, exc_info=exc_info)

    def debug(self, msg: Any, *args: Any, exc_info: ExcInfo = None) -> None:
        self.log(Severity.DEBUG, msg, *args, exc_info=exc_info)

    def info(self, msg: Any, *args: Any, exc_info: ExcInfo = None) -> None:
        self.log(Severity.INFO, msg, *args, exc_info=exc_info)

    def warn(self, msg: Any, *args: Any, exc_info: ExcInfo = None) -> None:
        self.log(Severity.WARN, msg, *args, exc_info=exc_info)

    warning = warn

    def error(self, msg: Any, *args: Any, exc_info: ExcInfo = None) -> None:
        self.log(Severity.ERROR, msg, *args, exc_info=exc_info)

    def exception(self, msg: Any, *args: Any, exc_info: ExcInfo = True) -> None:
        """Log at ERROR with the exception currently being handled attached."""
        self.log(Severity.ERROR, msg, *args, exc_info=exc_info)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class BannedLogger(EmitterLogger):
    """Logger for a name that was already banned when it was created.

    Everything is discarded without building an event.
    """

    def is_enabled_for(self, severity: Severity) -> bool:
        return False

    def log(self, severity: Severity, msg: Any, *args: Any, exc_info: ExcInfo = None) -> None:
        return None


def get_logger(console: AsyncConsole, name: str) -> EmitterLogger:
    """Create a logger for ``name``.

    Names matching a ban pattern at creation time get a ``BannedLogger``.
    Patterns added later are still enforced by the consumer.
    """
    if console.filters.is_banned(name):
        return BannedLogger(console, name)
    return EmitterLogger(console, name)


def _format_message(msg: Any, args: tuple) -> str:
    if not args:
        return str(msg)
    try:
        return str(msg) % args
    except (TypeError, ValueError, KeyError):
        # Mismatched arguments still produce a line rather than losing it.
        return " ".join([str(msg)] + [repr(arg) for arg in args])


def _resolve_error(exc_info: ExcInfo) -> Optional[BaseException]:
    if isinstance(exc_info, BaseException):
        return exc_info
    if exc_info:
        return sys.exc_info()[1]
    return None
