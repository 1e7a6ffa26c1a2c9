from tidelog.base.errors import InvalidPatternError, TidelogError
from tidelog.base.events import LogEvent, short_name_for
from tidelog.base.severity import Severity
from tidelog.core.config import ConsoleConfig
from tidelog.core.console import AsyncConsole
from tidelog.core.consumer import ConsumerState, ConsumerThread

__all__ = [
    # Console
    "AsyncConsole",
    "ConsoleConfig",
    "ConsumerState",
    "ConsumerThread",
    # Events
    "LogEvent",
    "Severity",
    "short_name_for",
    # Errors
    "TidelogError",
    "InvalidPatternError",
]
