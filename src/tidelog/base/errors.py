"""Exceptions raised by tidelog."""

from typing import Any


class TidelogError(Exception):
    """Base class for tidelog errors."""


class InvalidPatternError(TidelogError, ValueError):
    """Raised when a silence or ban pattern does not compile.

    Attributes:
        pattern: The offending pattern as given by the caller.
    """

    def __init__(self, pattern: Any, reason: str) -> None:
        self.pattern = pattern
        super().__init__(f"Invalid filter pattern {pattern!r}: {reason}")
