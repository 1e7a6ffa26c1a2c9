"""Severity levels for log events.

This module defines the closed set of severities understood by the console
sink, along with their display glyphs and 256-colour palette entries.
"""

import logging
from enum import Enum
from typing import Dict, Tuple


class Severity(Enum):
    """Log severity, ordered from most verbose (TRACE) to least (ERROR).

    Each member carries the data needed to render it:

    Attributes:
        glyph: Fixed 4-character label shown in the line prefix.
        bg: 256-colour background used for the glyph segment.
        fg: 256-colour foreground used for the glyph segment.
    """

    TRACE = ("TRCE", 240, 246)
    DEBUG = ("DBUG", 244, 253)
    INFO = ("INFO", 36, 15)
    WARN = ("WARN", 203, 15)
    ERROR = ("EROR", 197, 15)

    def __init__(self, glyph: str, bg: int, fg: int) -> None:
        self.glyph = glyph
        self.bg = bg
        self.fg = fg

    @property
    def initial(self) -> str:
        return self.glyph[0]

    @property
    def rank(self) -> int:
        """Position on the verbosity axis; lower is more verbose."""
        return _RANKS[self]

    @property
    def is_chatty(self) -> bool:
        """True for the low-importance severities rendered dimmed."""
        return self in (Severity.TRACE, Severity.DEBUG)

    def __lt__(self, other: "Severity") -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: "Severity") -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: "Severity") -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: "Severity") -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def from_logging_level(cls, levelno: int) -> "Severity":
        """Map a stdlib ``logging`` level number onto a severity.

        Levels below ``logging.DEBUG`` are treated as TRACE; anything at or
        above ``logging.ERROR`` (including CRITICAL) is ERROR.

        Args:
            levelno: Numeric level, e.g. ``record.levelno``.

        Returns:
            The matching severity.
        """
        for threshold, severity in _LOGGING_THRESHOLDS:
            if levelno >= threshold:
                return severity
        return cls.TRACE

    @classmethod
    def parse(cls, value: "str | Severity") -> "Severity":
        """Parse a severity from its name or a stdlib alias.

        Args:
            value: A ``Severity`` or a case-insensitive name such as
                ``"info"``, ``"WARNING"`` or ``"critical"``.

        Returns:
            The matching severity.

        Raises:
            ValueError: If the name is not recognised.
        """
        if isinstance(value, Severity):
            return value
        key = str(value).strip().upper()
        try:
            return _NAMES[key]
        except KeyError:
            raise ValueError(f"Unknown severity: {value!r}") from None


_RANKS: Dict[Severity, int] = {
    Severity.TRACE: 0,
    Severity.DEBUG: 1,
    Severity.INFO: 2,
    Severity.WARN: 3,
    Severity.ERROR: 4,
}

# Checked top-down; first threshold the level reaches wins.
_LOGGING_THRESHOLDS: Tuple[Tuple[int, Severity], ...] = (
    (logging.ERROR, Severity.ERROR),
    (logging.WARNING, Severity.WARN),
    (logging.INFO, Severity.INFO),
    (logging.DEBUG, Severity.DEBUG),
)

_NAMES: Dict[str, Severity] = {
    "TRACE": Severity.TRACE,
    "DEBUG": Severity.DEBUG,
    "INFO": Severity.INFO,
    "WARN": Severity.WARN,
    "WARNING": Severity.WARN,
    "ERROR": Severity.ERROR,
    "CRITICAL": Severity.ERROR,
    "FATAL": Severity.ERROR,
}
