"""Silence and ban filters shared between configuring threads and the consumer.

Patterns are stored in immutable tuples. Writers build a new tuple under a
lock and publish it with a single attribute assignment, so the consumer can
iterate the current tuple without ever taking the lock.
"""

import logging
import re
import threading
from typing import Iterable, Tuple, Union

from tidelog.base.errors import InvalidPatternError
from tidelog.base.events import LogEvent

PatternLike = Union[str, re.Pattern[str]]

logger = logging.getLogger("tidelog.base.filters")


def compile_pattern(pattern: PatternLike) -> re.Pattern[str]:
    """Compile a pattern, surfacing syntax errors as ``InvalidPatternError``.

    Args:
        pattern: Regex source or an already compiled pattern.

    Returns:
        The compiled pattern.

    Raises:
        InvalidPatternError: If the pattern is not valid or not text.
    """
    if isinstance(pattern, re.Pattern):
        if not isinstance(pattern.pattern, str):
            raise InvalidPatternError(pattern, "bytes patterns are not supported")
        return pattern
    if not isinstance(pattern, str):
        raise InvalidPatternError(pattern, f"expected str or re.Pattern, got {type(pattern).__name__}")
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise InvalidPatternError(pattern, str(exc)) from exc


class PatternSet:
    """Additive, copy-on-write set of compiled regexes.

    Args:
        patterns: Optional initial patterns.
    """

    def __init__(self, patterns: Iterable[PatternLike] = ()) -> None:
        self._lock = threading.Lock()
        self._patterns: Tuple[re.Pattern[str], ...] = ()
        for pattern in patterns:
            self.add(pattern)

    def add(self, pattern: PatternLike) -> re.Pattern[str]:
        """Register a pattern. Adding an equal pattern twice is a no-op.

        Args:
            pattern: Regex source or compiled pattern.

        Returns:
            The compiled pattern.
        """
        compiled = compile_pattern(pattern)
        with self._lock:
            current = self._patterns
            if any(_same(existing, compiled) for existing in current):
                return compiled
            self._patterns = current + (compiled,)
        return compiled

    def matches(self, text: str) -> bool:
        """Return True if any pattern is found anywhere in ``text``."""
        for pattern in self._patterns:
            if pattern.search(text):
                return True
        return False

    @property
    def patterns(self) -> Tuple[re.Pattern[str], ...]:
        return self._patterns

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self):
        return iter(self._patterns)


class FilterSet:
    """The two filter sets consulted before an event is rendered.

    Attributes:
        silenced: Patterns matched against the message content.
        banned: Patterns matched against the full emitter name.
    """

    def __init__(
        self,
        silence: Iterable[PatternLike] = (),
        ban: Iterable[PatternLike] = (),
    ) -> None:
        self.silenced = PatternSet(silence)
        self.banned = PatternSet(ban)

    def add_silence_pattern(self, pattern: PatternLike) -> re.Pattern[str]:
        compiled = self.silenced.add(pattern)
        logger.debug("silence pattern registered: %s", compiled.pattern)
        return compiled

    def add_ban_pattern(self, pattern: PatternLike) -> re.Pattern[str]:
        compiled = self.banned.add(pattern)
        logger.debug("ban pattern registered: %s", compiled.pattern)
        return compiled

    def is_banned(self, emitter_name: str) -> bool:
        return self.banned.matches(emitter_name)

    def is_silenced(self, content: str) -> bool:
        return self.silenced.matches(content)

    def allows(self, event: LogEvent) -> bool:
        """Check whether an event survives filtering.

        The ban check runs first, then the silence check.
        """
        if self.is_banned(event.emitter_name):
            return False
        if self.is_silenced(event.content):
            return False
        return True


def _same(a: re.Pattern[str], b: re.Pattern[str]) -> bool:
    return a.pattern == b.pattern and a.flags == b.flags
