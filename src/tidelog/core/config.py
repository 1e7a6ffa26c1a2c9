"""Configuration for the asynchronous console."""

from typing import Any, List

from pydantic import Field, field_validator

from tidelog.base.filters import compile_pattern
from tidelog.base.severity import Severity
from tidelog.base.sinks.console import RenderOptions


class ConsoleConfig(RenderOptions):
    """Configuration for an ``AsyncConsole``.

    Extends the renderer toggles with filtering and lifecycle settings. The
    toggles stay live: assigning ``config.ansi = True`` affects events rendered
    after the assignment.

    Attributes:
        min_severity: Least severe level accepted by adapters. Accepts a
            ``Severity`` or a name such as ``"debug"`` or ``"warning"``.
        silence: Initial patterns matched against message content.
        ban: Initial patterns matched against full emitter names.
        register_atexit: Register ``drain_and_flush`` with ``atexit`` while
            the consumer is running.

    Example:
        >>> config = ConsoleConfig(ansi=True, min_severity="debug", ban=[r"^noisy\\."])
    """

    min_severity: Severity = Severity.INFO
    silence: List[str] = Field(default_factory=list)
    ban: List[str] = Field(default_factory=list)
    register_atexit: bool = True

    @field_validator("min_severity", mode="before")
    @classmethod
    def _parse_severity(cls, value: Any) -> Severity:
        return Severity.parse(value)

    @field_validator("silence", "ban")
    @classmethod
    def _check_patterns(cls, value: List[str]) -> List[str]:
        for pattern in value:
            compile_pattern(pattern)
        return value
