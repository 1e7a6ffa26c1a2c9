"""Console renderer for log events.

The renderer turns events into terminal lines. It is stateful: it remembers
the previous line for repeat collapsing, alternates shading between
consecutive distinct lines, compresses closely spaced timestamps into deltas,
and pads emitter names to the widest one seen so far.

A renderer instance belongs to exactly one thread (the console consumer), so
none of its state is synchronised. Rendering options are read once per event,
which makes toggles take effect for subsequently rendered events.
"""

import sys
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional, TextIO, Tuple

from pydantic import BaseModel, ConfigDict, Field

from tidelog.base.events import LogEvent
from tidelog.base.hashing import PALETTE_SIZE, color_seed
from tidelog.base.severity import Severity
from tidelog.base.sinks import ansi

TIMESTAMP_WIDTH = 12
DELTA_THRESHOLD_MS = 1000
MAX_CONSECUTIVE_DELTAS = 10

FG_LIGHT = 231
FG_DARK = 16
FG_CHATTY = 247
CHATTY_SHADES = (236, 238)
ERROR_SHIFT = 2 * PALETTE_SIZE
REPEAT_COLOR = 141

# The modulo rule below is mostly right because of how the colour cube is
# laid out, but a few entries contradict it and are listed explicitly.
_FORCE_DARK: FrozenSet[int] = frozenset({143, 178, 179})
_FORCE_LIGHT: FrozenSet[int] = frozenset({125, 126, 162})


def _wants_light_foreground(code: int) -> bool:
    if code in _FORCE_LIGHT:
        return True
    return code % PALETTE_SIZE > 18 and code not in _FORCE_DARK


LIGHT_FOREGROUND: FrozenSet[int] = frozenset(
    code for code in range(256) if _wants_light_foreground(code)
)


class RenderOptions(BaseModel):
    """Presentation toggles read by the renderer.

    Attributes:
        ansi: Emit ANSI colour and cursor escape sequences.
        powerline: Use Powerline separator glyphs (ANSI mode only).
        collapse_repeats: Collapse consecutive identical lines from the same
            emitter into a running count. Best-effort in ANSI mode.
        min_name_width: Initial padding width for emitter names.
    """

    model_config = ConfigDict(validate_assignment=True)

    ansi: bool = False
    powerline: bool = False
    collapse_repeats: bool = False
    min_name_width: int = Field(default=12, ge=0)


@dataclass
class RendererState:
    """Mutable state carried from one rendered event to the next."""

    last_content: Optional[str] = None
    last_owner: Optional[str] = None
    repeat_count: int = 0
    flop: bool = False
    owner_colors: Dict[str, int] = field(default_factory=dict)
    longest_short_name: int = 12
    last_printed_ms: int = 0
    consecutive_deltas: int = 0


class _Line:
    """Accumulates output while tracking the printed width.

    Only ``text`` counts towards the prefix width. Escape sequences and the
    message body go through ``raw``.
    """

    def __init__(self) -> None:
        self.parts: List[str] = []
        self.width = 0

    def text(self, value: str) -> None:
        self.parts.append(value)
        self.width += len(value)

    def raw(self, value: str) -> None:
        self.parts.append(value)

    def render(self) -> str:
        return "".join(self.parts)


class ConsoleRenderer:
    """Stateful event renderer writing to a text stream.

    Args:
        stream: Output stream. Defaults to ``sys.stdout``.
        options: Presentation toggles. Defaults to plain output.

    Attributes:
        stream: The output stream.
        options: Live presentation toggles.
        state: Renderer state (consumer-thread only).
    """

    def __init__(self, stream: Optional[TextIO] = None, options: Optional[RenderOptions] = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.options = options or RenderOptions()
        self.state = RendererState(longest_short_name=self.options.min_name_width)

    def emit(self, event: LogEvent) -> None:
        """Render one event and flush the stream.

        Args:
            event: Event that already survived filtering.
        """
        use_ansi = self.options.ansi
        powerline = use_ansi and self.options.powerline
        collapse = self.options.collapse_repeats

        state = self.state
        state.longest_short_name = max(state.longest_short_name, len(event.short_name))

        if collapse and self._is_repeat(event):
            out = self._repeat(event, use_ansi, powerline)
        else:
            out = self._new_line(event, use_ansi, powerline, collapse)
        self.stream.write(out)
        self.stream.flush()

    def finish(self) -> None:
        """Close any open repeat tally, write a trailing blank line and flush.

        The repeat streak ends here, so the next event always starts a new
        line.
        """
        state = self.state
        if state.repeat_count > 0:
            self.stream.write(ansi.RESET if self.options.ansi else ")\n")
        self.stream.write("\n")
        self.stream.flush()
        state.repeat_count = 0
        state.last_content = None
        state.last_owner = None

    def format_timestamp(self, timestamp_ms: int) -> str:
        """Render a capture time, compressing it to a delta when possible.

        Absolute wall-clock time is used when more than a second has passed
        since the previous print or after more than ten consecutive deltas;
        otherwise a right-aligned ``+mmm`` delta of the same width.

        Args:
            timestamp_ms: Capture time in epoch milliseconds.

        Returns:
            A 12-column timestamp string.
        """
        state = self.state
        delta = timestamp_ms - state.last_printed_ms
        state.last_printed_ms = timestamp_ms
        if delta > DELTA_THRESHOLD_MS or state.consecutive_deltas > MAX_CONSECUTIVE_DELTAS:
            state.consecutive_deltas = 0
            return _absolute_time(timestamp_ms)
        state.consecutive_deltas += 1
        return f"+{max(delta, 0):03d}".rjust(TIMESTAMP_WIDTH)

    def line_colors(self, event: LogEvent) -> Tuple[int, int]:
        """Pick the (background, foreground) pair for an event's name segment.

        Uses the current ``flop`` bit, so call it after the bit was toggled
        for the line being rendered.
        """
        seed = self.state.owner_colors.get(event.emitter_name)
        if seed is None:
            seed = color_seed(event.emitter_name)
            self.state.owner_colors[event.emitter_name] = seed

        code = seed
        light, dark = FG_LIGHT, FG_DARK
        if event.severity.is_chatty:
            code = CHATTY_SHADES[1] if self.state.flop else CHATTY_SHADES[0]
            light = dark = FG_CHATTY
        elif event.severity is Severity.ERROR:
            code += ERROR_SHIFT
        elif self.state.flop:
            code += PALETTE_SIZE
        return code, light if code in LIGHT_FOREGROUND else dark

    def _is_repeat(self, event: LogEvent) -> bool:
        state = self.state
        return (
            event.error is None
            and state.last_content is not None
            and state.last_owner == event.emitter_name
            and state.last_content == event.content
        )

    def _repeat(self, event: LogEvent, use_ansi: bool, powerline: bool) -> str:
        state = self.state
        state.repeat_count += 1
        count = state.repeat_count
        parts: List[str] = []
        if use_ansi:
            if count == 1:
                parts.append(" " + ansi.RESET + ansi.fg(REPEAT_COLOR))
                if powerline:
                    parts.append(ansi.POWERLINE_LEFT)
                parts.append(ansi.bg(REPEAT_COLOR) + ansi.fg(FG_DARK) + " repeated " + ansi.SAVE_CURSOR)
            else:
                # Redraw the timestamp at the start of the line, then jump back
                # to the saved counter position.
                parts.append("\r" + ansi.RESET)
                if powerline:
                    parts.append(ansi.bg(16) + ansi.fg(248) + " ")
                else:
                    parts.append(ansi.fg(8))
                parts.append(self.format_timestamp(event.timestamp_ms))
                parts.append(ansi.RESTORE_CURSOR)
            parts.append(f"{count} time{'s' if count > 1 else ''} ")
            if powerline:
                parts.append(ansi.RESET + ansi.fg(REPEAT_COLOR) + ansi.POWERLINE_RIGHT)
        else:
            if count == 1:
                blank = " " * TIMESTAMP_WIDTH
                parts.append(
                    f"[{blank}] [{event.severity.glyph}/{event.short_name}] (last line repeats"
                )
            parts.append(".")
        return "".join(parts)

    def _new_line(self, event: LogEvent, use_ansi: bool, powerline: bool, collapse: bool) -> str:
        state = self.state
        parts: List[str] = []
        if state.repeat_count > 0:
            parts.append(ansi.RESET if use_ansi else ")\n")
        state.flop = not state.flop
        state.repeat_count = 0
        state.last_content = event.content
        state.last_owner = event.emitter_name

        if use_ansi and collapse:
            # The line is left open so a repeat counter can be appended.
            parts.append("\n")
        if event.error is not None:
            parts.append(_format_error(event.error))

        stamp = self.format_timestamp(event.timestamp_ms)
        if use_ansi:
            line = self._ansi_prefix(event, stamp, powerline)
        else:
            line = _plain_prefix(event, stamp)

        segments = _split_lines(event.content)
        line.raw(segments[0])
        indent = "\n" + " " * line.width
        for segment in segments[1:]:
            line.raw(indent)
            line.raw(segment)
        if use_ansi:
            line.raw(ansi.RESET)
        if not use_ansi or not collapse:
            line.raw("\n")

        parts.append(line.render())
        return "".join(parts)

    def _ansi_prefix(self, event: LogEvent, stamp: str, powerline: bool) -> _Line:
        severity = event.severity
        line = _Line()
        line.raw(ansi.RESET)
        if powerline:
            line.raw(ansi.bg(16) + ansi.fg(248))
            line.text(" ")
        else:
            line.raw(ansi.fg(8))
        line.text(stamp)
        line.text(" ")

        if powerline:
            line.raw(ansi.bg(16) + ansi.fg(severity.bg))
            line.text(ansi.POWERLINE_LEFT)
        line.raw(ansi.bg(severity.bg) + ansi.fg(severity.fg))
        line.text(severity.glyph if powerline else f" {severity.glyph} ")

        code, foreground = self.line_colors(event)
        line.raw(ansi.bg(code))
        if powerline:
            line.raw(ansi.fg(severity.bg))
            line.text(ansi.POWERLINE_RIGHT)
        line.raw(ansi.fg(foreground))
        line.text(" " + event.short_name.rjust(self.state.longest_short_name) + " ")
        line.raw(ansi.RESET)
        if powerline:
            line.raw(ansi.fg(code))
            line.text(ansi.POWERLINE_RIGHT)
            line.raw(ansi.RESET)
        line.text(" ")

        # Foreground-only recolouring sticks to the basic palette so terminal
        # themes (including light ones) stay legible.
        if severity.is_chatty:
            line.raw(ansi.fg(8))
        elif severity is Severity.WARN:
            line.raw(ansi.fg(11))
        elif severity is Severity.ERROR:
            line.raw(ansi.fg(9))
        return line


def _plain_prefix(event: LogEvent, stamp: str) -> _Line:
    line = _Line()
    line.text(f"[{stamp}] [{event.severity.glyph}/{event.short_name}] ")
    return line


def _absolute_time(timestamp_ms: int) -> str:
    seconds, millis = divmod(timestamp_ms, 1000)
    return datetime.fromtimestamp(seconds).strftime("%H:%M:%S") + f".{millis:03d}"


def _split_lines(content: str) -> List[str]:
    segments = content.split("\n")
    while len(segments) > 1 and segments[-1] == "":
        segments.pop()
    return segments


def _format_error(error: BaseException) -> str:
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))
