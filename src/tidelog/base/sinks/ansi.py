"""ANSI escape sequences used by the console renderer (256-colour SGR)."""

ESC = "\x1b["

RESET = f"{ESC}0m"
SAVE_CURSOR = f"{ESC}s"
RESTORE_CURSOR = f"{ESC}u"

# Powerline private-use glyphs.
POWERLINE_RIGHT = "\ue0b0"
POWERLINE_LEFT = "\ue0b2"


def fg(color: int) -> str:
    return f"{ESC}38;5;{color}m"


def bg(color: int) -> str:
    return f"{ESC}48;5;{color}m"
