"""ANSI escape encoding for colorized terminal output.

Colorizing only wraps text in escape sequences and never changes the
visible characters, so stripping a colorized string always yields the
uncolored string.
"""

import re
from enum import IntEnum

from colorama import Back, Fore, Style


class Color(IntEnum):
    """The sixteen standard ANSI colors."""

    BLACK = 0
    RED = 1
    GREEN = 2
    YELLOW = 3
    BLUE = 4
    MAGENTA = 5
    CYAN = 6
    WHITE = 7
    BRIGHT_BLACK = 8
    BRIGHT_RED = 9
    BRIGHT_GREEN = 10
    BRIGHT_YELLOW = 11
    BRIGHT_BLUE = 12
    BRIGHT_MAGENTA = 13
    BRIGHT_CYAN = 14
    BRIGHT_WHITE = 15


_FOREGROUND = {
    Color.BLACK: Fore.BLACK,
    Color.RED: Fore.RED,
    Color.GREEN: Fore.GREEN,
    Color.YELLOW: Fore.YELLOW,
    Color.BLUE: Fore.BLUE,
    Color.MAGENTA: Fore.MAGENTA,
    Color.CYAN: Fore.CYAN,
    Color.WHITE: Fore.WHITE,
    Color.BRIGHT_BLACK: Fore.LIGHTBLACK_EX,
    Color.BRIGHT_RED: Fore.LIGHTRED_EX,
    Color.BRIGHT_GREEN: Fore.LIGHTGREEN_EX,
    Color.BRIGHT_YELLOW: Fore.LIGHTYELLOW_EX,
    Color.BRIGHT_BLUE: Fore.LIGHTBLUE_EX,
    Color.BRIGHT_MAGENTA: Fore.LIGHTMAGENTA_EX,
    Color.BRIGHT_CYAN: Fore.LIGHTCYAN_EX,
    Color.BRIGHT_WHITE: Fore.LIGHTWHITE_EX,
}

_BACKGROUND = {
    Color.BLACK: Back.BLACK,
    Color.RED: Back.RED,
    Color.GREEN: Back.GREEN,
    Color.YELLOW: Back.YELLOW,
    Color.BLUE: Back.BLUE,
    Color.MAGENTA: Back.MAGENTA,
    Color.CYAN: Back.CYAN,
    Color.WHITE: Back.WHITE,
    Color.BRIGHT_BLACK: Back.LIGHTBLACK_EX,
    Color.BRIGHT_RED: Back.LIGHTRED_EX,
    Color.BRIGHT_GREEN: Back.LIGHTGREEN_EX,
    Color.BRIGHT_YELLOW: Back.LIGHTYELLOW_EX,
    Color.BRIGHT_BLUE: Back.LIGHTBLUE_EX,
    Color.BRIGHT_MAGENTA: Back.LIGHTMAGENTA_EX,
    Color.BRIGHT_CYAN: Back.LIGHTCYAN_EX,
    Color.BRIGHT_WHITE: Back.LIGHTWHITE_EX,
}

RESET = Style.RESET_ALL

# CSI sequences: ESC [ parameters final-byte
_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")


def colorize(
    text: str,
    fg: Color | None = None,
    bg: Color | None = None,
    enabled: bool = True,
) -> str:
    """Wrap text in foreground/background escape codes.

    Args:
        text: Visible text to color.
        fg: Foreground color, or None to keep the terminal default.
        bg: Background color, or None to keep the terminal default.
        enabled: When False the text is returned unchanged.

    Returns:
        The text wrapped in escape codes and a trailing reset, or the
        plain text when coloring is disabled or no color is given.
    """
    if not enabled or not text or (fg is None and bg is None):
        return text
    prefix = ""
    if fg is not None:
        prefix += _FOREGROUND[fg]
    if bg is not None:
        prefix += _BACKGROUND[bg]
    return f"{prefix}{text}{RESET}"


def strip_ansi(text: str) -> str:
    """Remove all ANSI CSI escape sequences from text."""
    return _ANSI_ESCAPE.sub("", text)


def visible_len(text: str) -> int:
    """Length of text as displayed, ignoring escape sequences."""
    return len(strip_ansi(text))
