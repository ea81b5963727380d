"""Coloured status messages for the terminal."""

from __future__ import annotations

import os
import sys

from rich.console import Console
from rich.text import Text

_WARN_EMOJI = "⚠️ "
_WARN_FALLBACK = "!"
_SUCCESS_EMOJI = "✅"
_SUCCESS_FALLBACK = "✓"


def no_emoji() -> bool:
    """Return True when the NO_EMOJI environment variable is set."""
    return "NO_EMOJI" in os.environ


def _emit(emoji: str, fallback: str, message: str, colour: str) -> None:
    mark = fallback if no_emoji() else emoji
    text = Text(mark, style=colour)
    text.append(" ")
    text.append(message, style=colour)
    Console(file=sys.stdout, highlight=False).print(text, soft_wrap=True)


def warn(message: str) -> None:
    """Print a red warning line."""
    _emit(_WARN_EMOJI, _WARN_FALLBACK, message, "red")


def success(message: str) -> None:
    """Print a green success line."""
    _emit(_SUCCESS_EMOJI, _SUCCESS_FALLBACK, message, "green")