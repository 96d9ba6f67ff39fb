"""Render tokens and the Console that interprets them (ANSI)."""

import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, TextIO, Union

logger = logging.getLogger(__name__)


class Color(Enum):
    DEFAULT = "\033[39m"
    RED = "\033[31m"
    DARK_RED = "\033[2;31m"
    YELLOW = "\033[33m"
    MAGENTA = "\033[35m"
    BLUE = "\033[34m"
    GREEN = "\033[32m"


RESET = "\033[0m"


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class SetColor:
    color: Color


@dataclass(frozen=True)
class ResetColor:
    pass


Token = Union[Text, SetColor, ResetColor]
NEWLINE = Text("\n")


def color_enabled(mode: str, stream: TextIO) -> bool:
    """Resolve a color mode ("auto", "always", "never") for a stream."""
    if os.environ.get("NO_COLOR"):
        return False
    if mode == "always":
        return True
    if mode == "never":
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class Console:
    """User-facing output channel, created once per run and passed around.

    Results and progress go to ``out``; errors and warnings go to ``err``.
    """

    def __init__(self, out: TextIO | None = None, err: TextIO | None = None,
                 color: str = "auto"):
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr
        self._color_out = color_enabled(color, self.out)
        self._color_err = color_enabled(color, self.err)

    def write(self, tokens: Iterable[Token], stream: TextIO | None = None) -> None:
        """Interpret a token sequence onto a stream."""
        stream = stream if stream is not None else self.out
        use_color = self._color_err if stream is self.err else self._color_out
        parts = []
        for token in tokens:
            if isinstance(token, Text):
                parts.append(token.value)
            elif isinstance(token, SetColor):
                if use_color:
                    parts.append(token.color.value)
            elif isinstance(token, ResetColor):
                if use_color:
                    parts.append(RESET)
            else:
                raise TypeError(f"Unknown render token: {token!r}")
        if use_color:
            parts.append(RESET)
        stream.write("".join(parts))
        stream.flush()

    def line(self, text: str) -> None:
        self.write([Text(text), NEWLINE])

    def info(self, message: str) -> None:
        logger.debug("info: %s", message)
        self.write([Text(message), NEWLINE])

    def warning(self, message: str) -> None:
        logger.debug("warning: %s", message)
        self.write(
            [SetColor(Color.YELLOW), Text("Warning: "), ResetColor(), Text(message), NEWLINE],
            stream=self.err,
        )

    def error(self, message: str) -> None:
        logger.debug("error: %s", message)
        self.write(
            [SetColor(Color.DARK_RED), Text("Error: "), ResetColor(), Text(message), NEWLINE],
            stream=self.err,
        )
