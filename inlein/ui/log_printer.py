"""Display of log messages the daemon sends while it handles a request."""

from enum import IntEnum
import sys
from typing import Optional, TextIO, Union

from inlein.ui.output import UIManager


class Level(IntEnum):
    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40

    @classmethod
    def parse(cls, name: Union[str, "Level", None]) -> "Level":
        """
        Parse a severity name sent by the daemon, case-insensitively.

        Unknown or missing names map to WARN so the message is still shown
        at the default threshold.
        """
        if isinstance(name, Level):
            return name
        if isinstance(name, bytes):
            name = name.decode("utf-8", "replace")
        key = str(name or "").strip().upper()
        return _ALIASES.get(key, cls.WARN)


_ALIASES = {
    "DEBUG": Level.DEBUG,
    "TRACE": Level.DEBUG,
    "INFO": Level.INFO,
    "WARN": Level.WARN,
    "WARNING": Level.WARN,
    "ERROR": Level.ERROR,
    "FATAL": Level.ERROR,
}

LEVEL_COLORS = {
    Level.DEBUG: "gray",
    Level.INFO: "blue",
    Level.WARN: "yellow",
    Level.ERROR: "red",
}


class LogPrinter:
    """
    Prints daemon log messages at or above a threshold.

    Output goes to stderr unless another stream is given, so it never
    mixes with a command's regular output.
    """

    def __init__(
        self,
        threshold: Union[str, Level] = Level.WARN,
        stream: Optional[TextIO] = None,
    ):
        self.threshold = Level.parse(threshold)
        self.stream = stream
        self.ui = UIManager()

    def enabled(self, level: Level) -> bool:
        return level >= self.threshold

    def print_log(self, level: Level, message: str) -> bool:
        """Print a message if its level passes the threshold. Returns whether it did."""
        if not self.enabled(level):
            return False
        self.ui.print_colored(
            f"[{level.name}] {message}",
            LEVEL_COLORS[level],
            file=self.stream or sys.stderr,
        )
        return True
