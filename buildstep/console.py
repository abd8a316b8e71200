"""
Console sinks and console events.

The Console bundles the real stdout/stderr text streams with an Ansi helper
so that live process output and failure dumps go through one place. Console
events are the messages a step posts for the user (e.g. captured stderr);
by default they are routed into logging.
"""

import logging
import re
import sys
from dataclasses import dataclass, field
from typing import Any, TextIO


# CSI sequences (colors, cursor movement) and OSC sequences (window titles)
ANSI_ESCAPE_PATTERN = re.compile(r'\x1b\[[0-?]*[ -/]*[@-~]|\x1b\][^\x07]*\x07')

console_logger = logging.getLogger('buildstep.console')


class Ansi:
    """Decides whether ANSI escape sequences may reach a stream."""

    def __init__(self, enabled: bool):
        self.enabled = enabled

    @classmethod
    def for_stream(cls, stream: TextIO) -> "Ansi":
        """Enable ANSI only when the stream is an interactive terminal."""
        isatty = getattr(stream, 'isatty', None)
        return cls(enabled=bool(isatty and isatty()))

    @staticmethod
    def strip(text: str) -> str:
        return ANSI_ESCAPE_PATTERN.sub('', text)

    def render(self, text: str) -> str:
        """Return text as it should be written to the console."""
        if self.enabled:
            return text
        return self.strip(text)


@dataclass
class Console:
    """The real output sinks of the running build."""
    stdout: TextIO
    stderr: TextIO
    ansi: Ansi = field(default_factory=lambda: Ansi(enabled=False))

    @classmethod
    def from_system(cls) -> "Console":
        return cls(stdout=sys.stdout, stderr=sys.stderr, ansi=Ansi.for_stream(sys.stderr))

    def write_stdout(self, text: str) -> None:
        self._write(self.stdout, text)

    def write_stderr(self, text: str) -> None:
        self._write(self.stderr, text)

    def _write(self, stream: TextIO, text: str) -> None:
        if not text:
            return
        stream.write(self.ansi.render(text))
        stream.flush()


@dataclass(frozen=True)
class ConsoleEvent:
    """A message a step wants shown to the user."""
    level: int
    message: str

    @classmethod
    def info(cls, fmt: str, *args: Any) -> "ConsoleEvent":
        return cls(logging.INFO, fmt % args if args else fmt)

    @classmethod
    def warning(cls, fmt: str, *args: Any) -> "ConsoleEvent":
        return cls(logging.WARNING, fmt % args if args else fmt)

    @classmethod
    def severe(cls, fmt: str, *args: Any) -> "ConsoleEvent":
        return cls(logging.ERROR, fmt % args if args else fmt)


def log_console_event(event: ConsoleEvent) -> None:
    """Default event sink: forward the event to the buildstep.console logger."""
    console_logger.log(event.level, event.message)
