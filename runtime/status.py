"""StatusSink: progress output kept apart from the assistant's replies.

Progress indications ("--- Run Queued", waiting dots, prompts) go to a
separate stream, stderr by default, so that piping stdout captures only the
rendered response. A silent sink discards everything.
"""

import sys
from typing import Optional, TextIO

# Carriage return + ANSI "erase entire line".
_CLEAR_LINE = "\r\x1b[2K"


class StatusSink:
    """Write-only channel for human-readable progress text.

    Parameters
    ----------
    stream:
        Where to write. Defaults to sys.stderr (resolved at write time so
        test capture works).
    silent:
        If True, every write is dropped.
    """

    def __init__(self, stream: Optional[TextIO] = None, silent: bool = False) -> None:
        self._stream = stream
        self.silent = silent
        # True while the cursor sits after text that has no trailing newline.
        self.partial = False

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def write(self, text: str) -> None:
        """Write text as-is (no newline added)."""
        if self.silent or not text:
            return
        self.stream.write(text)
        self.stream.flush()
        self.partial = not text.endswith("\n")

    def line(self, text: str) -> None:
        """Write a full line, first terminating any partial line."""
        self.end_partial()
        self.write(text + "\n")

    def end_partial(self) -> None:
        """Move to a fresh line if the last write left one open."""
        if self.partial:
            self.write("\n")

    def clear_line(self) -> None:
        """Erase the current partial line so it can be overwritten in place."""
        if self.silent:
            return
        self.stream.write(_CLEAR_LINE)
        self.stream.flush()
        self.partial = False
