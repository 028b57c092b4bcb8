"""A line-buffered serial console.

Incoming characters are echoed back and held until Enter is pressed; only
completed lines can be read.  Backspace edits the line being typed.
"""

from __future__ import annotations

import sys
from collections import deque
from collections.abc import Callable
from typing import Any

__all__ = ["SerialConsole"]


def _write_stdout(data: bytes) -> None:
    sys.stdout.write(data.decode("latin-1"))
    sys.stdout.flush()


class SerialConsole:
    """Serial line with an input line editor.

    ``output`` receives every byte sent out on the line (echo and writes);
    by default it goes to standard output.
    """

    def __init__(self, output: Callable[[bytes], Any] | None = None) -> None:
        self._output = output if output is not None else _write_stdout
        self._ready: deque[str] = deque()
        self._pending: list[str] = []

    @property
    def available(self) -> int:
        """Number of characters of completed lines waiting to be read."""
        return len(self._ready)

    def _echo(self, text: str) -> None:
        self._output(text.encode("latin-1"))

    def _push(self, ch: str) -> None:
        self._pending.append(ch)
        if ch == "\n":
            self._ready.extend(self._pending)
            self._pending.clear()

    def feed(self, data: bytes | str) -> None:
        """Process characters arriving on the line."""
        text = data.decode("latin-1") if isinstance(data, (bytes, bytearray)) else data
        for ch in text:
            if ch == "\0":
                continue
            if ch == "\x1b":
                # special key: the rest of the pending input is discarded
                break
            if ch in "\b\x7f":
                if self._pending:
                    self._pending.pop()
                    self._echo("\b \b")
                continue
            if ch == "\r":
                ch = "\n"
            if ch == "\n" or " " <= ch < "\x7f":
                self._echo(ch)
                self._push(ch)

    def getchar(self) -> str:
        """Take one character of a completed line.

        Raises BlockingIOError when no completed line is waiting.
        """
        if not self._ready:
            raise BlockingIOError("no complete line is available")
        return self._ready.popleft()

    def read(self, size: int) -> bytes:
        """Read up to ``size`` characters, stopping after a newline."""
        out: list[str] = []
        while len(out) < size and (not out or out[-1] != "\n"):
            out.append(self.getchar())
        return "".join(out).encode("latin-1")

    def write(self, data: bytes) -> int:
        """Send ``data`` out on the line and return its length."""
        data = bytes(data)
        self._output(data)
        return len(data)