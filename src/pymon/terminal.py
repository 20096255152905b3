"""Raw terminal mode handling for the interactive view."""

import copy
import logging
import os
import sys
import termios
from typing import TextIO

from pymon.errors import TerminalUnavailable

logger = logging.getLogger(__name__)

CSI = "\033["
CLEAR_SCREEN = f"{CSI}2J"
CURSOR_HOME = f"{CSI}1;1H"
HIDE_CURSOR = f"{CSI}?25l"
SHOW_CURSOR = f"{CSI}?25h"

# termios attribute list indices
LFLAG = 3
CC = 6


class TerminalGuard:
    """
    Scoped raw mode for a terminal file descriptor.

    acquire() saves the current attributes and switches off canonical mode,
    echo and signal generation; release() puts the saved attributes back.
    The cursor is hidden for exactly the same window.
    """

    def __init__(self, fd: int | None = None, stream: TextIO | None = None) -> None:
        self._fd = sys.stdin.fileno() if fd is None else fd
        self._stream = stream if stream is not None else sys.stdout
        self._saved: list | None = None

    @property
    def active(self) -> bool:
        """True between a successful acquire() and release()."""
        return self._saved is not None

    def acquire(self) -> "TerminalGuard":
        """
        Enter raw mode.

        Raises:
            TerminalUnavailable: fd is not a TTY or termios refused the change.
        """
        if self.active:
            return self
        if not os.isatty(self._fd):
            raise TerminalUnavailable("standard input is not an interactive terminal")

        try:
            saved = termios.tcgetattr(self._fd)
        except termios.error as exc:
            raise TerminalUnavailable(f"cannot read terminal attributes: {exc}") from exc

        attrs = copy.deepcopy(saved)
        attrs[LFLAG] &= ~(termios.ICANON | termios.ECHO | termios.ISIG)
        attrs[CC][termios.VMIN] = 1
        attrs[CC][termios.VTIME] = 0

        self._saved = saved
        try:
            termios.tcsetattr(self._fd, termios.TCSANOW, attrs)
        except termios.error as exc:
            # tcsetattr may have applied part of the change
            self.release()
            raise TerminalUnavailable(f"cannot enter raw mode: {exc}") from exc

        self._write(HIDE_CURSOR)
        return self

    def release(self) -> None:
        """Restore the saved attributes and show the cursor. Safe to repeat."""
        if self._saved is None:
            return
        saved, self._saved = self._saved, None
        try:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, saved)
        except termios.error as exc:
            logger.debug("Failed to restore terminal attributes: %s", exc)
        self._write(SHOW_CURSOR)

    def _write(self, sequence: str) -> None:
        try:
            self._stream.write(sequence)
            self._stream.flush()
        except (OSError, ValueError) as exc:
            logger.debug("Failed to write to terminal: %s", exc)

    def __enter__(self) -> "TerminalGuard":
        return self.acquire()

    def __exit__(self, *exc_info) -> None:
        self.release()
