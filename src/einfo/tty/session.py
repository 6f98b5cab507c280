"""Raw (noncanonical, no-echo) terminal sessions.

The terminal's original attributes are restored exactly once, however the
session ends: normal return, parse failure, timeout or KeyboardInterrupt.
"""

import os
import termios

from einfo.tty.base import NotATerminalError, TerminalSettingsError

# Indices into the list returned by termios.tcgetattr()
LFLAG = 3
CC = 6


class RawTTYSession:
    """Context manager switching a tty to noncanonical mode without echo.

    read(2) blocks until at least one byte arrives (VMIN=1), then returns
    after ``vtime`` deciseconds of inter-byte silence.
    """

    def __init__(self, fd: int, vtime: int = 1) -> None:
        """Initialize the session.

        Args:
            fd: File descriptor of the terminal
            vtime: Inter-byte timeout in deciseconds
        """
        self.fd = fd
        self.vtime = vtime
        self.saved: list | None = None
        self.restored = False

    def __enter__(self) -> "RawTTYSession":
        """Save the current settings, then enter raw mode."""
        if not os.isatty(self.fd):
            raise NotATerminalError(self.fd)

        try:
            self.saved = termios.tcgetattr(self.fd)
        except termios.error as e:
            raise TerminalSettingsError("obtain", e) from e

        try:
            self._apply()
        except BaseException:
            self.restore()
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore the saved settings, reporting failure unless already unwinding."""
        try:
            self.restore()
        except TerminalSettingsError:
            if exc_type is None:
                raise

    def _apply(self) -> None:
        new = termios.tcgetattr(self.fd)
        new[LFLAG] &= ~(termios.ECHO | termios.ECHOE | termios.ECHOK | termios.ECHONL)
        new[LFLAG] &= ~termios.ICANON
        new[CC][termios.VMIN] = 1
        new[CC][termios.VTIME] = self.vtime
        try:
            termios.tcsetattr(self.fd, termios.TCSANOW, new)
        except termios.error as e:
            raise TerminalSettingsError("modify", e) from e
        try:
            termios.tcflush(self.fd, termios.TCIFLUSH)
        except termios.error as e:
            raise TerminalSettingsError("flush the input queue of", e) from e

    def restore(self) -> None:
        """Reapply the saved attributes. Only one attempt is ever made."""
        if self.saved is None or self.restored:
            return
        self.restored = True
        try:
            termios.tcsetattr(self.fd, termios.TCSANOW, self.saved)
        except termios.error as e:
            raise TerminalSettingsError("restore", e) from e
