"""Terminal capability grading.

A terminal is graded as:
- NONE: the file descriptor isn't a terminal at all
- DUMB: a terminal, but TERM says it is dumb or it can't report its size
- SMART: a terminal that reports its dimensions (cursor position queries
  are assumed to work, and verified lazily by the indicator placer)
"""

import fcntl
import os
import struct
import termios
import time
from collections.abc import Callable

from einfo.config import Settings
from einfo.tty.base import TerminalState, TTYLevel

SizeQuery = Callable[[int], tuple[int, int]]


def query_window_size(fd: int) -> tuple[int, int]:
    """Ask the terminal driver for its dimensions (TIOCGWINSZ).

    Args:
        fd: Terminal file descriptor

    Returns:
        (rows, cols)

    Raises:
        OSError: If the driver can't tell
    """
    packed = fcntl.ioctl(fd, termios.TIOCGWINSZ, struct.pack("HHHH", 0, 0, 0, 0))
    rows, cols, _, _ = struct.unpack("HHHH", packed)
    return rows, cols


class CapabilityGrader:
    """Grades the terminal on a file descriptor, updating a TerminalState.

    Dimension probes are throttled: calls made within ``throttle`` seconds of
    the last probe reuse the cached dimensions. The first call always probes.
    """

    def __init__(
        self,
        fd: int | None,
        settings: Settings | None = None,
        size_query: SizeQuery = query_window_size,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the grader.

        Args:
            fd: File descriptor to grade (None for streams without one)
            settings: Source of TERM and the throttle interval
            size_query: Dimension query, (rows, cols) or OSError
            clock: Monotonic clock in seconds
        """
        self.fd = fd
        self.settings = settings or Settings()
        self.size_query = size_query
        self.clock = clock

    def grade(self, state: TerminalState) -> TTYLevel:
        """Re-evaluate the capability level, storing the result in state."""
        if self.fd is None or not os.isatty(self.fd):
            state.level = TTYLevel.NONE
        elif self.settings.is_dumb_terminal or not self._update_dimensions(state):
            state.level = TTYLevel.DUMB
        else:
            state.level = TTYLevel.SMART
        return state.level

    def _should_throttle(self, state: TerminalState, now: float) -> bool:
        if state.last_probe is None:
            return False
        return now - state.last_probe <= self.settings.tunables.throttle

    def _update_dimensions(self, state: TerminalState) -> bool:
        now = self.clock()
        if self._should_throttle(state, now):
            return bool(state.cols)
        state.last_probe = now

        try:
            rows, cols = self.size_query(self.fd)
        except OSError:
            rows = cols = 0
        if cols <= 0:
            # Throttled calls must keep reporting this failure
            state.rows = state.cols = None
            return False
        state.rows, state.cols = rows, cols
        return True
