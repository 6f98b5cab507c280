"""Placement of the right-justified "[ ok ]" / "[ !! ]" status indicator.

After ebegin prints "message ...", the cursor is saved with DECSC and its
position is recorded with a CPR query. When eend follows, the indicator is
drawn at the right edge of that same line, provided that the terminal is
smart and has not been resized in the meantime. In every other case, and on
any failure to query the terminal, the indicator is simply printed after a
space and followed by a newline.
"""

from collections.abc import Callable
from typing import TextIO

from einfo.tty.base import CPRReply, TerminalError, TerminalState, TTYLevel
from einfo.tty.grade import CapabilityGrader

DECSC = "\0337"
DECRC = "\0338"

STATUS_OK = "[ ok ]"
STATUS_FAIL = "[ !! ]"

# Rendered width of " [ ok ]" or " [ !! ]", the leading space included
INDICATOR_WIDTH = 1 + len(STATUS_OK)

CursorQuery = Callable[[], CPRReply]


def cup(row: int, col: int) -> str:
    """CUP: move the cursor to (row, col), both 1-based."""
    return f"\033[{row};{col}H"


def cha(col: int) -> str:
    """CHA: move the cursor to a column of the current line."""
    return f"\033[{col}G"


def compute_indent(cols: int, col: int, offset: int = 0) -> int:
    """Distance to move right from col so that the indicator ends at cols.

    Args:
        cols: Terminal width
        col: Current cursor column (1-based)
        offset: Terminal-specific CHA correction
    """
    return cols - col - (INDICATOR_WIDTH - 1) + offset


class IndicatorPlacer:
    """Prints status indicators, in place where the terminal allows it."""

    def __init__(
        self,
        stream: TextIO,
        state: TerminalState,
        grader: CapabilityGrader,
        query: CursorQuery,
        offset: int = 0,
    ) -> None:
        """Initialize the placer.

        Args:
            stream: Output stream the messages are printed to
            state: Terminal state shared with the printer
            grader: Capability grader for the stream's terminal
            query: Cursor position query; raises TerminalError on failure
            offset: CHA correction for known-defective terminals
        """
        self.stream = stream
        self.state = state
        self.grader = grader
        self.query = query
        self.offset = offset

    def _write(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()

    def _query(self) -> CPRReply | None:
        try:
            return self.query()
        except TerminalError:
            return None

    def mark(self) -> bool:
        """Save and record the cursor position at the end of a message.

        Returns:
            True if the position was recorded, meaning that the caller should
            terminate the line now and leave the indicator to place().
        """
        self.state.record_cursor(None)
        if self.grader.grade(self.state) < TTYLevel.SMART:
            return False
        self._write(DECSC)
        reply = self._query()
        self.state.record_cursor(reply)
        return reply is not None

    def place(self, text: str, interleaved: bool = False) -> bool:
        """Print the indicator text.

        Args:
            text: Indicator, possibly containing SGR sequences
            interleaved: Whether anything was printed since mark(). If so, a
                row delta of 0 or 1 can be the result of scrolling rather
                than of the message line being just above, and the indicator
                is not placed in place.

        Returns:
            True if the indicator was positioned in place, False if it was
            printed on the current line with a trailing newline
        """
        previous = self.state.dimensions
        saved = self.state.cursor
        self.state.record_cursor(None)

        level = self.grader.grade(self.state)
        if level < TTYLevel.SMART or saved is None or self.state.dimensions != previous:
            self._print_plain(text)
            return False

        here = self._query()
        if here is None:
            self._print_plain(text)
            return False

        self._write(DECRC)
        restored = self._query()
        if restored is None:
            self._write(cup(here.row, here.col))
            self._print_plain(text)
            return False

        delta = here.row - restored.row
        if interleaved and delta in (0, 1):
            self._write(cup(here.row, here.col))
            self._print_plain(text)
            return False
        if delta in (0, 1):
            # The message ends on the line just above; when the two rows are
            # equal, its trailing newline scrolled the screen by one line
            row, col = here.row - 1, restored.col
        else:
            row, col = saved.row, saved.col
        if row < 1:
            self._write(cup(here.row, here.col))
            self._print_plain(text)
            return False

        cols = self.state.cols or 0
        indent = compute_indent(cols, col, self.offset)
        if indent >= 0:
            self._write(cup(row, col))
            if indent > 0:
                self._write(cha(col + indent))
            self._write(f" {text}")
            self._write(cup(here.row, here.col))
        else:
            # No room left on the message line
            self._write(cup(here.row, here.col))
            self._write(cha(max(1, cols - (INDICATOR_WIDTH - 1) + self.offset)))
            self._write(f" {text}\n")
        return True

    def _print_plain(self, text: str) -> None:
        self._write(f" {text}\n")
