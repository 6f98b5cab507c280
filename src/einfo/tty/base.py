"""Terminal state, capability levels and the terminal error taxonomy."""

from dataclasses import dataclass
from enum import IntEnum


class TTYLevel(IntEnum):
    """Capability grade of the terminal attached to a file descriptor."""

    NONE = 0
    DUMB = 1
    SMART = 2


@dataclass
class TerminalState:
    """Last known facts about the terminal.

    Dimensions are refreshed by the grader, at most once per throttle
    interval. The cursor fields are only meaningful immediately after a
    successful CPR query and are cleared once the indicator has been placed.
    """

    level: TTYLevel = TTYLevel.NONE
    rows: int | None = None
    cols: int | None = None
    cursor_row: int | None = None
    cursor_col: int | None = None
    last_probe: float | None = None

    @property
    def dimensions(self) -> tuple[int | None, int | None]:
        """(rows, cols) snapshot used for resize detection."""
        return (self.rows, self.cols)

    @property
    def cursor(self) -> "CPRReply | None":
        """Recorded cursor position, if any."""
        if self.cursor_row is None or self.cursor_col is None:
            return None
        return CPRReply(self.cursor_row, self.cursor_col)

    def record_cursor(self, reply: "CPRReply | None") -> None:
        """Store (or clear, given None) the recorded cursor position."""
        if reply is None:
            self.cursor_row = self.cursor_col = None
        else:
            self.cursor_row, self.cursor_col = reply.row, reply.col


@dataclass(frozen=True)
class CPRReply:
    """Cursor position parsed from an ECMA-48 CPR reply (1-based)."""

    row: int
    col: int


@dataclass(frozen=True)
class IndicatorRequest:
    """Completion report for an operation announced by ebegin."""

    exit_code: int = 0
    message: str | None = None

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class TerminalError(Exception):
    """Base class for failures while talking to a terminal."""


class NotATerminalError(TerminalError):
    """The file descriptor does not refer to a terminal device."""

    def __init__(self, fd: int) -> None:
        self.fd = fd
        super().__init__(f"file descriptor {fd} is not a tty")


class TerminalSettingsError(TerminalError):
    """Saving, applying or restoring terminal attributes failed."""

    def __init__(self, action: str, cause: BaseException | None = None) -> None:
        """Initialize the error.

        Args:
            action: What was being attempted (e.g. "save", "apply", "restore")
            cause: Underlying OS error, if any
        """
        self.action = action
        self.cause = cause
        message = f"failed to {action} the terminal settings"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class CPRTimeoutError(TerminalError):
    """The terminal did not answer the CPR query in time."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__("timed out waiting for the terminal to respond to CPR")


class CPRReplyError(TerminalError):
    """No valid CPR reply was read within the read budget."""

    def __init__(self, reason: str = "failed to read the cursor position") -> None:
        super().__init__(reason)
