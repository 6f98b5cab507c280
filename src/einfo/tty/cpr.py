"""Cursor position queries using the ECMA-48 CPR sequence.

The terminal is asked for its cursor position with ``ESC [ 6 n`` and is
expected to answer with ``ESC [ <row> ; <col> R``. Two budgets bound the
exchange: a one-shot deadline timer, and a maximum number of reads so that a
terminal dribbling bytes forever cannot hold the caller hostage.

Also provides the ``ecma48-cpr`` program, which reports the position of the
cursor of the terminal on its standard input as "<row> <col>".
"""

import os
import re
import select
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from einfo.config import Tunables
from einfo.tty.base import (
    CPRReply,
    CPRReplyError,
    CPRTimeoutError,
    NotATerminalError,
    TerminalError,
)
from einfo.tty.session import RawTTYSession

PROGRAM = "ecma48-cpr"
CPR_REQUEST = b"\033[6n"
CPR_REPLY = re.compile(rb"\033\[(\d+);(\d+)R")
STDIN_FILENO = 0


def parse_cpr(data: bytes) -> CPRReply | None:
    """Find the first valid CPR reply in data, ignoring surrounding noise.

    Args:
        data: Bytes read from the terminal so far

    Returns:
        The parsed reply, or None if no valid reply is present
    """
    for match in CPR_REPLY.finditer(data):
        row, col = int(match.group(1)), int(match.group(2))
        if row >= 1 and col >= 1:
            return CPRReply(row, col)
    return None


class Deadline:
    """One-shot timer that wakes a select() call when it fires.

    The timer callback only sets a flag and writes one byte to a self-pipe.
    Everything else, terminal restoration included, happens in the caller
    once select() returns.
    """

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        self.expired = False
        self._lock = threading.Lock()
        self._closed = False
        self._wake_r, self._wake_w = os.pipe()
        self._timer = threading.Timer(timeout, self._fire)
        self._timer.daemon = True

    def _fire(self) -> None:
        with self._lock:
            self.expired = True
            if not self._closed:
                os.write(self._wake_w, b"\0")

    def __enter__(self) -> "Deadline":
        self._timer.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._timer.cancel()
        self._timer.join()
        with self._lock:
            self._closed = True
            os.close(self._wake_r)
            os.close(self._wake_w)

    def wait_readable(self, fd: int) -> bool:
        """Block until fd is readable or the deadline passes.

        Returns:
            True if fd is readable, False if the deadline passed first
        """
        if self.expired:
            return False
        readable, _, _ = select.select([fd, self._wake_r], [], [])
        return fd in readable


class CPRQuery:
    """A single CPR round-trip against a terminal file descriptor.

    The descriptor must already be in noncanonical mode (see RawTTYSession).
    """

    def __init__(self, fd: int, tunables: Tunables | None = None) -> None:
        """Initialize the query.

        Args:
            fd: Terminal file descriptor, used for both writing and reading
            tunables: Timeout, read budget and buffer size
        """
        self.fd = fd
        self.tunables = tunables or Tunables()
        self.reads = 0
        self.malformed = 0

    def run(self) -> CPRReply:
        """Write the request and wait for the reply.

        Raises:
            CPRTimeoutError: If the deadline passed before a valid reply
            CPRReplyError: If the read budget was exhausted, the buffer filled
                up or the terminal reached end-of-file
        """
        try:
            written = os.write(self.fd, CPR_REQUEST)
        except OSError as e:
            raise CPRReplyError(f"failed to write the CPR sequence to the terminal: {e}") from e
        if written != len(CPR_REQUEST):
            raise CPRReplyError("failed to write the CPR sequence to the terminal")

        with Deadline(self.tunables.cpr_timeout) as deadline:
            reply = self._read_reply(deadline)
            if reply is None and deadline.expired:
                raise CPRTimeoutError(self.tunables.cpr_timeout)

        if reply is None:
            raise CPRReplyError()
        return reply

    def _read_reply(self, deadline: Deadline) -> CPRReply | None:
        # At most bufsize - 1 bytes are read
        buf = bytearray()
        limit = self.tunables.cpr_bufsize - 1
        while self.reads < self.tunables.cpr_max_loops and len(buf) < limit:
            if not deadline.wait_readable(self.fd):
                return None
            try:
                chunk = os.read(self.fd, limit - len(buf))
            except OSError as e:
                raise CPRReplyError(f"failed to read from the terminal: {e}") from e
            self.reads += 1
            if not chunk:
                return None
            buf += chunk
            reply = parse_cpr(bytes(buf))
            if reply is not None:
                return reply
            if b"\033" in chunk:
                # An escape sequence that isn't (yet) a CPR reply; keep reading
                self.malformed += 1
        return None


@contextmanager
def open_tty(fd: int) -> Iterator[int]:
    """Reopen the terminal behind fd for reading and writing.

    Standard output is frequently opened write-only, so the device is opened
    afresh by name. If that fails, fd itself is used.
    """
    try:
        tty_fd = os.open(os.ttyname(fd), os.O_RDWR | os.O_NOCTTY)
    except OSError:
        yield fd
        return
    try:
        yield tty_fd
    finally:
        os.close(tty_fd)


def query_cursor_position(fd: int, tunables: Tunables | None = None) -> CPRReply:
    """Report the cursor position of the terminal behind fd.

    Args:
        fd: File descriptor referring to a terminal
        tunables: Probing constants

    Returns:
        The 1-based cursor position

    Raises:
        NotATerminalError: If fd is not a terminal
        TerminalSettingsError: If raw mode could not be entered or left
        CPRTimeoutError: If the terminal did not answer in time
        CPRReplyError: If no valid reply arrived
    """
    tunables = tunables or Tunables()
    if not os.isatty(fd):
        raise NotATerminalError(fd)
    with open_tty(fd) as tty_fd, RawTTYSession(tty_fd, vtime=tunables.vtime):
        return CPRQuery(tty_fd, tunables).run()


def main() -> int:
    """Entry point of the ecma48-cpr program.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        reply = query_cursor_position(STDIN_FILENO)
    except NotATerminalError:
        print(
            f"{PROGRAM}: cannot determine the cursor position because stdin is not a tty",
            file=sys.stderr,
        )
        return 1
    except TerminalError as e:
        print(f"{PROGRAM}: {e}", file=sys.stderr)
        return 1

    print(f"{reply.row} {reply.col}", flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
