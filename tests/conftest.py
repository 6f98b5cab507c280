# Shared fixtures for the einfo pytest suite.
#
# Real pseudo-terminals stand in for terminals. The test owns the slave side,
# as a program would own its controlling terminal, while FakeTerminal plays
# the emulator on the master side and answers CPR requests.

import fcntl
import os
import pty
import select
import struct
import termios
import threading

import pytest

from einfo.tty.base import TerminalState, TTYLevel

CPR_REQUEST = b"\033[6n"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Isolate tests from the message settings of the invoking shell.

    Each variable is set before being deleted so that monkeypatch records
    it, and values later loaded from .env files are undone as well.
    """
    for name in (
        "EINFO_QUIET",
        "EINFO_VERBOSE",
        "EERROR_QUIET",
        "EINFO_LOG",
        "NO_COLOR",
        "RC_NOCOLOR",
        "INSIDE_EMACS",
    ):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("TERM", "xterm")
    yield


@pytest.fixture
def pty_pair():
    """A (master, slave) pseudo-terminal pair sized 24x80."""
    master, slave = pty.openpty()
    fcntl.ioctl(slave, termios.TIOCSWINSZ, struct.pack("HHHH", 24, 80, 0, 0))
    yield master, slave
    os.close(slave)
    os.close(master)


@pytest.fixture
def terminal(pty_pair):
    """Start a FakeTerminal on the master side; stop it after the test."""
    master, _ = pty_pair
    fake = FakeTerminal(master)
    yield fake
    fake.stop()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeTerminal:
    """Answers each CPR request read from the master with the next reply.

    A reply of None leaves the request unanswered. Requests beyond the end of
    the reply list are not answered either.
    """

    def __init__(self, master):
        self.master = master
        self.replies = []
        self.requests = 0
        self.output = bytearray()
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def answer(self, *replies):
        self.replies.extend(replies)

    def _serve(self):
        pending = bytearray()
        while not self._stop.is_set():
            readable, _, _ = select.select([self.master], [], [], 0.02)
            if not readable:
                continue
            try:
                data = os.read(self.master, 1024)
            except OSError:
                return
            self.output += data
            pending += data
            while CPR_REQUEST in pending:
                del pending[: pending.index(CPR_REQUEST) + len(CPR_REQUEST)]
                reply = self.replies[self.requests] if self.requests < len(self.replies) else None
                self.requests += 1
                if reply is not None:
                    os.write(self.master, reply)

    def stop(self):
        self._stop.set()
        self._thread.join(timeout=1)


class FakeGrader:
    """Grades with a fixed level and dimensions, adjustable between calls."""

    def __init__(self, level=TTYLevel.SMART, rows=24, cols=80):
        self.level = level
        self.rows = rows
        self.cols = cols
        self.calls = 0

    def grade(self, state: TerminalState) -> TTYLevel:
        self.calls += 1
        state.level = self.level
        if self.level == TTYLevel.SMART:
            state.rows, state.cols = self.rows, self.cols
        return self.level


class ScriptedQuery:
    """Cursor position query returning (or raising) scripted results in turn."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        result = self.results[self.calls]
        self.calls += 1
        if isinstance(result, BaseException):
            raise result
        return result
