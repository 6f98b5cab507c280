"""Diagnostics and message transcripts.

Keeps up to N transcripts in a log directory:
- einfo.log (current/most recent)
- einfo.log.1 (previous)
- einfo.log.2, einfo.log.3, ... (older)
"""

import os
import re
import sys
from pathlib import Path
from typing import TextIO

DEFAULT_MAX_LOGS = 5
LOG_NAME = "einfo.log"

_ANSI_ESCAPE = re.compile(r"\x1B(?:[0-?@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def program_name() -> str:
    """Basename of the running program, used to prefix diagnostics."""
    return os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "einfo"


def warn(message: str, stream: TextIO | None = None) -> None:
    """Print a diagnostic prefixed with the program name to stderr."""
    print(f"{program_name()}: {message}", file=stream or sys.stderr)


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    return _ANSI_ESCAPE.sub("", text)


def get_log_path(log_dir: Path, index: int = 0) -> Path:
    """Get path to a specific log file.

    Args:
        log_dir: Directory holding the transcripts
        index: Log index (0 = current, 1+ = older)
    """
    if index == 0:
        return log_dir / LOG_NAME
    return log_dir / f"{LOG_NAME}.{index}"


def rotate_logs(log_dir: Path, max_logs: int = DEFAULT_MAX_LOGS) -> None:
    """Rotate existing logs before starting a new transcript.

    Renames logs from oldest to newest, deleting the oldest if at limit.
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    oldest = get_log_path(log_dir, max_logs - 1)
    if oldest.exists():
        oldest.unlink()

    for i in range(max_logs - 2, -1, -1):
        current = get_log_path(log_dir, i)
        if current.exists():
            current.rename(get_log_path(log_dir, i + 1))


class MessageLog:
    """Writes a plain-text transcript of printed messages and command output."""

    def __init__(self, log_dir: Path, max_logs: int = DEFAULT_MAX_LOGS) -> None:
        """Initialize the transcript.

        Args:
            log_dir: Directory holding the transcripts
            max_logs: Maximum number of log files to keep
        """
        self.log_dir = log_dir
        self.max_logs = max_logs
        self.log_path = get_log_path(log_dir)
        self._file_handle: TextIO | None = None

    def start(self) -> None:
        """Rotate logs and open a new log file."""
        rotate_logs(self.log_dir, self.max_logs)
        self._file_handle = open(self.log_path, "w", encoding="utf-8")

    def write(self, text: str) -> None:
        """Write text to the log, without ANSI codes."""
        if self._file_handle:
            self._file_handle.write(strip_ansi(text))
            self._file_handle.flush()

    def write_line(self, text: str) -> None:
        """Write a line to the log (newline added if missing)."""
        if not text.endswith("\n"):
            text = text + "\n"
        self.write(text)

    def close(self) -> None:
        """Close the log file."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None

    def __enter__(self) -> "MessageLog":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
