"""Figure out whether the terminal on stdin is a serial line, a VT or a pty."""

import fcntl
import os
import sys
from enum import IntEnum

# Linux-only ioctl; subcode 12 asks for the foreground console
TIOCLINUX = 0x541C

PTY_MAJORS = {3} | set(range(136, 144))


class ConsoleType(IntEnum):
    VT = 0
    SERIAL = 1
    PTY = 2
    UNKNOWN = 3

    def __str__(self) -> str:
        return self.name.lower()


def _check_ttyname(name: str | None) -> ConsoleType:
    if name is None:
        return ConsoleType.UNKNOWN
    name = name.removeprefix("/dev/")
    if name.startswith(("ttyS", "cuaa")):
        return ConsoleType.SERIAL
    if name.startswith(("pts/", "ttyp")):
        return ConsoleType.PTY
    if name.startswith("tty"):
        return ConsoleType.VT
    return ConsoleType.UNKNOWN


def _check_devnode(fd: int) -> ConsoleType:
    if not sys.platform.startswith("linux"):
        return ConsoleType.UNKNOWN
    try:
        major = os.major(os.fstat(fd).st_rdev)
    except OSError:
        return ConsoleType.UNKNOWN
    if major in PTY_MAJORS:
        return ConsoleType.PTY
    try:
        fcntl.ioctl(fd, TIOCLINUX, bytes([12]))
    except OSError:
        return ConsoleType.SERIAL
    return ConsoleType.VT


def console_type(fd: int = 0) -> ConsoleType:
    """Classify the terminal behind fd, by device name then by device node."""
    try:
        name = os.ttyname(fd)
    except OSError:
        name = None
    kind = _check_ttyname(name)
    if kind is ConsoleType.UNKNOWN:
        kind = _check_devnode(fd)
    return kind


def main(argv: list[str] | None = None) -> int:
    """Entry point of the consoletype program.

    The exit status is the type index, unless "stdout" is given, in which
    case it is 0 and only the printed name matters.
    """
    if argv is None:
        argv = sys.argv[1:]
    kind = console_type(0)
    print(kind)
    if argv and argv[0] == "stdout":
        return 0
    return int(kind)


if __name__ == "__main__":
    sys.exit(main())
