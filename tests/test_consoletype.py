# Console type tests: classification by device name and the program's
# output and exit status.

import pytest

from einfo.tty import consoletype
from einfo.tty.consoletype import ConsoleType, _check_ttyname, console_type


@pytest.mark.parametrize(
    "name, expected",
    [
        ("/dev/ttyS0", ConsoleType.SERIAL),
        ("/dev/cuaa0", ConsoleType.SERIAL),
        ("/dev/pts/3", ConsoleType.PTY),
        ("/dev/ttyp0", ConsoleType.PTY),
        ("/dev/tty1", ConsoleType.VT),
        ("/dev/console", ConsoleType.UNKNOWN),
        (None, ConsoleType.UNKNOWN),
    ],
)
def test_check_ttyname(name, expected):
    assert _check_ttyname(name) is expected


def test_console_type_of_pty(pty_pair):
    _, slave = pty_pair
    assert console_type(slave) is ConsoleType.PTY


def test_str():
    assert [str(kind) for kind in ConsoleType] == ["vt", "serial", "pty", "unknown"]


def test_main_exit_status(monkeypatch, capsys):
    monkeypatch.setattr(consoletype, "console_type", lambda fd: ConsoleType.SERIAL)
    assert consoletype.main([]) == 1
    assert capsys.readouterr().out == "serial\n"


def test_main_stdout(monkeypatch, capsys):
    monkeypatch.setattr(consoletype, "console_type", lambda fd: ConsoleType.UNKNOWN)
    assert consoletype.main(["stdout"]) == 0
    assert capsys.readouterr().out == "unknown\n"
