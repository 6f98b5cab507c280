# Message printer tests: message formats, quietness and verbosity, the
# ebegin/eend pairing on dumb and smart terminals, and the transcript.

import io
import subprocess
import sys

import pytest
from conftest import FakeGrader, ScriptedQuery

from einfo.config import Settings
from einfo.tty.base import CPRReply, TTYLevel
from einfo.ui import printer as printer_module
from einfo.ui.indicator import DECRC, DECSC
from einfo.ui.printer import MessagePrinter
from einfo.utils.logging import MessageLog
from einfo.utils.process import CommandError


def make_printer(settings=None, grader=None, query=None, logger=None):
    out, err = io.StringIO(), io.StringIO()
    printer = MessagePrinter(
        settings or Settings(),
        out=out,
        err=err,
        logger=logger,
        grader=grader or FakeGrader(TTYLevel.NONE),
        query=query or ScriptedQuery(),
    )
    return printer, out, err


def test_einfo():
    printer, out, err = make_printer()
    printer.einfo("hello")
    assert out.getvalue() == " * hello\n"
    assert err.getvalue() == ""


def test_einfon_has_no_newline():
    printer, out, _ = make_printer()
    printer.einfon("hello")
    assert out.getvalue() == " * hello"


def test_warnings_and_errors_go_to_err():
    printer, out, err = make_printer()
    printer.ewarn("careful")
    assert printer.eerror("broken") == 1
    assert out.getvalue() == ""
    assert err.getvalue() == " * careful\n * broken\n"


def test_no_color_on_non_tty():
    """Messages printed to something other than a terminal carry no SGR sequences."""
    printer, out, err = make_printer()
    printer.einfo("a")
    printer.ewarn("b")
    printer.eerror("c")
    printer.ebegin("d")
    printer.eend(1)
    assert "\033[" not in out.getvalue()
    assert "\033[" not in err.getvalue()


def test_quiet_suppresses_info_and_warnings():
    printer, out, err = make_printer(Settings(quiet=True))
    printer.einfo("hello")
    printer.ewarn("careful")
    printer.ebegin("working")
    assert printer.eend(0) == 0
    assert out.getvalue() == ""
    assert err.getvalue() == ""


def test_quiet_still_reports_failure():
    printer, out, _ = make_printer(Settings(quiet=True))
    assert printer.eend(3) == 3
    assert out.getvalue() == " [ !! ]\n"


def test_error_quiet():
    printer, _, err = make_printer(Settings(error_quiet=True))
    assert printer.eerror("broken") == 1
    assert err.getvalue() == ""


def test_ebegin_eend_on_dumb_terminal():
    printer, out, _ = make_printer()
    printer.ebegin("Starting foo\n\n")
    assert printer.eend(0) == 0
    assert out.getvalue() == " * Starting foo ... [ ok ]\n"


def test_eend_failure_with_message():
    """The error message terminates the pending line before it is shown."""
    printer, out, err = make_printer()
    printer.ebegin("Starting foo")
    assert printer.eend(1, "foo crashed") == 1
    assert out.getvalue() == " * Starting foo ...\n [ !! ]\n"
    assert err.getvalue() == " * foo crashed\n"


def test_eend_invisible_message_not_shown():
    printer, _, err = make_printer()
    printer.ebegin("Starting foo")
    printer.eend(1, " \t")
    assert err.getvalue() == ""


def test_ewend_failure_warns():
    printer, _, err = make_printer()
    printer.ebegin("Starting foo")
    assert printer.ewend(2, "degraded") == 2
    assert err.getvalue() == " * degraded\n"


def test_eend_negative_status(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["einfo"])
    printer, out, err = make_printer()
    assert printer.eend(-1) == 1
    assert "eend: invalid argument" in err.getvalue()
    assert out.getvalue() == " [ !! ]\n"


def test_message_after_ebegin_terminates_line():
    printer, out, _ = make_printer()
    printer.ebegin("Starting foo")
    printer.einfo("detail")
    printer.eend(0)
    assert out.getvalue() == " * Starting foo ...\n * detail\n [ ok ]\n"


def test_ebegin_eend_on_smart_terminal():
    query = ScriptedQuery(CPRReply(5, 19), CPRReply(6, 1), CPRReply(5, 19))
    printer, out, _ = make_printer(grader=FakeGrader(TTYLevel.SMART), query=query)
    printer.ebegin("Starting foo")
    assert printer.eend(0) == 0
    value = out.getvalue()
    assert value.startswith(" * Starting foo ..." + DECSC + "\n" + DECRC)
    assert value.endswith(" [ ok ]\033[6;1H")
    assert query.calls == 3


def test_error_after_ebegin_on_bottom_line():
    """An error printed between ebegin and eend on the last row must not put
    the indicator over the error line."""
    query = ScriptedQuery(CPRReply(24, 20), CPRReply(24, 1), CPRReply(24, 20))
    printer, out, err = make_printer(grader=FakeGrader(TTYLevel.SMART), query=query)
    printer.ebegin("Starting foo")
    assert printer.eend(1, "foo failed") == 1
    assert err.getvalue() == " * foo failed\n"
    value = out.getvalue()
    assert value.endswith(DECRC + "\033[24;1H [ !! ]\n")
    assert "\033[23;20H" not in value


def test_write_output_marks_interleaving():
    query = ScriptedQuery(CPRReply(5, 19), CPRReply(6, 1), CPRReply(5, 19))
    printer, out, _ = make_printer(grader=FakeGrader(TTYLevel.SMART), query=query)
    printer.ebegin("Building")
    printer.write_output("compiling\n")
    assert printer.output_since_mark
    printer.eend(0)
    assert not printer.output_since_mark
    assert out.getvalue().endswith(DECRC + "\033[6;1H [ ok ]\n")


def test_indent():
    printer, out, _ = make_printer()
    printer.eindent()
    printer.einfo("a")
    printer.eindent(3)
    printer.einfo("b")
    printer.eoutdent(0)
    printer.einfo("c")
    printer.eoutdent(10)
    printer.einfo("d")
    assert out.getvalue() == " *   a\n *      b\n *    c\n * d\n"


def test_verbose_variants():
    printer, out, _ = make_printer()
    printer.veinfo("hidden")
    printer.vebegin("hidden")
    assert printer.veend(4) == 4
    assert out.getvalue() == ""

    printer, out, _ = make_printer(Settings(verbose=True))
    printer.veinfo("shown")
    printer.vebegin("working")
    assert printer.veend(0) == 0
    assert out.getvalue() == " * shown\n * working ... [ ok ]\n"


def test_quiet_end_negative_status(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["einfo"])
    printer, _, err = make_printer()
    assert printer.vewend(-2) == 1
    assert "vewend: invalid argument" in err.getvalue()


def test_esyslog(monkeypatch):
    calls = []
    monkeypatch.setattr(printer_module, "whenceforth", lambda name: "/usr/bin/logger")
    monkeypatch.setattr(subprocess, "run", lambda cmd, check: calls.append(cmd))
    monkeypatch.setattr(sys, "argv", ["/sbin/openrc-run"])

    printer, _, _ = make_printer(Settings(syslog=True))
    printer.ewarn("careful")
    printer.eerror("broken")
    assert calls == [
        ["/usr/bin/logger", "-p", "daemon.warning", "-t", "openrc-run", "--", "careful"],
        ["/usr/bin/logger", "-p", "daemon.err", "-t", "openrc-run", "--", "broken"],
    ]


def test_esyslog_disabled(monkeypatch):
    calls = []
    monkeypatch.setattr(subprocess, "run", lambda cmd, check: calls.append(cmd))
    printer, _, _ = make_printer()
    printer.ewarn("careful")
    assert calls == []


def test_edo():
    printer, out, _ = make_printer()
    printer.edo(sys.executable, "-c", "pass")
    assert out.getvalue().startswith(" * Executing: ")


def test_edo_failure():
    printer, _, _ = make_printer()
    with pytest.raises(CommandError) as excinfo:
        printer.edo(sys.executable, "-c", "raise SystemExit(3)")
    assert excinfo.value.exit_code == 3


def test_edo_missing_command():
    printer, _, _ = make_printer()
    with pytest.raises(CommandError) as excinfo:
        printer.edo("/nonexistent/einfo-test-command")
    assert excinfo.value.exit_code == 127


def test_transcript(tmp_path):
    with MessageLog(tmp_path) as log:
        printer, _, _ = make_printer(logger=log)
        printer.einfo("hello")
        printer.ebegin("working")
        printer.eend(1)
    assert (tmp_path / "einfo.log").read_text() == " * hello\n * working ...\n [ !! ]\n"
