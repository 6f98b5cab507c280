"""The e-message printing functions: einfo, ewarn, eerror, ebegin, eend ...

Messages take the form " * <indent><message>", the asterisk colored by
severity when the stream is a color-capable terminal. Informational messages
go to stdout, warnings and errors to stderr.
"""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Callable
from typing import TYPE_CHECKING, TextIO

from einfo.config import Settings
from einfo.tty.base import CPRReply, IndicatorRequest, TerminalState
from einfo.tty.cpr import query_cursor_position
from einfo.tty.grade import CapabilityGrader
from einfo.ui.indicator import STATUS_FAIL, STATUS_OK, IndicatorPlacer
from einfo.utils.logging import program_name, warn
from einfo.utils.paths import whenceforth
from einfo.utils.predicates import is_visible
from einfo.utils.process import CommandError, quote_args

if TYPE_CHECKING:
    from einfo.utils.logging import MessageLog


# ECMA-48 SGR sequences, as documented by console_codes(4)
BAD = "\033[31;01m"
BRACKET = "\033[34;01m"
GOOD = "\033[32;01m"
HILITE = "\033[36;01m"
NORMAL = "\033[0m"
WARN = "\033[33;01m"


def _fileno(stream: TextIO) -> int | None:
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _isatty(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


class MessagePrinter:
    """Prints e-messages and places the indicators concluding ebegin."""

    def __init__(
        self,
        settings: Settings | None = None,
        out: TextIO | None = None,
        err: TextIO | None = None,
        logger: MessageLog | None = None,
        grader: CapabilityGrader | None = None,
        query: Callable[[], CPRReply] | None = None,
    ) -> None:
        """Initialize the printer.

        Args:
            settings: Quietness, verbosity, color and terminal settings
            out: Stream for informational messages and indicators
            err: Stream for warnings and errors
            logger: Optional transcript that receives every message
            grader: Capability grader for out's terminal
            query: Cursor position query for out's terminal
        """
        self.settings = settings or Settings.from_env()
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self.logger = logger
        self.indent = ""
        self.pending_newline = False
        self.output_since_mark = False
        self.state = TerminalState()

        fd = _fileno(self.out)
        self.grader = grader or CapabilityGrader(fd, self.settings)
        if query is None:
            tunables = self.settings.tunables

            def query() -> CPRReply:
                return query_cursor_position(fd, tunables)

        self.placer = IndicatorPlacer(
            self.out,
            self.state,
            self.grader,
            query,
            offset=self.settings.column_offset,
        )

    def _color(self, code: str, stream: TextIO) -> str:
        """Return color code if the stream is a color terminal, "" otherwise."""
        if self.settings.nocolor or self.settings.is_dumb_terminal:
            return ""
        return code if _isatty(stream) else ""

    def _log_to_file(self, text: str) -> None:
        if self.logger:
            self.logger.write(text)

    def terminate_line(self) -> None:
        """Terminate the line left open by ebegin, if any."""
        if self.pending_newline:
            self.out.write("\n")
            self.out.flush()
            self.pending_newline = False

    def _eprint(self, color: str, message: str, stream: TextIO) -> None:
        """Called by ebegin, eerrorn, einfon and ewarnn."""
        self.terminate_line()
        self.output_since_mark = True
        normal = self._color(NORMAL, stream)
        stream.write(f" {self._color(color, stream)}*{normal} {self.indent}{message}")
        stream.flush()
        self._log_to_file(f" * {self.indent}{message}")

    def write_output(self, text: str) -> None:
        """Pass through output of a tracked command, e.g. from run_tracked."""
        self.terminate_line()
        self.output_since_mark = True
        self.out.write(text)
        self.out.flush()
        self._log_to_file(text)

    def esyslog(self, priority: str, tag: str, message: str) -> None:
        """Pass a message to the system logger, if EINFO_LOG is true."""
        if not self.settings.syslog or not is_visible(message):
            return
        logger = whenceforth("logger")
        if logger is None:
            return
        # POSIX defines no options for logger(1), but every implementation has these
        subprocess.run([logger, "-p", priority, "-t", tag, "--", message], check=False)

    def einfon(self, message: str) -> None:
        """Show an informative message (without a newline)."""
        if not self.settings.quiet:
            self._eprint(GOOD, message, self.out)

    def einfo(self, message: str) -> None:
        """Show an informative message (with a newline)."""
        self.einfon(f"{message}\n")

    def ewarnn(self, message: str) -> None:
        """Show a warning message (without a newline) and log it."""
        if not self.settings.quiet:
            self._eprint(WARN, message, self.err)
            self.esyslog("daemon.warning", program_name(), message.rstrip("\n"))

    def ewarn(self, message: str) -> None:
        """Show a warning message (with a newline) and log it."""
        self.ewarnn(f"{message}\n")

    def eerrorn(self, message: str) -> int:
        """Show an error message (without a newline) and log it."""
        if not self.settings.error_quiet:
            self._eprint(BAD, message, self.err)
            self.esyslog("daemon.err", program_name(), message.rstrip("\n"))
        return 1

    def eerror(self, message: str) -> int:
        """Show an error message (with a newline) and log it."""
        return self.eerrorn(f"{message}\n")

    def ebegin(self, message: str) -> None:
        """Show a message indicating the start of a process.

        It is expected that eend eventually be called, so as to indicate
        whether the process completed successfully or not.
        """
        if self.settings.quiet:
            return
        message = message.rstrip("\n")
        self._eprint(GOOD, f"{message} ...", self.out)
        if self.placer.mark():
            self.out.write("\n")
            self.out.flush()
        else:
            self.pending_newline = True
        self.output_since_mark = False
        self._log_to_file("\n")

    def eend(self, exit_code: int = 0, message: str | None = None) -> int:
        """Indicate the completion of a process; on failure show message via eerror."""
        return self._eend(IndicatorRequest(exit_code, message), self.eerror, "eend")

    def ewend(self, exit_code: int = 0, message: str | None = None) -> int:
        """Indicate the completion of a process; on failure show message via ewarn."""
        return self._eend(IndicatorRequest(exit_code, message), self.ewarn, "ewend")

    def _eend(
        self,
        request: IndicatorRequest,
        efunc: Callable[[str], object],
        caller: str,
    ) -> int:
        if request.exit_code < 0:
            self._warn_exit_status(caller, request.exit_code)
            request = IndicatorRequest(1)

        if not request.success:
            if request.message and is_visible(request.message):
                efunc(request.message)
            status, color = STATUS_FAIL, BAD
        elif self.settings.quiet:
            return request.exit_code
        else:
            status, color = STATUS_OK, GOOD

        self.placer.place(self._render_indicator(status, color), interleaved=self.output_since_mark)
        self.pending_newline = False
        self.output_since_mark = False
        self._log_to_file(f" {status}\n")
        return request.exit_code

    def _render_indicator(self, status: str, color: str) -> str:
        bracket = self._color(BRACKET, self.out)
        if not bracket:
            return status
        # "[ ok ]" -> BRACKET "[ " color "ok" BRACKET " ]" NORMAL
        inner = status[2:-2]
        return f"{bracket}[ {self._color(color, self.out)}{inner}{bracket} ]{self._color(NORMAL, self.out)}"

    def _esetdent(self, width: int) -> None:
        self.indent = " " * max(width, 0)

    def eindent(self, amount: int = 2) -> None:
        """Increase the indent used for e-messages (by 2 if amount <= 0)."""
        if amount <= 0:
            amount = 2
        self._esetdent(len(self.indent) + amount)

    def eoutdent(self, amount: int = 2) -> None:
        """Decrease the indent used for e-messages (by 2 if amount <= 0)."""
        if amount <= 0:
            amount = 2
        self._esetdent(len(self.indent) - amount)

    # v-prefixed variants only have an effect when EINFO_VERBOSE is true

    def veinfo(self, message: str) -> None:
        """einfo, if verbose."""
        if self.settings.verbose:
            self.einfo(message)

    def veinfon(self, message: str) -> None:
        """einfon, if verbose."""
        if self.settings.verbose:
            self.einfon(message)

    def vewarn(self, message: str) -> None:
        """ewarn, if verbose."""
        if self.settings.verbose:
            self.ewarn(message)

    def veerror(self, message: str) -> None:
        """eerror, if verbose."""
        if self.settings.verbose:
            self.eerror(message)

    def vebegin(self, message: str) -> None:
        """ebegin, if verbose."""
        if self.settings.verbose:
            self.ebegin(message)

    def veindent(self, amount: int = 2) -> None:
        """eindent, if verbose."""
        if self.settings.verbose:
            self.eindent(amount)

    def veoutdent(self, amount: int = 2) -> None:
        """eoutdent, if verbose."""
        if self.settings.verbose:
            self.eoutdent(amount)

    def veend(self, exit_code: int = 0, message: str | None = None) -> int:
        """eend if verbose; otherwise just return the exit status."""
        if self.settings.verbose:
            return self._eend(IndicatorRequest(exit_code, message), self.eerror, "veend")
        return self._quiet_end(exit_code, "veend")

    def vewend(self, exit_code: int = 0, message: str | None = None) -> int:
        """ewend if verbose; otherwise just return the exit status."""
        if self.settings.verbose:
            return self._eend(IndicatorRequest(exit_code, message), self.ewarn, "vewend")
        return self._quiet_end(exit_code, "vewend")

    def _warn_exit_status(self, caller: str, exit_code: int) -> None:
        warn(f"{caller}: invalid argument (the exit status must be an integer >= 0): {exit_code}", self.err)

    def _quiet_end(self, exit_code: int, caller: str) -> int:
        if exit_code < 0:
            self._warn_exit_status(caller, exit_code)
            return 1
        return exit_code

    def edo(self, *cmd: str) -> None:
        """Print a command as an informational message, then run it.

        Raises:
            CommandError: If the command fails or cannot be executed
        """
        self.einfo(f"Executing: {quote_args(cmd)}")
        try:
            exit_code = subprocess.run(cmd, check=False).returncode
        except OSError:
            exit_code = 127
        if exit_code != 0:
            raise CommandError(cmd, exit_code)

