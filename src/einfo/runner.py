"""Runs commands as tracked operations, concluded by an ok/!! indicator."""

from collections.abc import Sequence
from pathlib import Path

from einfo.ui.printer import MessagePrinter
from einfo.utils.process import ParallelRunError, ProcessRunner, quote_args, run_parallel


def _signal_status(exit_code: int) -> int:
    # asyncio reports death by signal N as -N; shells report 128 + N
    return 128 - exit_code if exit_code < 0 else exit_code


async def run_tracked(
    printer: MessagePrinter,
    cmd: Sequence[str],
    name: str | None = None,
    warn_only: bool = False,
    runner: ProcessRunner | None = None,
    cwd: Path | None = None,
) -> int:
    """Announce a command with ebegin, run it, then conclude with eend.

    Command output is passed through to the printer's output stream (and
    its transcript, if any). Any output ends the line left open by ebegin.

    Args:
        printer: Message printer
        cmd: Command and arguments to run
        name: Description for ebegin (defaults to the quoted command)
        warn_only: Report failure as a warning (ewend) rather than an error
        runner: Process runner to use
        cwd: Working directory for the command

    Returns:
        The command's exit status
    """
    runner = runner or ProcessRunner(use_pty=True)
    printer.ebegin(name or quote_args(cmd))

    async def on_output(text: str) -> None:
        printer.write_output(text)

    exit_code = _signal_status(await runner.run(cmd, cwd=cwd, on_output=on_output))
    conclude = printer.ewend if warn_only else printer.eend
    return conclude(exit_code, f"{quote_args(cmd)} exited with status {exit_code}")


async def run_tracked_parallel(
    printer: MessagePrinter,
    jobs: int,
    cmd: Sequence[str],
    args: Sequence[str],
    runner: ProcessRunner | None = None,
) -> int:
    """Run ``cmd arg`` for every arg in parallel as one tracked operation.

    Returns:
        0 if every job succeeded, 1 otherwise
    """
    printer.ebegin(f"Running {quote_args(cmd)} for {len(args)} argument(s), {jobs} at a time")
    # The jobs write straight to our streams, past the printer
    printer.output_since_mark = bool(args)
    try:
        await run_parallel(jobs, cmd, args, runner=runner)
    except ParallelRunError as e:
        for arg, code in e.failures:
            printer.eerror(f"{quote_args([*cmd, arg])} exited with status {_signal_status(code)}")
        return printer.eend(1)
    return printer.eend(0)
