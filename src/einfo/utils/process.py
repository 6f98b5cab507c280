"""Child processes for tracked runs and parallel jobs.

A tracked command whose output is shown beneath its ebegin line gets a pty of
its own when einfo itself writes to a terminal, so that it keeps its colors
and sees the real terminal width.
"""

import asyncio
import fcntl
import os
import pty
import shlex
import struct
import sys
import termios
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

from einfo.tty.grade import query_window_size

OutputCallback = Callable[[str], Awaitable[None]]

DEFAULT_PTY_SIZE = (24, 80)


class CommandError(Exception):
    """Exception raised when a command exits unsuccessfully."""

    def __init__(self, cmd: Sequence[str], exit_code: int) -> None:
        """Initialize the error.

        Args:
            cmd: The command that failed
            exit_code: Its exit status
        """
        self.cmd = list(cmd)
        self.exit_code = exit_code
        super().__init__(f"Failed to execute command: {quote_args(cmd)}")


class ParallelRunError(Exception):
    """Exception raised when at least one parallel job failed."""

    def __init__(self, failures: list[tuple[str, int]]) -> None:
        """Initialize the error.

        Args:
            failures: (argument, exit status) of each failed job
        """
        self.failures = failures
        args = ", ".join(arg for arg, _ in failures)
        super().__init__(f"{len(failures)} job(s) failed: {args}")


def quote_args(args: Sequence[str]) -> str:
    """Quote args so that they can be pasted into a shell."""
    return shlex.join(args)


def _parent_window_size() -> tuple[int, int]:
    try:
        rows, cols = query_window_size(sys.stdout.fileno())
    except (OSError, ValueError):
        return DEFAULT_PTY_SIZE
    return (rows, cols) if rows and cols else DEFAULT_PTY_SIZE


class ProcessRunner:
    """Runs one command at a time, streaming or inheriting its output.

    With a pty, the command believes it writes to a terminal. Its stdout and
    stderr arrive merged through the output callback either way.
    """

    def __init__(self, use_pty: bool = True) -> None:
        """Initialize the runner.

        Args:
            use_pty: Give commands a pty, provided that our stdout is a terminal
        """
        self.use_pty = use_pty and sys.stdout.isatty()

    async def run(
        self,
        cmd: Sequence[str],
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
        on_output: OutputCallback | None = None,
    ) -> int:
        """Run a command to completion.

        Without a callback, the command inherits our standard streams.

        Args:
            cmd: Command and arguments to run
            cwd: Working directory for the command
            env: Extra environment variables
            on_output: Coroutine receiving decoded output as it arrives

        Returns:
            Process exit code (127 if the command could not be started)
        """
        full_env = os.environ.copy()
        if env:
            full_env.update(env)

        try:
            if on_output is None:
                return await self._run_inherit(cmd, cwd, full_env)
            if self.use_pty:
                return await self._run_with_pty(cmd, cwd, full_env, on_output)
            return await self._run_simple(cmd, cwd, full_env, on_output)
        except FileNotFoundError:
            return 127

    async def _run_inherit(self, cmd: Sequence[str], cwd: Path | None, env: dict[str, str]) -> int:
        process = await asyncio.create_subprocess_exec(*cmd, cwd=cwd, env=env)
        return await process.wait()

    async def _run_with_pty(
        self,
        cmd: Sequence[str],
        cwd: Path | None,
        env: dict[str, str],
        on_output: OutputCallback,
    ) -> int:
        """Connect all three standard streams to a fresh pty."""
        master_fd, slave_fd = pty.openpty()

        # Give the PTY our own dimensions (helps tools that check the width)
        rows, cols = _parent_window_size()
        fcntl.ioctl(master_fd, termios.TIOCSWINSZ, struct.pack("HHHH", rows, cols, 0, 0))

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                cwd=cwd,
                env=env,
            )
        finally:
            os.close(slave_fd)

        try:
            await self._read_fd_async(master_fd, on_output)
        finally:
            os.close(master_fd)
        return await process.wait()

    async def _run_simple(
        self,
        cmd: Sequence[str],
        cwd: Path | None,
        env: dict[str, str],
        on_output: OutputCallback,
    ) -> int:
        """Merge stdout and stderr into one pipe, read line by line."""
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=cwd,
            env=env,
        )

        if process.stdout:
            async for line in process.stdout:
                await on_output(line.decode("utf-8", errors="replace"))

        return await process.wait()

    async def _read_fd_async(self, fd: int, on_output: OutputCallback) -> None:
        """Forward pty output until the child side is closed."""
        loop = asyncio.get_running_loop()
        while True:
            try:
                data = await loop.run_in_executor(None, os.read, fd, 4096)
            except OSError:
                # EIO once the child side of the PTY has been closed
                break
            if not data:
                break
            await on_output(data.decode("utf-8", errors="replace"))


async def run_parallel(
    jobs: int,
    cmd: Sequence[str],
    args: Sequence[str],
    runner: ProcessRunner | None = None,
    cwd: Path | None = None,
) -> None:
    """Run ``cmd arg`` for every arg, at most ``jobs`` at a time.

    Args:
        jobs: Maximum number of concurrent commands
        cmd: Command (and leading arguments) to run
        args: One argument per job
        runner: Process runner to use
        cwd: Working directory for the commands

    Raises:
        ValueError: If jobs is less than 1 or cmd is empty
        ParallelRunError: If any job exited unsuccessfully
    """
    if jobs < 1:
        raise ValueError(f"jobs must be at least 1 (got {jobs})")
    if not cmd:
        raise ValueError("no command given")

    runner = runner or ProcessRunner(use_pty=False)
    semaphore = asyncio.Semaphore(jobs)

    async def run_one(arg: str) -> int:
        async with semaphore:
            return await runner.run([*cmd, arg], cwd=cwd)

    codes = await asyncio.gather(*(run_one(arg) for arg in args))
    failures = [(arg, code) for arg, code in zip(args, codes) if code != 0]
    if failures:
        raise ParallelRunError(failures)
