"""Entry point for einfo.

Usage:
    python -m einfo run -- make        Run make, concluding with [ ok ] or [ !! ]
    python -m einfo parallel -j 4 gzip -- a b c
    python -m einfo level              Print the terminal capability level
"""

import argparse
import asyncio
import sys

from einfo.cli import parse_args
from einfo.config import Settings, load_config
from einfo.runner import run_tracked, run_tracked_parallel
from einfo.tty.base import TerminalError, TerminalState
from einfo.tty.grade import CapabilityGrader
from einfo.ui.printer import MessagePrinter
from einfo.utils.logging import MessageLog, warn
from einfo.utils.paths import get_bootparam, is_older_than, whenceforth
from einfo.utils.predicates import yesno


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code
    """
    args = parse_args(argv)

    try:
        settings = load_config(args.env_file, args.config, nocolor=args.nocolor)
    except Exception as e:
        print(f"\033[31mError loading configuration: {e}\033[0m", file=sys.stderr)
        return 1

    try:
        return dispatch(args, settings)
    except (OSError, TerminalError, ValueError) as e:
        print(f"\033[31m{args.command}: {e}\033[0m", file=sys.stderr)
        return 1


def dispatch(args: argparse.Namespace, settings: Settings) -> int:
    """Run the selected subcommand.

    Returns:
        Its exit code
    """
    match args.command:
        case "run":
            return run_command(args, settings)
        case "parallel":
            printer = MessagePrinter(settings)
            return asyncio.run(run_tracked_parallel(printer, args.jobs, [args.cmd], args.args))
        case "yesno":
            return 0 if yesno(args.value) else 1
        case "newer":
            return 0 if is_older_than(args.reference, args.paths) else 1
        case "whence":
            found = whenceforth(args.name, executable=args.executable)
            if found is None:
                return 1
            print(found)
            return 0
        case "level":
            try:
                fd = sys.stdout.fileno()
            except (OSError, ValueError):
                fd = None
            grader = CapabilityGrader(fd, settings)
            print(int(grader.grade(TerminalState())))
            return 0
        case "bootparam":
            return 0 if get_bootparam(args.param) else 1
    return 2


def run_command(args: argparse.Namespace, settings: Settings) -> int:
    """Run a single tracked command, optionally keeping a transcript.

    Returns:
        The command's exit status
    """
    if not args.cmd:
        warn("run: no command given")
        return 2

    if args.log_dir is None:
        printer = MessagePrinter(settings)
        return asyncio.run(run_tracked(printer, args.cmd, args.name, args.warn))

    with MessageLog(args.log_dir) as logger:
        logger.write_line(f"=== {args.name or ' '.join(args.cmd)} ===")
        printer = MessagePrinter(settings, logger=logger)
        return asyncio.run(run_tracked(printer, args.cmd, args.name, args.warn))


if __name__ == "__main__":
    sys.exit(main())
