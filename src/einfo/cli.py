"""Command-line interface for einfo."""

import argparse
from pathlib import Path


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subparser per command."""
    parser = argparse.ArgumentParser(
        prog="einfo",
        description="Status messages and helpers for init scripts and build tooling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  einfo run -- make -j4               Run make, concluding with [ ok ] or [ !! ]
  einfo run --name "Building" -- make Same, with a custom description
  einfo parallel -j 4 gzip -- a b c   Run "gzip a", "gzip b" and "gzip c"
  einfo yesno "$EINFO_VERBOSE"         Exit 0 if the value is truthy
  einfo newer out.bin src/            Exit 0 if anything in src/ is newer
  einfo level                         Print the terminal capability level
        """,
    )

    parser.add_argument(
        "-C",
        "--nocolor",
        "--nocolour",
        dest="nocolor",
        action="store_true",
        help="Disable colored output",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="TOML file with a [tool.einfo] table of terminal tunables",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=Path(".env"),
        help="Environment file to load, if it exists (default: .env)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Run a command as a tracked operation")
    run.add_argument("--name", help="Description printed by ebegin")
    run.add_argument(
        "--warn",
        action="store_true",
        help="Report failure as a warning rather than an error",
    )
    run.add_argument("--log-dir", type=Path, help="Write a rotating transcript here")
    run.add_argument("cmd", nargs=argparse.REMAINDER, help="Command to run (after --)")

    parallel = commands.add_parser("parallel", help="Run a command once per argument")
    parallel.add_argument(
        "-j",
        "--jobs",
        type=_positive_int,
        default=1,
        help="Maximum number of concurrent jobs (default: 1)",
    )
    parallel.add_argument("cmd", help="Command to run")
    parallel.add_argument("args", nargs="*", help="One argument per job (after --)")

    yesno = commands.add_parser("yesno", help="Exit 0 if the value is truthy")
    yesno.add_argument("value")

    newer = commands.add_parser(
        "newer", help="Exit 0 if any path is newer than the reference"
    )
    newer.add_argument("reference")
    newer.add_argument("paths", nargs="+")

    whence = commands.add_parser("whence", help="Locate a command in PATH")
    whence.add_argument(
        "-a",
        "--any",
        dest="executable",
        action="store_false",
        help="Accept files lacking the execute permission",
    )
    whence.add_argument("name")

    commands.add_parser("level", help="Print the capability level of the terminal on stdout")

    bootparam = commands.add_parser(
        "bootparam", help="Exit 0 if gentoo=<param> was passed to the kernel"
    )
    bootparam.add_argument("param")

    return parser


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: Arguments to parse, or None to use sys.argv

    Returns:
        Parsed arguments namespace
    """
    namespace = build_parser().parse_args(args)
    cmd = getattr(namespace, "cmd", None)
    if isinstance(cmd, list) and cmd and cmd[0] == "--":
        namespace.cmd = cmd[1:]
    return namespace
