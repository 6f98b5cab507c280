"""File age comparison, PATH search and kernel command line lookups."""

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

PROC_CMDLINE = Path("/proc/cmdline")


def _walk(path: str) -> Iterator[str]:
    """Yield path and, for directories, everything beneath it (following symlinks)."""
    yield path
    if os.path.isdir(path):
        for root, dirs, files in os.walk(path, followlinks=True):
            for name in dirs + files:
                yield os.path.join(root, name)


def _mtime(path: str) -> float | None:
    try:
        return os.stat(path).st_mtime
    except OSError:
        return None


def is_older_than(reference: str, paths: Iterable[str]) -> bool:
    """Whether any of paths (searched recursively) is newer than reference.

    If reference doesn't exist, any existing path counts as newer.
    """
    ref_mtime = _mtime(reference)
    for top in paths:
        if not os.path.exists(top):
            continue
        for path in _walk(top):
            mtime = _mtime(path)
            if mtime is None:
                continue
            if ref_mtime is None or mtime > ref_mtime:
                return True
    return False


def _existing_with_mtime(paths: Iterable[str]) -> list[tuple[float, str]]:
    found = [(_mtime(p), p) for p in paths]
    return [(m, p) for m, p in found if m is not None]


def find_newest(paths: Iterable[str]) -> str:
    """Return the most recently modified of paths.

    Raises:
        FileNotFoundError: If none of the paths exist
    """
    found = _existing_with_mtime(paths)
    if not found:
        raise FileNotFoundError("none of the given paths exist")
    return max(found, key=lambda item: item[0])[1]


def find_oldest(paths: Iterable[str]) -> str:
    """Return the least recently modified of paths.

    Raises:
        FileNotFoundError: If none of the paths exist
    """
    found = _existing_with_mtime(paths)
    if not found:
        raise FileNotFoundError("none of the given paths exist")
    return min(found, key=lambda item: item[0])[1]


def _is_candidate(path: str, executable: bool) -> bool:
    if not os.path.isfile(path):
        return False
    return not executable or os.access(path, os.X_OK)


def whenceforth(name: str, search_path: str | None = None, executable: bool = True) -> str | None:
    """Locate name in PATH, much as a shell would.

    Args:
        name: Command name, or a pathname if it contains a slash
        search_path: Colon-separated directories (defaults to $PATH)
        executable: Require the execute permission

    Returns:
        The pathname found, or None
    """
    if "/" in name:
        return name if _is_candidate(name, executable) else None

    if search_path is None:
        search_path = os.environ.get("PATH", "")
    for directory in search_path.split(":"):
        # An empty entry denotes the current directory
        candidate = os.path.join(directory or ".", name)
        if _is_candidate(candidate, executable):
            return candidate
    return None


def get_bootparam(param: str, cmdline: Path = PROC_CMDLINE, key: str = "gentoo") -> bool:
    """Whether param appears in a comma-separated key=<list> kernel parameter.

    For example, "nodevfs" matches "gentoo=nodevfs,nosound".
    """
    # Lists are comma-delimited, so neither a comma nor "" may match
    if not param or "," in param:
        return False
    try:
        line = cmdline.read_text(encoding="utf-8", errors="replace").splitlines()[0]
    except (OSError, IndexError):
        return False

    prefix = f"{key}="
    for opt in line.split():
        if opt.startswith(prefix) and param in opt[len(prefix):].split(","):
            return True
    return False
