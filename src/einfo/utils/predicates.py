"""Small validation helpers: booleans, integers and identifiers."""

import os
import re
from collections.abc import Mapping

from einfo.utils.logging import warn

TRUE_WORDS = frozenset({"yes", "true", "on", "1"})
FALSE_WORDS = frozenset({"no", "false", "off", "0", ""})

# ASCII only, as the POSIX locale would have it
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")
_INTEGER = re.compile(r"-?(0|[1-9][0-9]*)\Z")


def parse_bool(value: str) -> bool:
    """Parse a boolean-like word, case-insensitively.

    Raises:
        ValueError: If value is neither truthy nor falsy
    """
    word = value.lower()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False
    raise ValueError(f"not a boolean-like value: {value!r}")


def yesno(value: str, env: Mapping[str, str] | None = None, quiet: bool = False) -> bool:
    """Determine whether value is truthy.

    If value isn't boolean-like but is a legal variable name, it is taken as a
    reference to that variable and tried again, once only. Invalid values are
    reported with a warning (unless quiet) and count as false.
    """
    if env is None:
        env = os.environ
    try:
        return parse_bool(value)
    except ValueError:
        pass
    if is_identifier(value):
        try:
            return parse_bool(env.get(value, ""))
        except ValueError:
            pass
    if not quiet:
        warn(f"yesno: invalid argument (expected a boolean-like or a legal name): {value!r}")
    return False


def is_int(value: str) -> bool:
    """Whether value is a decimal integer without superfluous leading zeroes.

    A leading hyphen-minus is permitted.
    """
    return _INTEGER.match(value) is not None


def is_identifier(value: str) -> bool:
    """Whether value is a valid shell variable name (other than "_")."""
    return value != "_" and _IDENTIFIER.match(value) is not None


def is_visible(value: str) -> bool:
    """Whether value contains at least one visible character."""
    return any(ch.isprintable() and not ch.isspace() for ch in value)


def int_between(value: str, low: str, high: str) -> bool:
    """Whether the integer value lies within [low, high].

    Raises:
        ValueError: If either bound isn't an integer
    """
    if not is_int(low) or not is_int(high):
        raise ValueError(f"int_between: invalid bounds {low!r}, {high!r}")
    return is_int(value) and int(low) <= int(value) <= int(high)
