"""Configuration management for einfo.

Loads configuration from:
- Environment variables: message behaviour (quiet/verbose/log/colour) and
  terminal identification (TERM, INSIDE_EMACS)
- A .env file, if present (handy for local runs of the CLI)
- pyproject.toml or any TOML file: [tool.einfo] tunables for terminal probing
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

import tomllib
from dotenv import load_dotenv

from einfo.utils.predicates import yesno


@dataclass(frozen=True)
class Tunables:
    """Empirically chosen constants for terminal probing.

    These values are tied to the behaviour of real terminal emulators, so
    they are exposed for adjustment rather than derived.
    """

    cpr_timeout: float = 0.25
    cpr_max_loops: int = 20
    cpr_bufsize: int = 100
    vtime: int = 1
    throttle: float = 0.5

    @classmethod
    def from_toml(cls, path: Path) -> "Tunables":
        """Load tunables from the [tool.einfo] table of a TOML file.

        Unknown keys are rejected so that typos do not pass silently.
        """
        with open(path, "rb") as f:
            data = tomllib.load(f)

        table = data.get("tool", {}).get("einfo", {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(table) - known)
        if unknown:
            raise ValueError(f"Unknown [tool.einfo] keys in {path}: {', '.join(unknown)}")
        return cls(**table)


@dataclass(frozen=True)
class Settings:
    """Message printing behaviour taken from the environment."""

    quiet: bool = False
    verbose: bool = False
    error_quiet: bool = False
    syslog: bool = False
    nocolor: bool = False
    term: str = ""
    inside_emacs: str = ""
    tunables: Tunables = field(default_factory=Tunables)

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        tunables: Tunables | None = None,
    ) -> "Settings":
        """Load from environment (works for both .env and real variables)."""
        if env is None:
            env = os.environ

        def flag(name: str) -> bool:
            return yesno(env.get(name, ""), env=env, quiet=True)

        return cls(
            quiet=flag("EINFO_QUIET"),
            verbose=flag("EINFO_VERBOSE"),
            error_quiet=flag("EERROR_QUIET"),
            syslog=flag("EINFO_LOG"),
            # See https://no-color.org/.
            nocolor=bool(env.get("NO_COLOR")) or flag("RC_NOCOLOR"),
            term=env.get("TERM", ""),
            inside_emacs=env.get("INSIDE_EMACS", ""),
            tunables=tunables or Tunables(),
        )

    @property
    def is_dumb_terminal(self) -> bool:
        """Whether TERM marks the terminal as dumb."""
        return "dumb" in self.term

    @property
    def column_offset(self) -> int:
        """Correction applied to CHA columns.

        In Emacs, M-x term opens an "eterm-color" terminal whose CHA
        implementation is off by one.
        """
        if self.inside_emacs and self.term == "eterm-color":
            return -1
        return 0


def load_config(
    env_file: Path | None = None,
    config_file: Path | None = None,
    nocolor: bool = False,
) -> Settings:
    """Load all configuration - .env file for local runs, env vars otherwise.

    Args:
        env_file: Optional .env file to load before reading the environment
        config_file: Optional TOML file holding a [tool.einfo] table
        nocolor: Force colour off (e.g. from --nocolor)

    Returns:
        Complete Settings with tunables
    """
    # Existing environment variables take precedence over the .env file
    if env_file is not None and env_file.exists():
        load_dotenv(env_file)

    tunables = Tunables.from_toml(config_file) if config_file else Tunables()
    settings = Settings.from_env(tunables=tunables)
    if nocolor and not settings.nocolor:
        settings = replace(settings, nocolor=True)
    return settings
