"""Resolve installation parameters from flags, environment or prompts.

Two mutually exclusive paths produce an InstallRequest:
- Non-interactive: command-line flags over environment variables over defaults.
  Taken whenever a configuration flag is supplied or --non-interactive is given.
- Interactive: the operator answers a short prompt session. Without a terminal
  the session is skipped with a warning and the environment defaults are used.
"""

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass

import click
import structlog

from waiveo_installer.config.models import (
    DEFAULT_PORT,
    DEFAULT_VERSION,
    InstallerConfig,
    InstallRequest,
)

logger = structlog.get_logger(__name__)

TRUTHY = ("1", "true", "yes", "on")


def parse_port(raw: object, default: int = DEFAULT_PORT) -> int:
    """Parse a TCP port, falling back to the default.

    Total and idempotent: any input yields an int in [1, 65535]; never raises.

    Args:
        raw: Value to parse (string, int or None)
        default: Port returned for unparsable or out-of-range input

    Returns:
        The parsed port or the default
    """
    try:
        port = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    if 1 <= port <= 65535:
        return port
    return default


def parse_bool(raw: str | None) -> bool:
    """Interpret an environment flag (1/true/yes/on are true)."""
    return raw is not None and raw.strip().lower() in TRUTHY


def is_attended_install() -> bool:
    """Check if this is an attended installation.

    Returns:
        True if stdin is a TTY (interactive), False otherwise
    """
    return sys.stdin.isatty()


@dataclass(frozen=True)
class EnvironmentDefaults:
    """Installation defaults taken from WAIVEO_VERSION, SET_HOSTNAME and WAIVEO_PORT."""

    version: str = DEFAULT_VERSION
    set_hostname: bool = False
    port: int = DEFAULT_PORT

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "EnvironmentDefaults":
        """Read the defaults from the environment, tolerating malformed values."""
        env = os.environ if environ is None else environ
        raw_port = env.get("WAIVEO_PORT")
        port = parse_port(raw_port)
        if raw_port is not None and parse_port(raw_port, default=-1) == -1:
            logger.warning(f"Invalid WAIVEO_PORT '{raw_port}', using {DEFAULT_PORT}")
        return cls(
            version=env.get("WAIVEO_VERSION", "").strip() or DEFAULT_VERSION,
            set_hostname=parse_bool(env.get("SET_HOSTNAME")),
            port=port,
        )


@dataclass(frozen=True)
class CommandLineOverrides:
    """Values supplied explicitly on the command line (None when absent)."""

    version: str | None = None
    set_hostname: bool | None = None
    port: str | None = None
    non_interactive: bool = False

    @property
    def affects_configuration(self) -> bool:
        """Whether any configuration flag was supplied."""
        return any(value is not None for value in (self.version, self.set_hostname, self.port))


class ConfigurationCollector:
    """Builds the InstallRequest for a run."""

    def __init__(
        self,
        config: InstallerConfig,
        defaults: EnvironmentDefaults | None = None,
        attended: bool | None = None,
    ) -> None:
        self.config = config
        self.defaults = defaults or EnvironmentDefaults.from_environ()
        self.attended = is_attended_install() if attended is None else attended

    def collect(self, overrides: CommandLineOverrides) -> InstallRequest:
        """Resolve every InstallRequest field via exactly one of the two paths."""
        if overrides.non_interactive or overrides.affects_configuration:
            return self._from_flags(overrides)
        if not self.attended:
            logger.warning("No terminal attached, skipping interactive setup and using defaults")
            return self._from_flags(overrides)
        return self._from_prompts()

    def _from_flags(self, overrides: CommandLineOverrides) -> InstallRequest:
        port = self.defaults.port
        if overrides.port is not None:
            port = parse_port(overrides.port, default=-1)
            if port == -1:
                logger.warning(f"Invalid port '{overrides.port}', using {DEFAULT_PORT}")
                port = DEFAULT_PORT
        return InstallRequest(
            requested_version=overrides.version or self.defaults.version,
            port=port,
            set_hostname=bool(overrides.set_hostname) or self.defaults.set_hostname,
            interactive=False,
        )

    def _from_prompts(self) -> InstallRequest:
        click.echo()
        click.echo("Configuration")
        click.echo("-" * 60)
        set_hostname = click.confirm(
            f"Set hostname to '{self.config.hostname}'? "
            f"(enables name-based access, e.g. http://{self.config.mdns_name})",
            default=True,
        )
        raw_port = click.prompt(
            "Web server port", default=str(DEFAULT_PORT), show_default=True, type=str
        )
        return InstallRequest(
            requested_version=self.defaults.version,
            port=parse_port(raw_port),
            set_hostname=set_hostname,
            interactive=True,
        )
