"""Command-line entry point for the Waiveo Host installer.

Usage:
    sudo waiveo-install [--version v1.0.0] [--port 8080] [--set-hostname] [-y]

Environment variables:
    WAIVEO_VERSION   Specific version to install (default: latest)
    SET_HOSTNAME     Set the hostname to 'waiveo' (default: false)
    WAIVEO_PORT      Web server port (default: 80)
"""

import sys

import click
import structlog
from click.core import ParameterSource

from waiveo_installer.config.collector import CommandLineOverrides
from waiveo_installer.config.models import InstallerConfig, LoggingConfig
from waiveo_installer.errors import InstallError
from waiveo_installer.installer import Installer
from waiveo_installer.system.path_resolver import PathResolver
from waiveo_installer.utils.structlog_configurator import configure_structlog

logger = structlog.get_logger(__name__)


def _supplied(ctx: click.Context, name: str) -> bool:
    return ctx.get_parameter_source(name) == ParameterSource.COMMANDLINE


@click.command(
    context_settings={
        "help_option_names": ["-h", "--help"],
        "ignore_unknown_options": True,
        "allow_extra_args": True,
    }
)
@click.option(
    "--version", "-v", "version", metavar="VERSION", help="Install specific version (e.g., v1.0.0)"
)
@click.option(
    "--set-hostname", is_flag=True, help="Set hostname to 'waiveo' for http://waiveo.local access"
)
@click.option("--port", "-p", metavar="PORT", help="Web server port (default: 80)")
@click.option(
    "--non-interactive",
    "-y",
    is_flag=True,
    help="Skip interactive prompts and use flags/environment/defaults",
)
@click.pass_context
def cli(
    ctx: click.Context,
    version: str | None,
    set_hostname: bool,
    port: str | None,
    non_interactive: bool,
) -> None:
    """Install the Waiveo Host appliance on this machine.

    Environment variables: WAIVEO_VERSION, SET_HOSTNAME, WAIVEO_PORT.
    """
    logging_config = LoggingConfig.from_environ()
    configure_structlog(logging_config)

    for arg in ctx.args:
        logger.warning(f"Unknown option: {arg}")

    overrides = CommandLineOverrides(
        version=version if _supplied(ctx, "version") else None,
        set_hostname=True if _supplied(ctx, "set_hostname") and set_hostname else None,
        port=port if _supplied(ctx, "port") else None,
        non_interactive=non_interactive,
    )

    config = InstallerConfig()
    installer = Installer(config, PathResolver())
    try:
        installer.run(overrides)
    except InstallError as e:
        logger.error(str(e))
        sys.exit(1)


def main() -> None:
    """Entry point for the installer CLI."""
    cli()


if __name__ == "__main__":
    main()
