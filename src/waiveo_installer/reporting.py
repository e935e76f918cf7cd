"""Operator-facing output: banner, detected system and completion summary.

Nothing in this module changes the host.
"""

import ipaddress
import socket

import click
import psutil
import structlog

from waiveo_installer.config.models import DEFAULT_PORT, InstallerConfig, InstallRequest
from waiveo_installer.system.models import SystemProfile

logger = structlog.get_logger(__name__)

UNKNOWN_IP = "unknown"

BANNER = r"""
  __        __    _
  \ \      / /_ _(_)_   _____  ___
   \ \ /\ / / _` | \ \ / / _ \/ _ \
    \ V  V / (_| | |\ V /  __/ (_) |
     \_/\_/ \__,_|_| \_/ \___|\___/
"""

CLI_COMMANDS = [
    ("waiveo status", "Check service status"),
    ("waiveo logs", "View logs"),
    ("waiveo update", "Update to latest version"),
    ("waiveo --help", "Show all commands"),
]


def _is_usable(address: str) -> bool:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return not (ip.is_loopback or ip.is_link_local or ip.is_unspecified)


def get_ip_address() -> str:
    """Get the primary non-loopback IPv4 address of this machine.

    Returns:
        str: IP address or 'unknown' if none is configured
    """
    try:
        # Create a socket to determine the route to the internet
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("8.8.8.8", 80))
            ip = s.getsockname()[0]
        if _is_usable(ip):
            return ip
    except OSError:
        pass

    # No default route: take the first configured interface address
    for addresses in psutil.net_if_addrs().values():
        for address in addresses:
            if address.family == socket.AF_INET and _is_usable(address.address):
                return address.address
    return UNKNOWN_IP


def format_url(host: str, port: int) -> str:
    """Build an http URL, adding the port only when it is not the default."""
    if port == DEFAULT_PORT:
        return f"http://{host}"
    return f"http://{host}:{port}"


class Reporter:
    """Prints installer progress blocks and the final access information."""

    def __init__(self, config: InstallerConfig) -> None:
        self.config = config

    def print_banner(self) -> None:
        """Show the installer banner."""
        click.echo(click.style(BANNER, fg="cyan", bold=True))
        click.echo(click.style("Universal Installer", bold=True))
        click.echo()

    def print_system_profile(self, profile: SystemProfile) -> None:
        """Show what preflight detected."""
        os_label = f"{profile.os_id} {profile.os_version}".strip()
        click.echo("System detected:")
        click.echo(f"  Architecture: {click.style(str(profile.architecture), bold=True)}")
        click.echo(f"  OS: {click.style(os_label, bold=True)}")
        click.echo(
            f"  Raspberry Pi: {click.style('yes' if profile.is_raspberry_pi else 'no', bold=True)}"
        )
        click.echo()
        if profile.is_raspberry_pi:
            logger.warning("Raspberry Pi detected. Consider using the pre-built image instead:")
            click.echo(f"  {self.config.releases_url}")
            click.echo()

    def print_complete(
        self, request: InstallRequest, profile: SystemProfile, ip_address: str | None = None
    ) -> None:
        """Show how to reach the installed appliance.

        Args:
            request: The resolved installation request
            profile: The detected host profile
            ip_address: Address to display (detected when omitted)
        """
        ip = ip_address or get_ip_address()
        rule = click.style("=" * 44, fg="green")

        click.echo()
        click.echo(rule)
        click.echo(click.style("  Installation Complete!", fg="green"))
        click.echo(rule)
        click.echo()
        click.echo("Access Waiveo at:")
        click.echo(f"  {click.style(format_url(ip, request.port), bold=True)}")
        click.echo(
            f"  {click.style(format_url(self.config.mdns_name, request.port), bold=True)}"
            " (if mDNS works)"
        )
        click.echo()

        if profile.is_raspberry_pi:
            click.echo("Default credentials:")
            click.echo(f"  Username: {click.style(self.config.bootstrap_user, bold=True)}")
            click.echo(f"  Password: {click.style(self.config.bootstrap_password, bold=True)}")
            click.echo()
            click.echo(click.style("Change this password after your first login.", fg="yellow"))
        else:
            click.echo("Log in with your existing Linux username and password.")
        click.echo()

        click.echo("CLI commands available:")
        for command, description in CLI_COMMANDS:
            click.echo(f"  {click.style(f'{command:<15}', fg='cyan')} - {description}")
        click.echo()
