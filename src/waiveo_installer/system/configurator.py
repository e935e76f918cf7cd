"""Host-level configuration applied after the release is installed.

Every step converges toward the requested state, so re-running the installer on an
already configured host changes nothing.
"""

import os
import re
import shutil
import socket

import structlog
from jinja2 import Template

from waiveo_installer.config.models import InstallerConfig, InstallRequest
from waiveo_installer.errors import HostConfigurationError
from waiveo_installer.system.commands import CommandRunner
from waiveo_installer.system.models import SystemProfile
from waiveo_installer.system.path_resolver import PathResolver
from waiveo_installer.system.polling import wait_until
from waiveo_installer.system.systemd import SystemdManager

logger = structlog.get_logger(__name__)

_PUBLISH_HOSTNAME = re.compile(r"^[#;]?\s*publish-hostname\s*=.*$", re.MULTILINE)


class SystemConfigurator:
    """Applies hostname, mDNS, firewall, service override and account settings."""

    def __init__(
        self,
        config: InstallerConfig,
        path_resolver: PathResolver,
        runner: CommandRunner,
        systemd: SystemdManager | None = None,
    ) -> None:
        self.config = config
        self.path_resolver = path_resolver
        self.runner = runner
        self.systemd = systemd or SystemdManager(runner)

    def configure(self, request: InstallRequest, profile: SystemProfile) -> None:
        """Run every configuration step in order."""
        logger.info("Configuring system...")
        if profile.is_raspberry_pi or request.set_hostname:
            self.configure_hostname()
        self.configure_mdns()
        self.open_firewall()
        self.write_port_override(request)
        if profile.is_raspberry_pi:
            self.provision_bootstrap_account()
        else:
            self.grant_invoking_user_docker_access()
        logger.info("System configured", status="ok")

    # Hostname

    def configure_hostname(self) -> bool:
        """Set the appliance hostname unless it is already in place.

        Returns:
            True if the hostname was changed, False if it already matched
        """
        target = self.config.hostname
        if socket.gethostname() == target:
            logger.debug("Hostname already set", hostname=target)
            return False

        logger.info(f"Setting hostname to '{target}'...")
        result = self.runner.run(["hostnamectl", "set-hostname", target])
        if result.returncode != 0:
            raise HostConfigurationError(
                f"Failed to set hostname to '{target}': {result.stderr.strip() or result.returncode}"
            )
        self.update_hosts_file()

        if not wait_until(
            lambda: socket.gethostname() == target,
            timeout=self.config.hostname_timeout,
            interval=self.config.poll_interval,
        ):
            logger.warning(f"Hostname change to '{target}' not yet visible, continuing")
        return True

    def update_hosts_file(self) -> None:
        """Point the loopback alias entry at the appliance hostname.

        Existing loopback-alias lines are removed first so the entry is never duplicated.
        """
        hosts_path = self.path_resolver.get_hosts_path()
        alias = self.config.loopback_alias
        lines = hosts_path.read_text().splitlines() if hosts_path.exists() else []
        kept = [line for line in lines if line.split()[:1] != [alias]]
        kept.append(f"{alias}\t{self.config.hostname}")
        hosts_path.parent.mkdir(parents=True, exist_ok=True)
        hosts_path.write_text("\n".join(kept) + "\n")

    # mDNS

    def configure_mdns(self) -> bool:
        """Publish the hostname over mDNS and restart the daemon.

        The daemon is restarted even when already running so it advertises the
        current hostname.

        Returns:
            True if the daemon was confirmed active
        """
        avahi_config = self.path_resolver.get_avahi_config_path()
        if avahi_config.exists():
            content = avahi_config.read_text()
            updated = _PUBLISH_HOSTNAME.sub("publish-hostname=yes", content)
            if updated != content:
                avahi_config.write_text(updated)

        service = self.config.mdns_service
        self.systemd.enable_service_best_effort(service)
        self.systemd.restart_service_best_effort(service)
        if self.systemd.wait_until_active(
            service, timeout=self.config.mdns_timeout, interval=self.config.poll_interval
        ):
            return True
        logger.warning(
            f"mDNS daemon ({service}) is not active; {self.config.mdns_name} may not resolve"
        )
        return False

    # Firewall

    def open_firewall(self) -> bool:
        """Allow mDNS through an active host firewall.

        Returns:
            True if a rule was added
        """
        if shutil.which("ufw") is None:
            logger.warning(
                f"No firewall tool (ufw) found; make sure UDP port {self.config.mdns_port} is open"
            )
            return False
        status = self.runner.run(["ufw", "status"])
        if "Status: active" not in status.stdout:
            return False
        return self.runner.run_best_effort(
            ["ufw", "allow", f"{self.config.mdns_port}/udp"], purpose="open mDNS port"
        )

    # Service override

    def write_port_override(self, request: InstallRequest) -> bool:
        """Inject a custom port into the management service through a drop-in.

        The base unit belongs to the release artifact and is never edited. With the
        default port any previously written drop-in is removed.

        Returns:
            True if a drop-in was written
        """
        override_path = self.path_resolver.get_service_override_path(
            self.config.management_service
        )
        if request.uses_default_port:
            override_path.unlink(missing_ok=True)
            return False

        template_path = self.path_resolver.get_template_file_path("service-override.conf.j2")
        rendered = Template(template_path.read_text()).render(
            environment={self.config.port_environment_variable: request.port}
        )
        override_path.parent.mkdir(parents=True, exist_ok=True)
        override_path.write_text(rendered)
        logger.info(f"Web server port set to {request.port}")
        return True

    # Accounts

    def provision_bootstrap_account(self) -> bool:
        """Ensure the appliance login account exists with its groups.

        Returns:
            True if the account was created by this run
        """
        user = self.config.bootstrap_user
        groups = ",".join(self.config.bootstrap_groups)
        created = False
        if not self.runner.succeeds(["id", "-u", user]):
            logger.info(f"Creating {user} user...")
            created = self.runner.run_best_effort(
                ["useradd", "-m", "-s", "/bin/bash", "-G", groups, user],
                purpose=f"create {user} account",
            )
            if created:
                self.runner.run_best_effort(
                    ["chpasswd"],
                    purpose=f"set {user} bootstrap password",
                    input_text=f"{user}:{self.config.bootstrap_password}\n",
                )
        self.runner.run_best_effort(
            ["usermod", "-aG", groups, user], purpose=f"add {user} to {groups}"
        )
        return created

    def grant_invoking_user_docker_access(self) -> bool:
        """Add the user who invoked sudo to the docker group.

        Returns:
            True if group membership was granted
        """
        invoking_user = os.environ.get("SUDO_USER", "")
        if not invoking_user or invoking_user == "root":
            return False
        group = self.config.docker_group
        granted = self.runner.run_best_effort(
            ["usermod", "-aG", group, invoking_user], purpose=f"add {invoking_user} to {group}"
        )
        if granted:
            logger.info(f"Added {invoking_user} to the {group} group (log in again to apply)")
        return granted
