import structlog

from waiveo_installer.system.commands import CommandRunner
from waiveo_installer.system.polling import wait_until

logger = structlog.get_logger(__name__)


class SystemdManager:
    """Service management for hosts running systemd."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def _systemctl(self, action: str, service_name: str = "") -> bool:
        """Run a systemctl action and report whether it succeeded."""
        cmd = ["systemctl", action]
        if service_name:
            cmd.append(service_name)
        return self.runner.run(cmd).returncode == 0

    def daemon_reload(self) -> bool:
        """Reload systemd daemon configuration."""
        return self._systemctl("daemon-reload")

    def start_service(self, service_name: str) -> bool:
        """Start a specified system service."""
        return self._systemctl("start", service_name)

    def restart_service(self, service_name: str) -> bool:
        """Restart a specified system service."""
        return self._systemctl("restart", service_name)

    def enable_service(self, service_name: str) -> bool:
        """Enable a specified system service to start on boot."""
        return self._systemctl("enable", service_name)

    def enable_service_best_effort(self, service_name: str) -> bool:
        """Enable a service, tolerating units that are not installed."""
        return self.runner.run_best_effort(
            ["systemctl", "enable", service_name], purpose=f"enable {service_name}"
        )

    def restart_service_best_effort(self, service_name: str) -> bool:
        """Restart a service, tolerating failure."""
        return self.runner.run_best_effort(
            ["systemctl", "restart", service_name], purpose=f"restart {service_name}"
        )

    def is_active(self, service_name: str) -> bool:
        """Return True if the service is currently active."""
        return self.runner.succeeds(["systemctl", "is-active", "--quiet", service_name])

    def wait_until_active(self, service_name: str, timeout: float, interval: float = 0.5) -> bool:
        """Poll the service state until it becomes active or the timeout elapses."""
        active = wait_until(lambda: self.is_active(service_name), timeout, interval)
        if not active:
            logger.debug("Service not active after waiting", service=service_name, timeout=timeout)
        return active
