import structlog

from waiveo_installer.config.models import InstallerConfig
from waiveo_installer.errors import ServiceActivationError
from waiveo_installer.system.systemd import SystemdManager

logger = structlog.get_logger(__name__)


class ServiceActivator:
    """Registers the Waiveo services and starts the management service."""

    def __init__(self, config: InstallerConfig, systemd: SystemdManager) -> None:
        self.config = config
        self.systemd = systemd

    def activate(self) -> None:
        """Reload units, enable both services and (re)start the management service.

        Enabling is best-effort because a constrained environment may lack one of the
        units. Failing to start the management service means the install is broken.
        After this call the management service runs with the current port override.
        """
        logger.info("Enabling services...")
        if not self.systemd.daemon_reload():
            raise ServiceActivationError("Failed to reload systemd unit files")

        for service in (self.config.management_service, self.config.application_service):
            self.systemd.enable_service_best_effort(service)

        if not self.systemd.restart_service(self.config.management_service):
            raise ServiceActivationError(f"Failed to start {self.config.management_service}")
        logger.info("Services enabled", status="ok")
