import os
from pathlib import Path


class PathResolver:
    """Central authority for every host path the installer reads or writes.

    All paths hang off a single filesystem root, configurable through the
    WAIVEO_ROOT environment variable (default "/").
    """

    def __init__(self, root_dir: Path | None = None) -> None:
        """Initialize PathResolver with environment-based configuration."""
        self.root_dir = root_dir or Path(os.getenv("WAIVEO_ROOT", "/"))
        self.install_dir = self.root_dir / "opt" / "waiveo"
        self.bin_dir = self.root_dir / "usr" / "local" / "bin"
        self.systemd_dir = self.root_dir / "etc" / "systemd" / "system"

    def get_install_subdirs(self) -> list[Path]:
        """Get the directories the application expects under the install root."""
        return [self.install_dir / name for name in ("templates", "static", "backups")]

    def get_service_override_path(self, service_name: str) -> Path:
        """Get the drop-in fragment path used to customise a service.

        Args:
            service_name: Unit name (e.g., 'waiveo-management.service')

        Returns:
            Path to <systemd_dir>/<unit>.d/override.conf
        """
        return self.systemd_dir / f"{service_name}.d" / "override.conf"

    def get_hosts_path(self) -> Path:
        """Get the path to the static host table."""
        return self.root_dir / "etc" / "hosts"

    def get_avahi_config_path(self) -> Path:
        """Get the path to the mDNS daemon configuration."""
        return self.root_dir / "etc" / "avahi" / "avahi-daemon.conf"

    def get_os_release_path(self) -> Path:
        """Get the path to the standardized OS identity file."""
        return self.root_dir / "etc" / "os-release"

    def get_device_model_path(self) -> Path:
        """Get the path to the device-tree model description."""
        return self.root_dir / "proc" / "device-tree" / "model"

    def get_template_file_path(self, template_name: str) -> Path:
        """Get the path to a template shipped with the installer.

        Args:
            template_name: Name of the template file (e.g., 'service-override.conf.j2')

        Returns:
            Path to the template file
        """
        return Path(__file__).resolve().parent.parent / "config_templates" / template_name
