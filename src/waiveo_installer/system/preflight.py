"""Preflight inspection of the host.

Checks run in a fixed order and the first failure aborts the run:
privilege, architecture, OS identity, appliance detection, resources.
Nothing here modifies the host.
"""

import os
import platform
import re

import psutil
import structlog

from waiveo_installer.errors import (
    InsufficientResourcesError,
    PrivilegeError,
    UnsupportedArchitectureError,
    UnsupportedOsError,
)
from waiveo_installer.system.models import Architecture, SystemProfile
from waiveo_installer.system.path_resolver import PathResolver

logger = structlog.get_logger(__name__)

ARCHITECTURE_ALIASES = {
    "x86_64": Architecture.X86_64,
    "amd64": Architecture.X86_64,
    "aarch64": Architecture.ARM64,
    "arm64": Architecture.ARM64,
    "armv7l": Architecture.ARMV7,
}

# Distribution ID -> (display name, minimum major version)
VERSION_FLOORS = {
    "ubuntu": ("Ubuntu", 20),
    "debian": ("Debian", 11),
}
# Accepted without a version check
UNVERSIONED_DISTRIBUTIONS = {"raspbian"}

MIN_MEMORY_GB = 2
RECOMMENDED_MEMORY_GB = 4
MIN_FREE_DISK_GB = 5

GIB = 1024**3


def parse_os_release(text: str) -> dict[str, str]:
    """Parse os-release KEY=value lines, stripping surrounding quotes."""
    fields = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        fields[key.strip()] = value.strip().strip("\"'")
    return fields


def major_version(version_id: str) -> int | None:
    """Return the leading integer of a version string (e.g. '20.04' -> 20)."""
    match = re.match(r"\s*(\d+)", version_id)
    return int(match.group(1)) if match else None


class PreflightValidator:
    """Inspects the host and produces a SystemProfile, or fails fast."""

    def __init__(self, path_resolver: PathResolver) -> None:
        self.path_resolver = path_resolver

    def check_privilege(self) -> None:
        """Raise PrivilegeError unless running as root."""
        if os.geteuid() != 0:
            raise PrivilegeError("This installer must be run as root. Use: sudo waiveo-install")

    def detect_architecture(self) -> Architecture:
        """Map the kernel machine type to a release architecture."""
        machine = platform.machine()
        architecture = ARCHITECTURE_ALIASES.get(machine.lower())
        if architecture is None:
            raise UnsupportedArchitectureError(f"Unsupported architecture: {machine}")
        if architecture is Architecture.ARMV7:
            logger.warning("32-bit ARM detected. Performance may be limited.")
        return architecture

    def detect_os(self) -> tuple[str, str]:
        """Identify the distribution and enforce its version floor.

        Returns:
            Tuple of (os_id, version_id)
        """
        os_release = self.path_resolver.get_os_release_path()
        try:
            fields = parse_os_release(os_release.read_text())
        except FileNotFoundError as e:
            raise UnsupportedOsError(f"Cannot detect OS. {os_release} not found.") from e

        os_id = fields.get("ID", "").lower()
        version_id = fields.get("VERSION_ID", "")

        if os_id in VERSION_FLOORS:
            name, floor = VERSION_FLOORS[os_id]
            major = major_version(version_id)
            if major is None or major < floor:
                raise UnsupportedOsError(
                    f"{name} {floor} or later required. Found: {version_id or 'unknown'}"
                )
        elif os_id not in UNVERSIONED_DISTRIBUTIONS:
            logger.warning(
                f"Unsupported OS: {os_id or 'unknown'}. "
                "Proceeding anyway, but may encounter issues."
            )
        return os_id, version_id

    def is_raspberry_pi(self) -> bool:
        """Check the device-tree model for a Raspberry Pi marker."""
        model_path = self.path_resolver.get_device_model_path()
        try:
            model = model_path.read_text(errors="ignore").strip("\x00")
        except OSError:
            return False
        return "raspberry pi" in model.lower()

    def check_resources(self) -> tuple[int, int]:
        """Check memory and free disk space against the minimums.

        Free space is measured on the filesystem holding the install root.

        Returns:
            Tuple of (memory_gb, free_disk_gb), both floored to whole GB
        """
        logger.info("Checking system requirements...")
        memory_gb = psutil.virtual_memory().total // GIB
        if memory_gb < MIN_MEMORY_GB:
            raise InsufficientResourcesError(
                f"Minimum {MIN_MEMORY_GB}GB RAM required. Found: {memory_gb}GB"
            )
        if memory_gb < RECOMMENDED_MEMORY_GB:
            logger.warning(
                f"{RECOMMENDED_MEMORY_GB}GB+ RAM recommended for best performance. "
                f"Found: {memory_gb}GB"
            )

        free_disk_gb = psutil.disk_usage(str(self.path_resolver.root_dir)).free // GIB
        if free_disk_gb < MIN_FREE_DISK_GB:
            raise InsufficientResourcesError(
                f"Minimum {MIN_FREE_DISK_GB}GB free disk space required. Found: {free_disk_gb}GB"
            )

        logger.info(
            f"System requirements met (RAM: {memory_gb}GB, Disk: {free_disk_gb}GB free)",
            status="ok",
        )
        return memory_gb, free_disk_gb

    def inspect(self) -> SystemProfile:
        """Run every preflight check in order and build the host profile."""
        self.check_privilege()
        architecture = self.detect_architecture()
        os_id, os_version = self.detect_os()
        is_pi = self.is_raspberry_pi()
        memory_gb, free_disk_gb = self.check_resources()
        return SystemProfile(
            architecture=architecture,
            os_id=os_id,
            os_version=os_version,
            is_raspberry_pi=is_pi,
            memory_gb=memory_gb,
            free_disk_gb=free_disk_gb,
        )
