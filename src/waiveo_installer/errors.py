"""Error types raised by the installer stages.

Every stage raises a subclass of InstallError. The CLI is the only place that
catches them: it logs the message and exits with status 1.
"""


class InstallError(Exception):
    """Base class for fatal installation errors."""


class PrivilegeError(InstallError, PermissionError):
    """The installer is not running with administrative privilege."""


class UnsupportedArchitectureError(InstallError):
    """The kernel reports a machine type the release is not built for."""


class UnsupportedOsError(InstallError):
    """The OS identity cannot be read or is below the supported version floor."""


class InsufficientResourcesError(InstallError):
    """The host does not meet the minimum memory or disk requirements."""


class PackageInstallError(InstallError):
    """The package manager failed to refresh its index or install packages."""


class ContainerRuntimeInstallError(InstallError):
    """The container runtime could not be installed or started."""


class VersionResolutionError(InstallError):
    """The latest release tag could not be determined."""


class DownloadError(InstallError):
    """The release artifact could not be downloaded or extracted."""


class HostConfigurationError(InstallError):
    """A host-level configuration step failed."""


class ServiceActivationError(InstallError):
    """The persistent services could not be registered or started."""
