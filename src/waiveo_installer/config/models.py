"""Configuration models for the Waiveo installer.

This module contains the Pydantic models describing what the installer does
(InstallerConfig) and what the operator asked for (InstallRequest).
"""

import os

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PORT = 80
DEFAULT_VERSION = "latest"


class LoggingConfig(BaseModel):
    """Structlog-based logging configuration."""

    level: str = "INFO"
    json_logs: bool = False

    @classmethod
    def from_environ(cls, environ: dict[str, str] | None = None) -> "LoggingConfig":
        """Build logging settings from WAIVEO_LOG_LEVEL and WAIVEO_JSON_LOGS."""
        env = os.environ if environ is None else environ
        return cls(
            level=env.get("WAIVEO_LOG_LEVEL", "INFO").upper(),
            json_logs=env.get("WAIVEO_JSON_LOGS", "false").strip().lower()
            in ("1", "true", "yes", "on"),
        )


class InstallRequest(BaseModel):
    """Installation parameters resolved by the configuration collector.

    Immutable once built; every stage receives the same instance.
    """

    model_config = ConfigDict(frozen=True)

    requested_version: str = DEFAULT_VERSION  # "latest" or an explicit tag
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    set_hostname: bool = False
    interactive: bool = False

    @property
    def uses_default_port(self) -> bool:
        """Whether the management service keeps its stock port."""
        return self.port == DEFAULT_PORT


class InstallerConfig(BaseModel):
    """Static settings for a provisioning run."""

    # Release source
    github_repo: str = "maaxton/waiveo-host-releases"
    artifact_name: str = "waiveo-cli.tar.gz"

    # Host identity
    hostname: str = "waiveo"
    loopback_alias: str = "127.0.1.1"

    # Bootstrap account used on Raspberry Pi appliances
    bootstrap_user: str = "waiveo"
    bootstrap_password: str = Field(
        default_factory=lambda: os.environ.get(
            "WAIVEO_BOOTSTRAP_PASSWORD", "TemporaryBootstrapPassword123!"
        )
    )
    bootstrap_groups: list[str] = Field(default_factory=lambda: ["sudo", "docker"])

    # OS packages installed before the container runtime
    packages: list[str] = Field(
        default_factory=lambda: [
            "curl",
            "ca-certificates",
            "gnupg",
            "avahi-daemon",
            "avahi-utils",
            "python3",
        ]
    )

    # Container runtime
    docker_install_script_url: str = "https://get.docker.com"
    docker_service: str = "docker"
    docker_group: str = "docker"

    # Services
    management_service: str = "waiveo-management.service"
    application_service: str = "waiveo.service"
    mdns_service: str = "avahi-daemon"
    mdns_port: int = 5353
    port_environment_variable: str = "WAIVEO_PORT"

    # Bounded readiness polling (seconds)
    hostname_timeout: float = 5.0
    mdns_timeout: float = 10.0
    poll_interval: float = 0.5

    # HTTP timeouts (seconds)
    http_timeout: float = 30.0
    download_timeout: float = 600.0

    @property
    def releases_url(self) -> str:
        """Base URL of the release index."""
        return f"https://github.com/{self.github_repo}/releases"

    @property
    def mdns_name(self) -> str:
        """Name the host is advertised under on the local network."""
        return f"{self.hostname}.local"
