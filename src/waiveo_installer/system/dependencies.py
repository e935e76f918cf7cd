import shutil
import tempfile
from contextlib import AbstractContextManager, nullcontext
from pathlib import Path

import httpx
import structlog

from waiveo_installer.config.models import InstallerConfig
from waiveo_installer.errors import ContainerRuntimeInstallError, PackageInstallError
from waiveo_installer.system.commands import CommandRunner
from waiveo_installer.system.systemd import SystemdManager

logger = structlog.get_logger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


class DependencyInstaller:
    """Ensures the OS packages and the container runtime are present."""

    def __init__(
        self,
        config: InstallerConfig,
        runner: CommandRunner,
        systemd: SystemdManager | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.config = config
        self.runner = runner
        self.systemd = systemd or SystemdManager(runner)
        self.http_client = http_client

    def _client(self) -> AbstractContextManager[httpx.Client]:
        if self.http_client is not None:
            return nullcontext(self.http_client)
        return httpx.Client(timeout=self.config.http_timeout)

    def missing_packages(self) -> list[str]:
        """Return the required packages dpkg does not report as installed."""
        missing = []
        for package in self.config.packages:
            result = self.runner.run(["dpkg-query", "-W", "-f=${Status}", package])
            if result.returncode != 0 or "install ok installed" not in result.stdout:
                missing.append(package)
        return missing

    def install_packages(self) -> None:
        """Refresh the package index and install any missing packages."""
        logger.info("Installing dependencies...")
        missing = self.missing_packages()

        result = self.runner.run(["apt-get", "update", "-qq"], env=APT_ENV)
        if result.returncode != 0:
            raise PackageInstallError(
                f"Failed to refresh package index: {result.stderr.strip() or result.returncode}"
            )

        if not missing:
            logger.info("Dependencies already installed", status="ok")
            return

        result = self.runner.run(["apt-get", "install", "-y", "-qq", *missing], env=APT_ENV)
        if result.returncode != 0:
            raise PackageInstallError(
                f"Failed to install packages ({', '.join(missing)}): "
                f"{result.stderr.strip() or result.returncode}"
            )
        logger.info("Dependencies installed", status="ok")

    def docker_version(self) -> str:
        """Return the installed Docker version, or 'unknown'."""
        result = self.runner.run(["docker", "--version"])
        # "Docker version 24.0.7, build afdd53b"
        parts = result.stdout.split()
        if result.returncode == 0 and len(parts) >= 3:
            return parts[2].rstrip(",")
        return "unknown"

    def ensure_container_runtime(self) -> None:
        """Install Docker if needed and make sure its service is running."""
        service = self.config.docker_service
        if shutil.which("docker"):
            logger.info(f"Docker already installed (version {self.docker_version()})", status="ok")
            if not self.systemd.is_active(service):
                logger.info("Starting Docker service...")
                if not self.systemd.start_service(service):
                    raise ContainerRuntimeInstallError("Failed to start the Docker service")
            return

        logger.info("Installing Docker...")
        self._run_upstream_install_script()
        if not self.systemd.enable_service(service):
            raise ContainerRuntimeInstallError("Failed to enable the Docker service")
        if not self.systemd.start_service(service):
            raise ContainerRuntimeInstallError("Failed to start the Docker service")
        logger.info("Docker installed successfully", status="ok")

    def _run_upstream_install_script(self) -> None:
        """Fetch the upstream convenience script and execute it."""
        url = self.config.docker_install_script_url
        with tempfile.TemporaryDirectory(prefix="waiveo-docker-") as temp_dir:
            script_path = Path(temp_dir) / "get-docker.sh"
            try:
                with self._client() as client:
                    response = client.get(url, follow_redirects=True)
                    response.raise_for_status()
            except httpx.HTTPError as e:
                raise ContainerRuntimeInstallError(
                    f"Failed to download Docker install script from {url}: {e}"
                ) from e
            script_path.write_text(response.text)

            result = self.runner.run(["sh", str(script_path)])
            if result.returncode != 0:
                raise ContainerRuntimeInstallError(
                    f"Docker install script failed: {result.stderr.strip() or result.returncode}"
                )
