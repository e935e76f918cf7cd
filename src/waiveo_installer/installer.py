"""Waiveo Host provisioning sequence.

Stages run strictly in order and each one's success is a precondition for the
next. A stage signals failure by raising an InstallError; nothing is rolled back.
"""

import structlog

from waiveo_installer.config.collector import CommandLineOverrides, ConfigurationCollector
from waiveo_installer.config.models import InstallerConfig, InstallRequest
from waiveo_installer.releases.release_fetcher import ReleaseArtifact, ReleaseFetcher
from waiveo_installer.reporting import Reporter
from waiveo_installer.system.activator import ServiceActivator
from waiveo_installer.system.commands import CommandRunner
from waiveo_installer.system.configurator import SystemConfigurator
from waiveo_installer.system.dependencies import DependencyInstaller
from waiveo_installer.system.models import SystemProfile
from waiveo_installer.system.path_resolver import PathResolver
from waiveo_installer.system.preflight import PreflightValidator
from waiveo_installer.system.systemd import SystemdManager

logger = structlog.get_logger(__name__)


class Installer:
    """Runs the provisioning stages against one host."""

    def __init__(
        self,
        config: InstallerConfig,
        path_resolver: PathResolver,
        runner: CommandRunner | None = None,
        preflight: PreflightValidator | None = None,
        dependencies: DependencyInstaller | None = None,
        collector: ConfigurationCollector | None = None,
        fetcher: ReleaseFetcher | None = None,
        configurator: SystemConfigurator | None = None,
        activator: ServiceActivator | None = None,
        reporter: Reporter | None = None,
    ) -> None:
        runner = runner or CommandRunner()
        systemd = SystemdManager(runner)
        self.config = config
        self.preflight = preflight or PreflightValidator(path_resolver)
        self.dependencies = dependencies or DependencyInstaller(config, runner, systemd)
        self.collector = collector or ConfigurationCollector(config)
        self.fetcher = fetcher or ReleaseFetcher(config, path_resolver)
        self.configurator = configurator or SystemConfigurator(
            config, path_resolver, runner, systemd
        )
        self.activator = activator or ServiceActivator(config, systemd)
        self.reporter = reporter or Reporter(config)

    def run(self, overrides: CommandLineOverrides) -> tuple[InstallRequest, SystemProfile]:
        """Provision the host.

        Args:
            overrides: Flags supplied on the command line

        Returns:
            Tuple of (request, profile) the run was performed with
        """
        self.reporter.print_banner()

        profile = self.preflight.inspect()
        self.reporter.print_system_profile(profile)

        self.dependencies.install_packages()
        self.dependencies.ensure_container_runtime()

        request = self.collector.collect(overrides)

        artifact = self.fetch_release(request, profile)
        logger.debug("Release installed", version=artifact.version, url=artifact.download_url)

        self.configurator.configure(request, profile)
        self.activator.activate()

        self.reporter.print_complete(request, profile)
        return request, profile

    def fetch_release(self, request: InstallRequest, profile: SystemProfile) -> ReleaseArtifact:
        """Resolve the requested version and install its artifact."""
        version = self.fetcher.resolve_version(request.requested_version)
        logger.info(f"Installing version: {version}")
        return self.fetcher.download_release(version, profile.architecture)
