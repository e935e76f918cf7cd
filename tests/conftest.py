import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import structlog

from waiveo_installer.config.models import InstallerConfig, InstallRequest
from waiveo_installer.system.commands import CommandRunner
from waiveo_installer.system.models import Architecture, SystemProfile
from waiveo_installer.system.path_resolver import PathResolver


def completed(
    returncode: int = 0, stdout: str = "", stderr: str = ""
) -> subprocess.CompletedProcess:
    """Build a CompletedProcess as returned by CommandRunner.run."""
    return subprocess.CompletedProcess(
        args=[], returncode=returncode, stdout=stdout, stderr=stderr
    )


@pytest.fixture
def make_completed():
    """Provide a factory for CompletedProcess results."""
    return completed


@pytest.fixture(autouse=True)
def reset_structlog():
    """Restore structlog defaults so log capture works in every test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def path_resolver(tmp_path: Path) -> PathResolver:
    """Provide a PathResolver rooted in a temporary directory.

    Every host file the installer touches (hosts, avahi config, systemd units,
    /opt/waiveo) lives under tmp_path/root.
    """
    root = tmp_path / "root"
    root.mkdir()
    return PathResolver(root_dir=root)


@pytest.fixture
def installer_config() -> InstallerConfig:
    """Provide installer settings with readiness waits shortened for tests."""
    return InstallerConfig(
        bootstrap_password="TemporaryBootstrapPassword123!",
        hostname_timeout=0.0,
        mdns_timeout=0.0,
        poll_interval=0.0,
    )


@pytest.fixture
def mock_runner() -> MagicMock:
    """Provide a CommandRunner whose commands all succeed with no output."""
    runner = MagicMock(spec=CommandRunner)
    runner.run.return_value = completed()
    runner.succeeds.return_value = True
    runner.run_best_effort.return_value = True
    return runner


@pytest.fixture
def host_profile() -> SystemProfile:
    """Provide a profile for a generic x86_64 Debian server."""
    return SystemProfile(
        architecture=Architecture.X86_64,
        os_id="debian",
        os_version="12",
        is_raspberry_pi=False,
        memory_gb=8,
        free_disk_gb=50,
    )


@pytest.fixture
def pi_profile() -> SystemProfile:
    """Provide a profile for a Raspberry Pi running Raspberry Pi OS."""
    return SystemProfile(
        architecture=Architecture.ARM64,
        os_id="raspbian",
        os_version="12",
        is_raspberry_pi=True,
        memory_gb=4,
        free_disk_gb=20,
    )


@pytest.fixture
def default_request() -> InstallRequest:
    """Provide a non-interactive request with every default."""
    return InstallRequest()
