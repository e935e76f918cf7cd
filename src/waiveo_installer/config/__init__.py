"""Waiveo installer configuration package.

This package provides:
- Static installer settings and the per-run InstallRequest
- Resolution of the request from flags, environment or prompts
"""

from .collector import CommandLineOverrides, ConfigurationCollector, EnvironmentDefaults
from .models import InstallerConfig, InstallRequest, LoggingConfig

__all__ = [
    "CommandLineOverrides",
    "ConfigurationCollector",
    "EnvironmentDefaults",
    "InstallRequest",
    "InstallerConfig",
    "LoggingConfig",
]
