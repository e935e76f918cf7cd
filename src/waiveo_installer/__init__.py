"""Provisioning installer for the Waiveo Host appliance."""

__version__ = "0.1.0"
