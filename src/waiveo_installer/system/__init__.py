"""System domain package.

This package contains the host-level provisioning components:
- PathResolver: Host path resolution
- CommandRunner: Subprocess execution with explicit best-effort semantics
- SystemdManager: Service control and readiness polling
- PreflightValidator: Host inspection (privilege, architecture, OS, resources)
- DependencyInstaller: OS packages and container runtime
- SystemConfigurator: Hostname, mDNS, firewall, service override, accounts
- ServiceActivator: Registration and start of the Waiveo services
"""
