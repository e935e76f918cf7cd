"""Subprocess execution for the provisioning stages.

Stages never call subprocess directly. They go through CommandRunner so that
"this failure is fatal" and "this failure is tolerated" read differently at
the call site, and so tests can substitute a single collaborator.
"""

import os
import subprocess

import structlog

logger = structlog.get_logger(__name__)

COMMAND_NOT_FOUND = 127


class CommandRunner:
    """Runs host commands and reports their outcome without raising."""

    def __init__(self, extra_env: dict[str, str] | None = None) -> None:
        self.extra_env = extra_env or {}

    def run(
        self,
        cmd: list[str],
        input_text: str | None = None,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess:
        """Run a command and capture its output.

        A missing executable is reported as return code 127 instead of an exception.

        Args:
            cmd: Command and arguments
            input_text: Optional text fed to stdin (stdin is closed otherwise)
            env: Extra environment variables for this command only

        Returns:
            The completed process with text stdout/stderr
        """
        logger.debug("Running command", cmd=cmd)
        try:
            result = subprocess.run(
                cmd,
                input=input_text,
                stdin=None if input_text is not None else subprocess.DEVNULL,
                capture_output=True,
                text=True,
                check=False,
                env={**os.environ, **self.extra_env, **(env or {})},
            )
        except FileNotFoundError:
            logger.debug("Command not found", cmd=cmd)
            return subprocess.CompletedProcess(
                cmd, COMMAND_NOT_FOUND, stdout="", stderr=f"{cmd[0]}: command not found"
            )
        if result.returncode != 0:
            logger.debug(
                "Command failed",
                cmd=cmd,
                returncode=result.returncode,
                stderr=result.stderr.strip(),
            )
        return result

    def succeeds(self, cmd: list[str]) -> bool:
        """Return True when the command exits with status 0."""
        return self.run(cmd).returncode == 0

    def run_best_effort(self, cmd: list[str], purpose: str, input_text: str | None = None) -> bool:
        """Run a command whose failure is tolerated.

        Used for steps that may legitimately fail on a healthy host, such as enabling
        a unit that a constrained environment does not ship or creating an account
        that already exists.

        Args:
            cmd: Command and arguments
            purpose: Short description logged when the command fails
            input_text: Optional text fed to stdin

        Returns:
            True if the command succeeded, False otherwise
        """
        result = self.run(cmd, input_text=input_text)
        if result.returncode != 0:
            logger.debug(
                "Best-effort step did not succeed",
                purpose=purpose,
                returncode=result.returncode,
            )
            return False
        return True
