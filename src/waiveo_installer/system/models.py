"""Host facts gathered during preflight."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class Architecture(StrEnum):
    """Release architectures the installer can provision."""

    X86_64 = "x86_64"
    ARM64 = "arm64"
    ARMV7 = "armv7"


class SystemProfile(BaseModel):
    """Read-only description of the host, computed once at startup."""

    model_config = ConfigDict(frozen=True)

    architecture: Architecture
    os_id: str
    os_version: str = ""
    is_raspberry_pi: bool = False
    memory_gb: int
    free_disk_gb: int
