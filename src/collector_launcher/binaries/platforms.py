"""Platform detection and mapping."""
import platform
from typing import Optional

from collector_launcher.types import ArchiveFormat, PlatformTarget

# platform.system() -> release os name
OS_MAPPINGS = {
    "Linux": "linux",
    "Darwin": "darwin",
    "Windows": "windows",
}

# platform.machine() -> release arch name
ARCH_MAPPINGS = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def platform_target(system: str, machine: str) -> PlatformTarget:
    """Map a system/machine pair onto release naming coordinates."""
    os_name = OS_MAPPINGS.get(system, system.lower())
    machine = machine.lower()
    arch = ARCH_MAPPINGS.get(machine, machine)
    archive_ext = ArchiveFormat.ZIP if os_name == "windows" else ArchiveFormat.TAR_GZ
    return PlatformTarget(os=os_name, arch=arch, archive_ext=archive_ext)


def get_platform_target(system: Optional[str] = None, machine: Optional[str] = None) -> PlatformTarget:
    """Get current platform information."""
    return platform_target(system or platform.system(), machine or platform.machine())
