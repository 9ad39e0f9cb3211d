"""Core type definitions"""

import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Tuple

# (version, platform, arch, ext) -> asset file name
AssetNaming = Callable[[str, str, str, str], str]


class ArchiveFormat(str, Enum):
    TAR_GZ = "tar.gz"
    ZIP = "zip"


@dataclass(frozen=True)
class AssetInfo:
    """One downloadable file attached to a release"""
    name: str
    download_url: str


@dataclass(frozen=True)
class ReleaseInfo:
    """A published release and its assets"""
    tag_name: str
    assets: Optional[Tuple[AssetInfo, ...]]

    @property
    def version(self) -> str:
        return self.tag_name[1:] if self.tag_name.startswith("v") else self.tag_name

    @property
    def asset_names(self) -> list[str]:
        return [asset.name for asset in self.assets or ()]


@dataclass(frozen=True)
class PlatformTarget:
    """Release naming coordinates of the running host"""
    os: str
    arch: str
    archive_ext: ArchiveFormat

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    def executable(self, name: str) -> str:
        return f"{name}.exe" if self.is_windows else name


@dataclass(frozen=True)
class BinarySpec:
    """What to fetch and how its release assets are named"""
    executable_name: str
    repo: str
    asset_name: AssetNaming
    binary_in_archive: Optional[str] = None

    @property
    def archive_binary_name(self) -> str:
        return self.binary_in_archive or self.executable_name


@dataclass
class ManagedProcess:
    """A spawned long-running binary and its log descriptor"""
    pid: int
    log_fd: int
    command: Tuple[str, ...]
    log_path: Path
    popen: Optional[subprocess.Popen] = field(default=None, repr=False, compare=False)

    @property
    def name(self) -> str:
        return Path(self.command[0]).name
