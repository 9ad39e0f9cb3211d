"""Per-project binary cache."""
import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import aiohttp

from collector_launcher.binaries.assets import locate_asset
from collector_launcher.binaries.fetcher import install_binary
from collector_launcher.binaries.platforms import get_platform_target
from collector_launcher.binaries.releases import client_session, resolve_latest_release
from collector_launcher.constants import (
    BIN_SUBDIR,
    CACHE_SUBDIR,
    COLLECTOR_CONFIG_FILE,
    COLLECTOR_LOG_FILE,
    GITHUB_API_BASE,
)
from collector_launcher.logging import get_logger
from collector_launcher.types import BinarySpec, PlatformTarget

logger = get_logger(__name__)


def project_hash(project_root: Path) -> str:
    """Stable identifier for a working directory.

    Different projects get isolated cache directories.
    """
    return hashlib.sha256(str(project_root).encode()).hexdigest()


@dataclass(frozen=True)
class CachePaths:
    """Filesystem layout of one project's cache"""
    root: Path

    @classmethod
    def for_project(cls, base_dir: Path, project_root: Path) -> "CachePaths":
        return cls(root=base_dir / "tmp" / project_hash(project_root) / CACHE_SUBDIR)

    @property
    def bin_dir(self) -> Path:
        return self.root / BIN_SUBDIR

    @property
    def log_file(self) -> Path:
        return self.root / COLLECTOR_LOG_FILE

    @property
    def config_file(self) -> Path:
        return self.root / COLLECTOR_CONFIG_FILE


def get_binary_path(spec: BinarySpec, bin_dir: Path, target: PlatformTarget) -> Path:
    return bin_dir / target.executable(spec.executable_name)


def get_cached_binary(spec: BinarySpec, bin_dir: Path, target: PlatformTarget) -> Optional[Path]:
    """Cached binary path if it exists. No version or integrity check is made."""
    path = get_binary_path(spec, bin_dir, target)
    return path if path.exists() else None


async def ensure_binary(
    spec: BinarySpec,
    bin_dir: Path,
    *,
    target: Optional[PlatformTarget] = None,
    session: Optional[aiohttp.ClientSession] = None,
    api_base: str = GITHUB_API_BASE,
) -> Path:
    """Ensure a binary is available, downloading the latest release on a miss."""
    target = target or get_platform_target()

    cached = get_cached_binary(spec, bin_dir, target)
    if cached:
        logger.info(f"{spec.executable_name} already exists at {cached}")
        return cached

    logger.info(f"{spec.executable_name} not found. Downloading from {spec.repo}...")

    async with client_session(session) as http:
        release = await resolve_latest_release(spec.repo, session=http, api_base=api_base)
        asset = locate_asset(release, target, spec.asset_name)
        return await install_binary(
            asset,
            spec,
            get_binary_path(spec, bin_dir, target),
            target,
            session=http,
        )
