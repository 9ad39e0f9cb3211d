"""Binary provisioning: release lookup, asset selection, install and cache."""
from collector_launcher.binaries.assets import locate_asset, template_naming
from collector_launcher.binaries.cache import (
    CachePaths,
    ensure_binary,
    get_cached_binary,
    project_hash,
)
from collector_launcher.binaries.fetcher import install_binary
from collector_launcher.binaries.platforms import get_platform_target, platform_target
from collector_launcher.binaries.releases import resolve_latest_release

__all__ = [
    "resolve_latest_release",
    "locate_asset",
    "template_naming",
    "install_binary",
    "ensure_binary",
    "get_cached_binary",
    "project_hash",
    "CachePaths",
    "get_platform_target",
    "platform_target",
]
