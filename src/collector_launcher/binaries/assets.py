"""Release asset selection."""
from collector_launcher.errors import AssetNotFoundError, NoAssetsPublishedError
from collector_launcher.logging import get_logger
from collector_launcher.types import AssetInfo, AssetNaming, PlatformTarget, ReleaseInfo

logger = get_logger(__name__)


def template_naming(template: str) -> AssetNaming:
    """Build an asset naming strategy from a str.format template.

    The template may reference {version}, {platform}, {arch} and {ext}.
    """
    def asset_name(version: str, platform: str, arch: str, ext: str) -> str:
        return template.format(version=version, platform=platform, arch=arch, ext=ext)

    return asset_name


def expected_asset_name(release: ReleaseInfo, target: PlatformTarget, naming: AssetNaming) -> str:
    return naming(release.version, target.os, target.arch, target.archive_ext.value)


def locate_asset(release: ReleaseInfo, target: PlatformTarget, naming: AssetNaming) -> AssetInfo:
    """Find the asset whose name exactly equals the expected archive name."""
    if not release.assets:
        raise NoAssetsPublishedError(release.tag_name)

    expected = expected_asset_name(release, target, naming)
    for asset in release.assets:
        if asset.name == expected:
            logger.debug({"event": "asset_located", "asset": asset.name, "url": asset.download_url})
            return asset

    raise AssetNotFoundError(
        expected,
        release.version,
        target.os,
        target.arch,
        release.asset_names,
    )
