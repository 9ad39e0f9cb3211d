import hashlib
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from collector_launcher.binaries.cache import (
    CachePaths,
    ensure_binary,
    get_binary_path,
    get_cached_binary,
    project_hash,
)
from collector_launcher.binaries.platforms import platform_target
from collector_launcher.errors import NoAssetsPublishedError

from conftest import is_executable, make_tar_gz


def test_project_hash():
    """Test hashing is stable and distinguishes projects"""
    assert project_hash(Path("/work/a")) == hashlib.sha256(b"/work/a").hexdigest()
    assert project_hash(Path("/work/a")) == project_hash(Path("/work/a"))
    assert project_hash(Path("/work/a")) != project_hash(Path("/work/b"))


def test_cache_paths_layout(tmp_path):
    """Test the on-disk layout other tooling relies on"""
    paths = CachePaths.for_project(tmp_path / ".gemini", Path("/work/a"))
    root = tmp_path / ".gemini" / "tmp" / project_hash(Path("/work/a")) / "otel"

    assert paths.root == root
    assert paths.bin_dir == root / "bin"
    assert paths.log_file == root / "collector-gcp.log"
    assert paths.config_file == root / "collector-gcp.yaml"


def test_binary_path_gets_exe_on_windows(tmp_path, tool_spec):
    assert get_binary_path(tool_spec, tmp_path, platform_target("Windows", "AMD64")).name == "tool.exe"
    assert get_binary_path(tool_spec, tmp_path, platform_target("Linux", "x86_64")).name == "tool"


def test_cached_binary_is_existence_only(tmp_path, tool_spec, linux_amd64):
    """Test any file at the path counts as installed"""
    assert get_cached_binary(tool_spec, tmp_path, linux_amd64) is None
    (tmp_path / "tool").write_bytes(b"")
    assert get_cached_binary(tool_spec, tmp_path, linux_amd64) == tmp_path / "tool"


@pytest.mark.asyncio
async def test_ensure_binary_cache_hit_skips_network(tmp_path, tool_spec, linux_amd64):
    """Test a cached binary is returned without resolving releases"""
    (tmp_path / "tool").write_bytes(b"stale but trusted")

    with patch(
        "collector_launcher.binaries.cache.resolve_latest_release", new_callable=AsyncMock
    ) as resolve:
        path = await ensure_binary(tool_spec, tmp_path, target=linux_amd64)

    assert path == tmp_path / "tool"
    assert path.read_bytes() == b"stale but trusted"
    resolve.assert_not_called()


@pytest.mark.asyncio
async def test_ensure_binary_end_to_end(tmp_path, release_server, tool_spec, linux_amd64):
    """Test resolve, locate and install against a fake release"""
    name = "tool_1.2.3_linux_amd64.tar.gz"
    release_server.publish("v1.2.3", {
        name: make_tar_gz(tmp_path / name, {"tool_1.2.3/tool": b"binary"}).read_bytes(),
    })
    bin_dir = tmp_path / "cache" / "bin"

    path = await ensure_binary(tool_spec, bin_dir, target=linux_amd64, api_base=release_server.base_url)

    assert path == bin_dir / "tool"
    assert path.read_bytes() == b"binary"
    assert is_executable(path)
    assert release_server.requests == [
        "/repos/acme/tool/releases/latest",
        f"/download/{name}",
    ]


@pytest.mark.asyncio
async def test_ensure_binary_twice_hits_network_once(tmp_path, release_server, tool_spec, linux_amd64):
    """Test the second call is served from the cache"""
    name = "tool_1.2.3_linux_amd64.tar.gz"
    release_server.publish("v1.2.3", {
        name: make_tar_gz(tmp_path / name, {"tool": b"binary"}).read_bytes(),
    })
    bin_dir = tmp_path / "bin"

    first = await ensure_binary(tool_spec, bin_dir, target=linux_amd64, api_base=release_server.base_url)
    requests_after_first = list(release_server.requests)
    second = await ensure_binary(tool_spec, bin_dir, target=linux_amd64, api_base=release_server.base_url)

    assert first == second
    assert release_server.requests == requests_after_first
    assert len(requests_after_first) == 2


@pytest.mark.asyncio
async def test_ensure_binary_no_assets_never_downloads(tmp_path, release_server, tool_spec, linux_amd64):
    """Test an asset-less release fails before any download"""
    release_server.release = {"tag_name": "v1.2.3", "assets": []}

    with pytest.raises(NoAssetsPublishedError):
        await ensure_binary(tool_spec, tmp_path / "bin", target=linux_amd64, api_base=release_server.base_url)

    assert release_server.requests == ["/repos/acme/tool/releases/latest"]
    assert not (tmp_path / "bin" / "tool").exists()
