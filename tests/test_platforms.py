import pytest

from collector_launcher.binaries.platforms import get_platform_target, platform_target
from collector_launcher.types import ArchiveFormat


@pytest.mark.parametrize(
    "system,machine,os_name,arch",
    [
        ("Linux", "x86_64", "linux", "amd64"),
        ("Linux", "aarch64", "linux", "arm64"),
        ("Darwin", "arm64", "darwin", "arm64"),
        ("Darwin", "x86_64", "darwin", "amd64"),
        ("Windows", "AMD64", "windows", "amd64"),
        ("Windows", "ARM64", "windows", "arm64"),
        ("FreeBSD", "amd64", "freebsd", "amd64"),
    ],
)
def test_platform_target_mapping(system, machine, os_name, arch):
    """Test host names map onto release naming"""
    target = platform_target(system, machine)
    assert target.os == os_name
    assert target.arch == arch


@pytest.mark.parametrize("system", ["Linux", "Darwin", "Windows", "FreeBSD"])
@pytest.mark.parametrize("machine", ["x86_64", "aarch64", "arm64", "riscv64"])
def test_zip_only_on_windows(system, machine):
    """Test archive extension is zip iff the platform is windows"""
    target = platform_target(system, machine)
    expected = ArchiveFormat.ZIP if target.os == "windows" else ArchiveFormat.TAR_GZ
    assert target.archive_ext is expected


def test_unknown_arch_passes_through():
    """Test unmapped machines are lowercased, not rejected"""
    assert platform_target("Linux", "PPC64LE").arch == "ppc64le"


def test_windows_executable_suffix():
    """Test only windows binaries gain .exe"""
    assert platform_target("Windows", "AMD64").executable("tool") == "tool.exe"
    assert platform_target("Linux", "x86_64").executable("tool") == "tool"


def test_get_platform_target_uses_host(monkeypatch):
    """Test host detection goes through the platform module"""
    monkeypatch.setattr("platform.system", lambda: "Darwin")
    monkeypatch.setattr("platform.machine", lambda: "arm64")

    target = get_platform_target()
    assert (target.os, target.arch, target.archive_ext) == ("darwin", "arm64", ArchiveFormat.TAR_GZ)
