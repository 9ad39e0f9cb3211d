"""Archive download, extraction and installation."""
import asyncio
import logging
import os
import shutil
import tarfile
import tempfile
import uuid
import zipfile
from pathlib import Path
from typing import Optional

import aiohttp

from collector_launcher.binaries.releases import client_session, stream_to_file
from collector_launcher.errors import BinaryNotFoundError, ExtractionError, NetworkError
from collector_launcher.logging import get_logger, log_with_data
from collector_launcher.types import ArchiveFormat, AssetInfo, BinarySpec, PlatformTarget

logger = get_logger(__name__)

EXECUTABLE_MODE = 0o755


async def download_file(
    url: str,
    dest: Path,
    session: Optional[aiohttp.ClientSession] = None,
) -> Path:
    """Download a file with streaming."""
    log_with_data(logger, logging.INFO, "Starting binary download", {
        "url": url,
        "destination": str(dest),
    })

    async with client_session(session) as http:
        size = await stream_to_file(http, url, dest)

    if size == 0:
        raise NetworkError(url, "downloaded archive is empty")

    log_with_data(logger, logging.INFO, "Binary download complete", {
        "url": url,
        "size": size,
    })
    return dest


def archive_format(name: str) -> ArchiveFormat:
    """Archive format from a file name; anything not .zip is a gzip tarball."""
    return ArchiveFormat.ZIP if name.endswith(".zip") else ArchiveFormat.TAR_GZ


def extract_archive(archive_path: Path, dest_dir: Path) -> Path:
    """Extract the whole archive into dest_dir."""
    format = archive_format(archive_path.name)
    logger.debug({"event": "extract_archive", "archive": str(archive_path), "format": format.value})

    try:
        if format is ArchiveFormat.ZIP:
            with zipfile.ZipFile(archive_path) as archive:
                archive.extractall(dest_dir)
        else:
            with tarfile.open(archive_path, "r:gz") as archive:
                if hasattr(tarfile, "data_filter"):
                    archive.extractall(dest_dir, filter="data")
                else:
                    archive.extractall(dest_dir)
    except (zipfile.BadZipFile, tarfile.TarError, EOFError, OSError) as e:
        raise ExtractionError(archive_path.name, str(e)) from e

    logger.info({
        "event": "archive_extracted",
        "archive": str(archive_path),
        "extracted_to": str(dest_dir),
    })
    return dest_dir


def find_file(start: Path, name: str) -> Optional[Path]:
    """Depth-first search for a non-directory entry called name."""
    if not start.is_dir():
        return None

    for entry in sorted(start.iterdir()):
        if entry.is_dir() and not entry.is_symlink():
            found = find_file(entry, name)
            if found:
                return found
        elif entry.name == name:
            return entry
    return None


def place_binary(found: Path, executable_path: Path, make_executable: bool) -> Path:
    """Move found onto executable_path via a staging name in the same directory."""
    executable_path.parent.mkdir(parents=True, exist_ok=True)
    staging = executable_path.with_name(f".{executable_path.name}.{uuid.uuid4().hex}.partial")
    try:
        shutil.move(str(found), str(staging))
        if make_executable:
            staging.chmod(EXECUTABLE_MODE)
        os.replace(staging, executable_path)
    finally:
        staging.unlink(missing_ok=True)
    return executable_path


async def install_binary(
    asset: AssetInfo,
    spec: BinarySpec,
    executable_path: Path,
    target: PlatformTarget,
    *,
    session: Optional[aiohttp.ClientSession] = None,
) -> Path:
    """Download asset, extract it and install the contained binary.

    Everything happens in a fresh temporary directory. The installed path
    only ever appears through a rename, so a failed download or extraction
    never leaves a partial file behind.
    """
    tmp_dir = Path(tempfile.mkdtemp(prefix="collector-launcher-"))
    archive_path = tmp_dir / asset.name

    try:
        logger.info(f"Downloading {asset.name}...")
        await download_file(asset.download_url, archive_path, session)

        logger.info(f"Extracting {asset.name}...")
        await asyncio.to_thread(extract_archive, archive_path, tmp_dir)

        name_to_find = target.executable(spec.archive_binary_name)
        found = find_file(tmp_dir, name_to_find)
        if found is None:
            contents = sorted(p.name for p in tmp_dir.iterdir())
            log_with_data(logger, logging.ERROR, "Binary not found in archive", {
                "archive": asset.name,
                "binary_name": name_to_find,
                "contents": contents,
            })
            raise BinaryNotFoundError(name_to_find, str(tmp_dir), contents)

        place_binary(found, executable_path, make_executable=not target.is_windows)
        log_with_data(logger, logging.INFO, "Binary installed", {
            "binary": spec.executable_name,
            "path": str(executable_path),
        })
        return executable_path
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)
        archive_path.unlink(missing_ok=True)
