"""Latest release lookup against the GitHub releases API."""
import asyncio
import json
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Optional

import aiohttp

from collector_launcher.constants import (
    DOWNLOAD_CHUNK_SIZE,
    GITHUB_API_BASE,
    GITHUB_REPOS_PATH,
    LATEST_PATH,
    RELEASES_PATH,
    USER_AGENT,
)
from collector_launcher.errors import (
    EmptyResponseError,
    MalformedResponseError,
    NetworkError,
    NoReleaseTagError,
)
from collector_launcher.logging import get_logger
from collector_launcher.types import AssetInfo, ReleaseInfo

logger = get_logger(__name__)


def latest_release_url(repo: str, api_base: str = GITHUB_API_BASE) -> str:
    return f"{api_base}/{GITHUB_REPOS_PATH}/{repo}/{RELEASES_PATH}/{LATEST_PATH}"


@asynccontextmanager
async def client_session(
    session: Optional[aiohttp.ClientSession] = None,
) -> AsyncIterator[aiohttp.ClientSession]:
    """Reuse the caller's session or open a short-lived one."""
    if session is not None:
        yield session
        return
    async with aiohttp.ClientSession(headers={"User-Agent": USER_AGENT}) as owned:
        yield owned


async def stream_to_file(
    session: aiohttp.ClientSession, url: str, dest: Path
) -> int:
    """Stream a GET response body into dest and return the byte count."""
    downloaded = 0
    try:
        async with session.get(url, headers={"User-Agent": USER_AGENT}) as response:
            if response.status != 200:
                raise NetworkError(url, f"HTTP {response.status} {response.reason}", response.status)

            with open(dest, "wb") as f:
                while chunk := await response.content.read(DOWNLOAD_CHUNK_SIZE):
                    f.write(chunk)
                    downloaded += len(chunk)
    except asyncio.TimeoutError as e:
        raise NetworkError(url, "request timed out") from e
    except aiohttp.ClientError as e:
        raise NetworkError(url, str(e), getattr(e, "status", None)) from e

    return downloaded


def parse_release(repo: str, data: Any) -> ReleaseInfo:
    """Build a ReleaseInfo from a decoded releases/latest document."""
    if not isinstance(data, dict) or not data.get("tag_name"):
        raise NoReleaseTagError(repo, data)

    raw_assets = data.get("assets")
    assets = None
    if isinstance(raw_assets, list):
        assets = tuple(
            AssetInfo(name=a["name"], download_url=a.get("browser_download_url", ""))
            for a in raw_assets
            if isinstance(a, dict) and a.get("name")
        )

    return ReleaseInfo(tag_name=str(data["tag_name"]), assets=assets)


async def resolve_latest_release(
    repo: str,
    *,
    session: Optional[aiohttp.ClientSession] = None,
    api_base: str = GITHUB_API_BASE,
) -> ReleaseInfo:
    """Fetch the latest published release of an owner/name repository.

    The response body is staged in a scratch file which is removed on every
    exit path.

    Raises:
        NetworkError: the request failed or returned a non-200 status
        EmptyResponseError: the body was empty
        MalformedResponseError: the body was not JSON
        NoReleaseTagError: the document has no tag_name
    """
    url = latest_release_url(repo, api_base)
    logger.info({"event": "resolving_latest_release", "repo": repo, "url": url})

    fd, scratch = tempfile.mkstemp(prefix="collector-launcher-release-", suffix=".json")
    os.close(fd)
    scratch_path = Path(scratch)
    try:
        async with client_session(session) as http:
            await stream_to_file(http, url, scratch_path)

        content = scratch_path.read_text(encoding="utf-8", errors="replace")
    finally:
        scratch_path.unlink(missing_ok=True)

    if not content.strip():
        raise EmptyResponseError(url)

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error({"event": "release_parse_failed", "url": url, "content": content[:500]})
        raise MalformedResponseError(url, content) from e

    release = parse_release(repo, data)
    logger.info({
        "event": "release_resolved",
        "repo": repo,
        "tag": release.tag_name,
        "assets": len(release.assets or ()),
    })
    return release
