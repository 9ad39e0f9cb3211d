import io
import logging
import stat
import sys
import tarfile
import uuid
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from collector_launcher.binaries.assets import template_naming
from collector_launcher.binaries.platforms import platform_target
from collector_launcher.types import BinarySpec


def make_tar_gz(path: Path, members: Dict[str, bytes]) -> Path:
    """Write a gzip tarball with the given member names and contents."""
    with tarfile.open(path, "w:gz") as tf:
        for name, content in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = 0o644
            tf.addfile(info, io.BytesIO(content))
    return path


def make_zip(path: Path, members: Dict[str, bytes]) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in members.items():
            zf.writestr(name, content)
    return path


def is_executable(path: Path) -> bool:
    return bool(path.stat().st_mode & stat.S_IXUSR)


class ReleaseServer:
    """Local stand-in for the releases API and asset downloads."""

    def __init__(self):
        self.base_url = ""
        self.release: Optional[Union[dict, str]] = None
        self.release_status = 200
        self.files: Dict[str, bytes] = {}
        self.requests: List[str] = []
        self.user_agents: List[str] = []

    def download_url(self, name: str) -> str:
        return f"{self.base_url}/download/{name}"

    def publish(self, tag: str, files: Dict[str, bytes]) -> dict:
        self.files.update(files)
        self.release = {
            "tag_name": tag,
            "assets": [
                {"name": name, "browser_download_url": self.download_url(name)}
                for name in files
            ],
        }
        return self.release

    async def latest(self, request: web.Request) -> web.Response:
        self.requests.append(request.path)
        self.user_agents.append(request.headers.get("User-Agent", ""))
        if isinstance(self.release, str):
            return web.Response(text=self.release, status=self.release_status)
        return web.json_response(self.release, status=self.release_status)

    async def download(self, request: web.Request) -> web.Response:
        self.requests.append(request.path)
        name = request.match_info["name"]
        if name not in self.files:
            return web.Response(status=404)
        return web.Response(body=self.files[name])


@pytest_asyncio.fixture
async def release_server():
    state = ReleaseServer()
    app = web.Application()
    app.router.add_get("/repos/{owner}/{name}/releases/latest", state.latest)
    app.router.add_get("/download/{name}", state.download)

    server = TestServer(app)
    await server.start_server()
    state.base_url = f"http://{server.host}:{server.port}"
    try:
        yield state
    finally:
        await server.close()


@pytest.fixture
def linux_amd64():
    return platform_target("Linux", "x86_64")


@pytest.fixture
def tool_spec():
    return BinarySpec(
        executable_name="tool",
        repo="acme/tool",
        asset_name=template_naming("tool_{version}_{platform}_{arch}.{ext}"),
    )


@pytest.fixture(autouse=True)
def reset_launcher_logging():
    """Drop handlers configure_logging() attached during a test."""
    yield
    logger = logging.getLogger("collector_launcher")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


FAKE_COLLECTOR = """#!{python}
import os
import re
import socket
import sys
import time

print("collector starting", flush=True)
print("collector warning", file=sys.stderr, flush=True)

if os.environ.get("FAKE_COLLECTOR_LISTEN") and "--config" in sys.argv:
    with open(sys.argv[sys.argv.index("--config") + 1]) as f:
        port = int(re.search(r"localhost:(\\d+)", f.read()).group(1))
    server = socket.socket()
    server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    server.bind(("127.0.0.1", port))
    server.listen()

time.sleep(float(os.environ.get("FAKE_COLLECTOR_LIFETIME", "30")))
"""


def fake_collector_script() -> bytes:
    return FAKE_COLLECTOR.format(python=sys.executable).encode()


@pytest.fixture
def fake_binary(tmp_path):
    """Executable stand-in for a collector, with a name no real process has."""
    path = tmp_path / f"fc-{uuid.uuid4().hex[:8]}"
    path.write_bytes(fake_collector_script())
    path.chmod(0o755)
    return path
