"""Managed process spawning and bookkeeping."""

import os
import subprocess
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import psutil

from collector_launcher.errors import SpawnError
from collector_launcher.logging import get_logger
from collector_launcher.types import ManagedProcess

logger = get_logger(__name__)

LOG_FILE_MODE = 0o644
STOP_TIMEOUT = 5.0


class ProcessRegistry:
    """Processes and descriptors owned by one run, read back at teardown."""

    def __init__(self):
        self._processes: List[ManagedProcess] = []
        self._descriptors: List[int] = []

    def track(self, process: ManagedProcess) -> None:
        self._processes.append(process)
        self._descriptors.append(process.log_fd)

    def release(self, process: ManagedProcess) -> None:
        """Stop tracking a process so teardown leaves it running."""
        if process in self._processes:
            self._processes.remove(process)

    def processes(self) -> List[ManagedProcess]:
        return list(self._processes)

    def descriptors(self) -> List[int]:
        return list(self._descriptors)


def _matches(proc: psutil.Process, name: str) -> bool:
    info = proc.info
    if info.get("name") == name:
        return True
    cmdline = info.get("cmdline") or []
    return bool(cmdline) and Path(cmdline[0]).name == name


def stop_existing(name: str, timeout: float = STOP_TIMEOUT) -> int:
    """Terminate running processes called name and wait for them to exit.

    Anything still alive after timeout seconds is killed, so the old instance
    no longer holds its port when this returns. Returns how many were signalled.
    """
    stopped: List[psutil.Process] = []
    own_pid = os.getpid()

    for proc in psutil.process_iter(["pid", "name", "cmdline"]):
        if proc.pid == own_pid or not _matches(proc, name):
            continue
        try:
            proc.terminate()
            stopped.append(proc)
        except psutil.NoSuchProcess:
            continue
        except psutil.Error as e:
            logger.warning({"event": "stop_existing_failed", "pid": proc.pid, "error": str(e)})

    if not stopped:
        return 0

    _, alive = psutil.wait_procs(stopped, timeout=timeout)
    for proc in alive:
        logger.warning({"event": "stop_existing_kill", "pid": proc.pid})
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            continue
    if alive:
        psutil.wait_procs(alive, timeout=timeout)

    logger.info(f"Stopped {len(stopped)} existing {name} process(es).")
    return len(stopped)


def remove_stale_log(log_path: Path) -> bool:
    """Delete an old log file; only a missing file is tolerated."""
    try:
        log_path.unlink()
    except FileNotFoundError:
        return False
    logger.info(f"Deleted old log {log_path}.")
    return True


def _detach_kwargs() -> dict:
    if sys.platform == "win32":
        return {
            "creationflags": subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
        }
    return {"start_new_session": True}


def launch(
    binary_path: Path,
    args: Sequence[str],
    log_path: Path,
    registry: Optional[ProcessRegistry] = None,
) -> ManagedProcess:
    """Start binary_path detached with stdout and stderr appended to log_path.

    Any running instance with the same executable name is stopped and the
    previous log removed first. The call returns as soon as the process has
    been spawned.
    """
    binary_path = Path(binary_path)
    command = [str(binary_path), *args]

    stop_existing(binary_path.name)
    remove_stale_log(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    log_fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, LOG_FILE_MODE)
    try:
        popen = subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=log_fd,
            stderr=log_fd,
            env=os.environ.copy(),
            **_detach_kwargs(),
        )
    except OSError as e:
        os.close(log_fd)
        raise SpawnError(command, str(e)) from e

    process = ManagedProcess(
        pid=popen.pid,
        log_fd=log_fd,
        command=tuple(command),
        log_path=log_path,
        popen=popen,
    )
    if registry is not None:
        registry.track(process)

    logger.info({"event": "process_started", "pid": process.pid, "command": command, "log": str(log_path)})
    return process


def kill(process: ManagedProcess) -> None:
    """Force-kill a managed process, ignoring one that is already gone."""
    try:
        psutil.Process(process.pid).kill()
    except psutil.NoSuchProcess:
        return
    if process.popen is not None:
        try:
            process.popen.wait(timeout=5)
        except subprocess.TimeoutExpired:
            logger.warning({"event": "kill_wait_timeout", "pid": process.pid})


def read_log(process: ManagedProcess) -> str:
    try:
        return process.log_path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return ""
