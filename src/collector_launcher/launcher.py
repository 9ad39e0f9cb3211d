"""Provision, start and supervise the telemetry collector."""
import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional

import aiohttp

from collector_launcher import __version__
from collector_launcher.binaries.cache import CachePaths, ensure_binary
from collector_launcher.collector import (
    COLLECTOR,
    SETTINGS_HINT,
    collector_args,
    console_links,
    write_config,
)
from collector_launcher.config import LauncherConfig
from collector_launcher.constants import GITHUB_API_BASE, LOG_LEVEL_ENV, POLL_INTERVAL
from collector_launcher.errors import LauncherError, PreconditionMissingError, log_error
from collector_launcher.logging import configure_logging, get_logger
from collector_launcher.processes.cleanup import register_cleanup
from collector_launcher.processes.readiness import wait_for_port
from collector_launcher.processes.supervisor import ProcessRegistry, kill, launch, read_log
from collector_launcher.types import ManagedProcess, PlatformTarget

logger = get_logger("launcher")


def dump_log(process: ManagedProcess) -> None:
    output = read_log(process)
    if output:
        sys.stderr.write("Collector Log Output:\n")
        sys.stderr.write(output)
        sys.stderr.flush()


async def supervise(process: ManagedProcess, interval: float = POLL_INTERVAL) -> int:
    """Wait for the collector to exit on its own."""
    while (returncode := process.popen.poll()) is None:
        await asyncio.sleep(interval)

    logger.info({"event": "collector_exited", "pid": process.pid, "returncode": returncode})
    return 0 if returncode == 0 else 1


async def run(
    config: LauncherConfig,
    *,
    project_root: Optional[Path] = None,
    target: Optional[PlatformTarget] = None,
    session: Optional[aiohttp.ClientSession] = None,
    api_base: str = GITHUB_API_BASE,
) -> int:
    """Run the collector lifecycle and return the process exit code."""
    paths = CachePaths.for_project(config.base_dir, project_root or Path.cwd())

    logger.info(f"Using Google Cloud Project: {config.project_id}")
    logger.info(SETTINGS_HINT)

    paths.bin_dir.mkdir(parents=True, exist_ok=True)
    try:
        binary = await ensure_binary(
            COLLECTOR, paths.bin_dir, target=target, session=session, api_base=api_base
        )
    except LauncherError as e:
        logger.error(f"Error getting {COLLECTOR.executable_name}: {e}")
        log_error(e, {"repo": COLLECTOR.repo}, logger)
        return 1

    write_config(paths.config_file, config.project_id, config.port)
    logger.info(f"Wrote collector config to {paths.config_file}")

    registry = ProcessRegistry()
    registrar = register_cleanup(registry.processes, registry.descriptors)
    try:
        logger.info(f"Starting collector... Logs: {paths.log_file}")
        process = launch(binary, collector_args(paths.config_file), paths.log_file, registry)

        logger.info(f"Waiting for collector to start (PID: {process.pid})...")
        try:
            await wait_for_port(config.port, config.ready_timeout)
        except LauncherError as e:
            logger.error(f"Collector failed to start on port {config.port}.")
            log_error(e, {"pid": process.pid}, logger)
            kill(process)
            dump_log(process)
            return 1

        logger.info(f"Collector started successfully on port {config.port}.")
        for kind, url in console_links(config.project_id).items():
            logger.info(f"View {kind}: {url}")

        if config.detach:
            registry.release(process)
            return 0

        logger.info("Press Ctrl+C to stop the collector.")
        return await supervise(process)
    except LauncherError as e:
        log_error(e, {"binary": str(binary)}, logger)
        return 1
    finally:
        registrar.teardown()
        registrar.unregister()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="collector-launcher",
        description="Download, start and supervise the OpenTelemetry Collector for Google Cloud",
    )
    parser.add_argument("--version", action="version", version=f"collector-launcher {__version__}")
    parser.add_argument(
        "--detach",
        action="store_true",
        help="Exit once the collector is ready and leave it running",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the collector port (default: 10)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Launcher log level",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level or os.environ.get(LOG_LEVEL_ENV, "INFO"))
    logger.info("Starting OpenTelemetry Collector for Google Cloud")

    try:
        config = LauncherConfig.from_env().with_overrides(
            ready_timeout=args.timeout,
            log_level=args.log_level,
            detach=args.detach or None,
        )
    except PreconditionMissingError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    try:
        code = asyncio.run(run(config))
    except Exception:
        logger.exception("Fatal launcher error")
        code = 1
    sys.exit(code)
