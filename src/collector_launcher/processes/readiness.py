"""TCP readiness polling."""

import asyncio

from collector_launcher.constants import POLL_INTERVAL, READY_TIMEOUT
from collector_launcher.errors import PortTimeoutError
from collector_launcher.logging import get_logger

logger = get_logger(__name__)


async def wait_for_port(
    port: int,
    timeout: float = READY_TIMEOUT,
    *,
    host: str = "localhost",
    interval: float = POLL_INTERVAL,
) -> None:
    """Block until something accepts TCP connections on host:port.

    Retries every ``interval`` seconds until ``timeout`` seconds have passed
    since the first attempt, then raises PortTimeoutError.
    """
    loop = asyncio.get_running_loop()
    start = loop.time()
    attempts = 0

    while True:
        attempts += 1
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), timeout=interval
            )
        except (OSError, asyncio.TimeoutError):
            if loop.time() - start > timeout:
                logger.debug({"event": "port_timeout", "port": port, "attempts": attempts})
                raise PortTimeoutError(port, timeout) from None
            await asyncio.sleep(interval)
            continue

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        logger.debug({"event": "port_ready", "port": port, "attempts": attempts})
        return
