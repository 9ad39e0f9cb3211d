"""Exit, signal and crash teardown for managed processes."""

import atexit
import enum
import os
import signal
import sys
from typing import Callable, Iterable, Optional

import psutil

from collector_launcher.logging import get_logger
from collector_launcher.types import ManagedProcess

logger = get_logger(__name__)

ProcessProvider = Callable[[], Iterable[ManagedProcess]]
DescriptorProvider = Callable[[], Iterable[int]]


class CleanupState(enum.Enum):
    ARMED = "armed"
    FIRED = "fired"


class CleanupRegistrar:
    """Runs a single teardown on normal exit, SIGINT, SIGTERM or an uncaught fault.

    Teardown reads the tracked processes and descriptors through the
    providers at the moment it fires, sends SIGTERM to every process and
    closes every descriptor. It never raises, and it runs at most once no
    matter how many triggers arrive.
    """

    def __init__(
        self,
        process_provider: Optional[ProcessProvider] = None,
        descriptor_provider: Optional[DescriptorProvider] = None,
    ):
        self.process_provider = process_provider
        self.descriptor_provider = descriptor_provider
        self.state = CleanupState.ARMED
        self._previous_excepthook = None
        self._previous_handlers = {}

    @property
    def fired(self) -> bool:
        return self.state is CleanupState.FIRED

    def register(self) -> "CleanupRegistrar":
        atexit.register(self.teardown)
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)
        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._handle_fault
        return self

    def unregister(self) -> None:
        """Remove the hooks installed by register()."""
        atexit.unregister(self.teardown)
        for signum, previous in self._previous_handlers.items():
            signal.signal(signum, previous)
        self._previous_handlers = {}
        if self._previous_excepthook is not None:
            sys.excepthook = self._previous_excepthook
            self._previous_excepthook = None

    def teardown(self) -> None:
        if self.state is CleanupState.FIRED:
            return
        self.state = CleanupState.FIRED

        logger.info("Shutting down...")

        for process in self._collect(self.process_provider):
            self._stop(process)

        for fd in self._collect(self.descriptor_provider):
            try:
                os.close(fd)
            except OSError:
                pass

    def _collect(self, provider) -> list:
        if provider is None:
            return []
        try:
            return [item for item in provider() if item is not None]
        except Exception:
            logger.exception("Cleanup provider failed")
            return []

    def _stop(self, process: ManagedProcess) -> None:
        if not process.pid:
            return
        try:
            logger.info(f"Stopping {process.name} (PID: {process.pid})...")
            psutil.Process(process.pid).terminate()
            logger.info(f"{process.name} stopped.")
        except psutil.NoSuchProcess:
            pass
        except Exception as e:
            logger.error(f"Error stopping {process.name}: {e}")

    def _handle_signal(self, signum, frame):
        logger.info(f"Received signal {signum}")
        if self.state is CleanupState.FIRED:
            # a teardown is already underway further up the stack and exits itself
            return
        self.teardown()
        sys.exit(0)

    def _handle_fault(self, exc_type, exc_value, exc_tb):
        logger.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_tb))
        self.teardown()
        # the interpreter exits with status 1 once the hook returns


def register_cleanup(
    process_provider: Optional[ProcessProvider] = None,
    descriptor_provider: Optional[DescriptorProvider] = None,
) -> CleanupRegistrar:
    """Install teardown hooks and return the registrar."""
    return CleanupRegistrar(process_provider, descriptor_provider).register()
