"""Managed process lifecycle: spawn, readiness and teardown."""
from collector_launcher.processes.cleanup import (
    CleanupRegistrar,
    CleanupState,
    register_cleanup,
)
from collector_launcher.processes.readiness import wait_for_port
from collector_launcher.processes.supervisor import (
    ProcessRegistry,
    kill,
    launch,
    read_log,
)

__all__ = [
    "launch",
    "kill",
    "read_log",
    "ProcessRegistry",
    "wait_for_port",
    "CleanupRegistrar",
    "CleanupState",
    "register_cleanup",
]
