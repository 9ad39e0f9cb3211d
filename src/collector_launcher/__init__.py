"""Binary provisioning and managed-process lifecycle for a telemetry collector."""

__version__ = "0.1.0"

from collector_launcher.types import (
    AssetInfo,
    BinarySpec,
    ManagedProcess,
    PlatformTarget,
    ReleaseInfo,
)
from collector_launcher.binaries import (
    ensure_binary,
    install_binary,
    locate_asset,
    resolve_latest_release,
    template_naming,
)
from collector_launcher.processes import (
    CleanupRegistrar,
    ProcessRegistry,
    launch,
    register_cleanup,
    wait_for_port,
)
from collector_launcher.errors import (
    LauncherError,
    PreconditionMissingError,
    NetworkError,
    ReleaseDataError,
    AssetResolutionError,
    ExtractionError,
    BinaryNotFoundError,
    SpawnError,
    PortTimeoutError,
)

__all__ = [
    # Data model
    "AssetInfo",
    "BinarySpec",
    "ManagedProcess",
    "PlatformTarget",
    "ReleaseInfo",

    # Provisioning
    "resolve_latest_release",
    "locate_asset",
    "template_naming",
    "install_binary",
    "ensure_binary",

    # Process lifecycle
    "launch",
    "ProcessRegistry",
    "wait_for_port",
    "CleanupRegistrar",
    "register_cleanup",

    # Error types
    "LauncherError",
    "PreconditionMissingError",
    "NetworkError",
    "ReleaseDataError",
    "AssetResolutionError",
    "ExtractionError",
    "BinaryNotFoundError",
    "SpawnError",
    "PortTimeoutError",
]
