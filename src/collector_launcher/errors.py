"""Error handling for the collector launcher."""
import logging
from typing import Any, Dict, List, Optional


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log an error with context."""
    logger = logger or logging.getLogger("collector_launcher")

    error_info = {
        "error_type": error.__class__.__name__,
        "error_message": str(error)
    }
    if context:
        error_info["context"] = context
    if isinstance(error, LauncherError):
        error_info["details"] = error.details

    logger.error("Launcher error occurred", extra={"data": error_info})


class LauncherError(Exception):
    """Base error class for the launcher."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class PreconditionMissingError(LauncherError):
    """A required setting is absent or unusable."""
    def __init__(self, name: str, reason: str = "is required"):
        super().__init__(
            f"{name} environment variable {reason}.",
            details={"variable": name}
        )
        self.name = name


class NetworkError(LauncherError):
    """Fetch or download failed."""
    def __init__(self, url: str, reason: str, status: Optional[int] = None):
        super().__init__(
            f"Request to {url} failed: {reason}",
            details={"url": url, "status": status}
        )
        self.url = url
        self.status = status


class ReleaseDataError(LauncherError):
    """Release metadata could not be used."""


class EmptyResponseError(ReleaseDataError):
    def __init__(self, url: str):
        super().__init__(f"Empty response from {url}", details={"url": url})


class MalformedResponseError(ReleaseDataError):
    EXCERPT_LENGTH = 500

    def __init__(self, url: str, content: str):
        excerpt = content[:self.EXCERPT_LENGTH]
        if len(content) > self.EXCERPT_LENGTH:
            excerpt += "..."
        super().__init__(
            f"Failed to parse JSON response from {url}",
            details={"url": url, "content": excerpt}
        )
        self.excerpt = excerpt


class NoReleaseTagError(ReleaseDataError):
    def __init__(self, repo: str, data: Any):
        super().__init__(
            f"Could not get latest release information for {repo}. Release data: {data!r}",
            details={"repo": repo}
        )


class AssetResolutionError(LauncherError):
    """No usable asset in the release."""


class NoAssetsPublishedError(AssetResolutionError):
    def __init__(self, tag_name: str):
        super().__init__(
            f"Release {tag_name} has no assets.",
            details={"tag_name": tag_name}
        )


class AssetNotFoundError(AssetResolutionError):
    def __init__(self, expected: str, version: str, platform: str, arch: str, available: List[str]):
        super().__init__(
            f'Could not find asset "{expected}" (version {version}) on platform '
            f'{platform}/{arch}. Available assets: {", ".join(available)}',
            details={
                "expected": expected,
                "version": version,
                "platform": platform,
                "arch": arch,
                "available": available,
            }
        )
        self.expected = expected
        self.available = available


class ExtractionError(LauncherError):
    """Archive could not be extracted."""
    def __init__(self, archive: str, reason: str):
        super().__init__(
            f"Failed to extract {archive}: {reason}",
            details={"archive": archive}
        )


class BinaryNotFoundError(LauncherError):
    """Binary missing from an extracted archive."""
    def __init__(self, binary_name: str, location: str, contents: List[str]):
        super().__init__(
            f'Could not find binary "{binary_name}" in extracted archive at '
            f'{location}. Contents: {", ".join(contents)}',
            details={"binary_name": binary_name, "contents": contents}
        )
        self.contents = contents


class SpawnError(LauncherError):
    """Managed process could not be started."""
    def __init__(self, command: List[str], reason: str):
        super().__init__(
            f"Failed to start {command[0]}: {reason}",
            details={"command": command}
        )


class PortTimeoutError(LauncherError, TimeoutError):
    """Service never opened its port."""
    def __init__(self, port: int, timeout: float):
        super().__init__(
            f"Timeout waiting for port {port} to open.",
            details={"port": port, "timeout": timeout}
        )
        self.port = port
