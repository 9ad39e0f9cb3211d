"""Environment-driven launcher configuration."""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from collector_launcher.constants import (
    COLLECTOR_PORT,
    DEFAULT_BASE_DIR,
    HOME_ENV,
    LOG_LEVEL_ENV,
    PORT_ENV,
    PROJECT_ENV,
    READY_TIMEOUT,
    TIMEOUT_ENV,
)
from collector_launcher.errors import PreconditionMissingError

MAX_PORT = 65535


@dataclass(frozen=True)
class LauncherConfig:
    """Launcher settings"""
    project_id: str
    base_dir: Path
    port: int = COLLECTOR_PORT
    ready_timeout: float = READY_TIMEOUT
    log_level: str = "INFO"
    detach: bool = False

    def __post_init__(self):
        # also covers values replaced through with_overrides()
        if not 0 < self.port <= MAX_PORT:
            raise PreconditionMissingError(
                PORT_ENV, f"must be a port between 1 and {MAX_PORT}, got {self.port}"
            )
        if not self.ready_timeout > 0:
            raise PreconditionMissingError(
                TIMEOUT_ENV, f"must be a positive number of seconds, got {self.ready_timeout}"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LauncherConfig":
        """Read settings from the environment.

        Raises PreconditionMissingError when the project id is absent or a
        numeric setting cannot be parsed.
        """
        env = os.environ if environ is None else environ

        project_id = env.get(PROJECT_ENV, "").strip()
        if not project_id:
            raise PreconditionMissingError(PROJECT_ENV)

        return cls(
            project_id=project_id,
            base_dir=Path(env.get(HOME_ENV) or DEFAULT_BASE_DIR).expanduser(),
            port=_parse(env, PORT_ENV, int, COLLECTOR_PORT),
            ready_timeout=_parse(env, TIMEOUT_ENV, float, READY_TIMEOUT),
            log_level=env.get(LOG_LEVEL_ENV, "INFO").upper(),
        )

    def with_overrides(self, **overrides) -> "LauncherConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _parse(env: Mapping[str, str], name: str, cast, default):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise PreconditionMissingError(name, f"must be a number, got {raw!r}") from None
