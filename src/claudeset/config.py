"""Configuration loading from environment variables and claudeset.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_CONFIG_FILENAME = "claudeset.toml"


def config_dir() -> Path:
    """XDG-style configuration directory for claudeset."""
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "claudeset"
    return Path.home() / ".config" / "claudeset"


@dataclass
class RetryConfig:
    """Retry policy for file copies."""

    max_attempts: int = 3
    delay: float = 0.5


@dataclass
class ReferenceConfig:
    """Reference expansion limits."""

    max_depth: int = 2


@dataclass
class ClaudesetConfig:
    """Top-level claudeset configuration."""

    sets_dir: Path = field(default_factory=lambda: config_dir() / "sets")
    log_level: str = "WARNING"
    retry: RetryConfig = field(default_factory=RetryConfig)
    references: ReferenceConfig = field(default_factory=ReferenceConfig)


def load_config(config_path: Path | None = None) -> ClaudesetConfig:
    """Load configuration from environment variables and optional claudeset.toml.

    Priority: environment variables > claudeset.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and the config dir
        for candidate in [Path.cwd() / _CONFIG_FILENAME, config_dir() / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    retry_data = file_data.get("retry", {})
    references_data = file_data.get("references", {})

    sets_dir = os.getenv("CLAUDESET_SETS_DIR", file_data.get("sets_dir"))

    config = ClaudesetConfig(
        sets_dir=Path(sets_dir).expanduser() if sets_dir else config_dir() / "sets",
        log_level=os.getenv("CLAUDESET_LOG_LEVEL", file_data.get("log_level", "WARNING")),
        retry=RetryConfig(
            max_attempts=int(
                os.getenv("CLAUDESET_RETRY_ATTEMPTS", retry_data.get("max_attempts", 3))
            ),
            delay=float(os.getenv("CLAUDESET_RETRY_DELAY", retry_data.get("delay", 0.5))),
        ),
        references=ReferenceConfig(
            max_depth=int(os.getenv("CLAUDESET_MAX_DEPTH", references_data.get("max_depth", 2))),
        ),
    )
    return config
