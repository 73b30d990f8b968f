"""
Configuration module for simple-include.

Provides strongly-typed configuration with pydantic, supporting
file-based configuration, environment variables (``SIMPLE_INCLUDE_``
prefix) and command line overrides.
"""

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from simple_include.errors import ConfigurationError, StartupError
from simple_include.expander import DEFAULT_INCLUDE_PREFIX

CONFIG_FILE_NAMES = (
    "simple-include.toml",
    ".simple-include.toml",
    "simple-include.yaml",
)


class WatchConfig(BaseModel):
    """File system watcher configuration."""

    enabled: bool = Field(
        default=False,
        description="Watch the source directory after the initial sync",
    )
    use_polling: bool = Field(
        default=False,
        description="Use a polling observer instead of native notifications",
    )
    polling_interval_ms: int = Field(
        default=1000,
        ge=100,
        le=60000,
        description="Polling interval in milliseconds",
    )

    @property
    def polling_interval(self) -> float:
        """Polling interval in seconds."""
        return self.polling_interval_ms / 1000.0


class Config(BaseSettings):
    """
    Main simple-include configuration.

    Can be configured via:
    1. Configuration file (simple-include.toml or simple-include.yaml)
    2. Environment variables with SIMPLE_INCLUDE_ prefix
    3. Command line options
    """

    model_config = SettingsConfigDict(
        env_prefix="SIMPLE_INCLUDE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    src: Path = Field(
        default=Path("."),
        description="Source directory",
    )
    target: Path = Field(
        default=Path("target"),
        description="Target directory",
    )
    include_prefix: str = Field(
        default=DEFAULT_INCLUDE_PREFIX,
        min_length=1,
        description="Prefix marking an include directive",
    )
    verbose: bool = Field(
        default=False,
        description="Print advisory diagnostics",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level when not verbose",
    )

    watch: WatchConfig = Field(default_factory=WatchConfig)

    @property
    def effective_log_level(self) -> str:
        """Logging level taking the verbose flag into account."""
        return "DEBUG" if self.verbose else self.log_level

    def resolve_roots(self) -> tuple[Path, Path]:
        """
        Canonicalize the source and target directories.

        The target directory is created if it doesn't exist.

        Returns:
            Absolute ``(source_root, target_root)``.

        Raises:
            StartupError: If the source isn't a readable directory or the
                target can't be created.
        """
        try:
            source_root = self.src.resolve(strict=True)
        except OSError as e:
            raise StartupError(f"Source directory not found: {self.src}") from e

        if not source_root.is_dir():
            raise StartupError(f"Source is not a directory: {self.src}")

        try:
            next(source_root.iterdir(), None)
        except OSError as e:
            raise StartupError(f"Source directory is not readable: {self.src}") from e

        try:
            self.target.mkdir(parents=True, exist_ok=True)
            target_root = self.target.resolve(strict=True)
        except OSError as e:
            raise StartupError(f"Cannot create target directory {self.target}: {e}") from e

        if not target_root.is_dir():
            raise StartupError(f"Target is not a directory: {self.target}")

        return source_root, target_root

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from a TOML, YAML or JSON file."""
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()
        try:
            content = path.read_text(encoding="utf-8")
            if suffix == ".toml":
                data = tomllib.loads(content)
            elif suffix in (".yaml", ".yml"):
                data = yaml.safe_load(content) or {}
            elif suffix == ".json":
                data = json.loads(content)
            else:
                raise ConfigurationError(f"Unsupported config format: {suffix}")
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return self.model_dump()


def load_config(
    config_path: Path | None = None,
    cwd: Path | None = None,
) -> Config:
    """
    Load configuration with automatic discovery.

    Priority:
    1. Explicit config_path if provided
    2. simple-include.toml, .simple-include.toml or simple-include.yaml
       in the working directory
    3. Default configuration (plus environment variables)
    """
    if config_path is not None:
        return Config.from_file(config_path)

    root = cwd or Path.cwd()
    for name in CONFIG_FILE_NAMES:
        candidate = root / name
        if candidate.exists():
            return Config.from_file(candidate)

    return Config()
