"""
Build configuration.

A build config is a YAML file:

    # assets.yml
    cwd: ./web          # optional, base directory for globs (relative to where embedfs runs)
    out: ./app/assets.py
    assets:
      - ./static/**/*.css
      - ./templates/*.html
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import AssetIOError, ConfigurationError
from .packager import archive_format

DEFAULT_CONFIG_PATH = "./assets.yml"


class BuildConfig(BaseModel):
    """Validated build configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    cwd: str | None = None  # Extra lookup directory, removed from archive paths
    out: str  # Output archive path (.py or .json)
    assets: list[str]  # Glob patterns relative to cwd

    @field_validator("out")
    @classmethod
    def _check_out(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        archive_format(value)
        return value

    @field_validator("assets")
    @classmethod
    def _check_assets(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("must have at least one entry")
        if any(not glob for glob in value):
            raise ValueError("must only contain non-empty strings")
        return value

    def resolve_cwd(self, base: Path) -> Path:
        """Base directory for discovery, resolved against `base`."""
        if self.cwd:
            return (base / self.cwd).resolve()
        return base.resolve()


def parse_config(data: object, source: str = "<config>") -> BuildConfig:
    """
    Validate parsed config data.

    Raises:
        ConfigurationError: If the data is not a valid build config
    """
    if not data:
        raise ConfigurationError(f"Config must not be empty. ({source})")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config must be a mapping. ({source})")

    try:
        return BuildConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"'{'.'.join(str(p) for p in err['loc'])}' {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid config field {problems} ({source})") from e


def load_config(path: str | Path) -> BuildConfig:
    """
    Load and validate a YAML build config.

    Args:
        path: Path to the config file

    Returns:
        Validated BuildConfig

    Raises:
        AssetIOError: If the file cannot be read
        ConfigurationError: If the YAML is invalid or fails validation
    """
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise AssetIOError(f"Failed to read config {config_path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    return parse_config(data, str(config_path))
