"""Configuration management for govuk-frontend-diff."""

import tomllib
from pathlib import Path

import tomli_w
from pydantic import BaseModel, Field, ValidationError

from .constants import (
    CHARS_AROUND_DIFF,
    CONFIG_FILENAME,
    DEFAULT_ARCHIVE_URL,
    DEFAULT_CACHE_DIR,
    DEFAULT_CONCURRENCY,
    RENDER_TIMEOUT,
)
from .errors import ConfigError
from .models import BundleLayout


class CacheConfig(BaseModel):
    """Where fetched reference bundles are kept."""

    directory: str = DEFAULT_CACHE_DIR


class SourceConfig(BaseModel):
    """Where reference bundles are downloaded from."""

    archive_url: str = Field(
        default=DEFAULT_ARCHIVE_URL,
        description="Tarball URL with a {version} placeholder",
    )


class RunConfig(BaseModel):
    """Execution limits for a diff run."""

    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1)
    timeout: float | None = Field(default=None, gt=0)  # whole run; None = unbounded
    render_timeout: float = Field(default=RENDER_TIMEOUT, gt=0)


class DiffConfig(BaseModel):
    """Comparison settings."""

    ignore_attributes: list[str] = Field(default_factory=list)
    chars_around_diff: int = Field(default=CHARS_AROUND_DIFF, ge=10)


class DiffToolConfig(BaseModel):
    """Root configuration for govuk-frontend-diff."""

    cache: CacheConfig = Field(default_factory=CacheConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    bundle: BundleLayout = Field(default_factory=BundleLayout)
    run: RunConfig = Field(default_factory=RunConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)


def load_config(config_path: Path | None = None) -> DiffToolConfig:
    """Load configuration from TOML.

    Args:
        config_path: Explicit config file. When None, ``govuk-frontend-diff.toml``
            in the current directory is used if present.

    Returns:
        Loaded configuration, or defaults if no config file exists

    Raises:
        ConfigError: If an explicit path does not exist, or the file is not
            valid TOML or does not match the schema
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME
        if not config_path.exists():
            return DiffToolConfig()
    elif not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from e

    try:
        return DiffToolConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e


def write_config_template(directory: Path) -> Path:
    """Write default config template.

    Args:
        directory: Directory to write ``govuk-frontend-diff.toml`` into

    Returns:
        Path to the written config file
    """
    config_path = directory / CONFIG_FILENAME
    template = {
        "cache": {"directory": DEFAULT_CACHE_DIR},
        "source": {"archive_url": DEFAULT_ARCHIVE_URL},
        "bundle": BundleLayout().model_dump(),
        # Add `timeout = <seconds>` to bound a whole run
        "run": {"concurrency": DEFAULT_CONCURRENCY, "render_timeout": RENDER_TIMEOUT},
        # Attributes listed here are not compared (e.g. ["nonce"])
        "diff": {"ignore_attributes": [], "chars_around_diff": CHARS_AROUND_DIFF},
    }
    with open(config_path, "wb") as f:
        tomli_w.dump(template, f)
    return config_path
