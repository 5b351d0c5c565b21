"""Tests for govuk-frontend-diff configuration."""

import tomllib
from pathlib import Path

import pytest

from govuk_frontend_diff.config import DiffToolConfig, load_config, write_config_template
from govuk_frontend_diff.constants import (
    DEFAULT_ARCHIVE_URL,
    DEFAULT_CACHE_DIR,
    DEFAULT_COMPONENTS_DIR,
    DEFAULT_CONCURRENCY,
)
from govuk_frontend_diff.errors import ConfigError


def test_defaults():
    """Defaults match the reference repository layout."""
    config = DiffToolConfig()
    assert config.cache.directory == DEFAULT_CACHE_DIR
    assert config.source.archive_url == DEFAULT_ARCHIVE_URL
    assert config.bundle.components_dir == DEFAULT_COMPONENTS_DIR
    assert config.run.concurrency == DEFAULT_CONCURRENCY
    assert config.run.timeout is None
    assert config.diff.ignore_attributes == []


def test_load_without_file_uses_defaults(tmp_path: Path, monkeypatch):
    """No config file in the working directory means defaults."""
    monkeypatch.chdir(tmp_path)
    assert load_config() == DiffToolConfig()


def test_load_from_working_directory(tmp_path: Path, monkeypatch):
    """govuk-frontend-diff.toml in the working directory is picked up."""
    (tmp_path / "govuk-frontend-diff.toml").write_text(
        '[run]\nconcurrency = 2\ntimeout = 30\n\n[diff]\nignore_attributes = ["nonce"]\n'
    )
    monkeypatch.chdir(tmp_path)

    config = load_config()

    assert config.run.concurrency == 2
    assert config.run.timeout == 30
    assert config.diff.ignore_attributes == ["nonce"]
    # Unset sections keep their defaults
    assert config.cache.directory == DEFAULT_CACHE_DIR


def test_load_explicit_path(tmp_path: Path):
    path = tmp_path / "custom.toml"
    path.write_text('[bundle]\ncomponents_dir = "package/govuk/components"\n')

    config = load_config(path)

    assert config.bundle.components_dir == "package/govuk/components"


def test_explicit_path_missing(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "missing.toml")


def test_invalid_toml(tmp_path: Path):
    path = tmp_path / "bad.toml"
    path.write_text("[run\nconcurrency = ")
    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(path)


@pytest.mark.parametrize(
    "content",
    [
        "[run]\nconcurrency = 0\n",
        "[run]\ntimeout = -1\n",
        '[run]\nconcurrency = "many"\n',
        "[diff]\nchars_around_diff = 1\n",
    ],
)
def test_invalid_values(tmp_path: Path, content: str):
    path = tmp_path / "bad.toml"
    path.write_text(content)
    with pytest.raises(ConfigError, match="Invalid configuration"):
        load_config(path)


def test_write_config_template(tmp_path: Path):
    """The template is valid TOML that loads back to the defaults."""
    path = write_config_template(tmp_path)

    assert path == tmp_path / "govuk-frontend-diff.toml"
    with open(path, "rb") as f:
        data = tomllib.load(f)
    assert data["source"]["archive_url"] == DEFAULT_ARCHIVE_URL
    assert load_config(path) == DiffToolConfig()
