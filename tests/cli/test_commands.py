"""Tests for the CLI group, list and cache commands."""

from __future__ import annotations

import importlib
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from os_creds import __version__
from os_creds.cache.store import CacheStore
from os_creds.cli.main import cli
from os_creds.keystone.schemas import Project


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_path(tmp_path: Path):
    """Point the CLI at a config file under tmp_path."""
    path = tmp_path / "config" / "config.json"
    cli_main = importlib.import_module("os_creds.cli.main")
    with patch.object(cli_main, "get_config_path", return_value=path):
        yield path


class TestCliGroup:
    """Tests for the top-level group."""

    def test_version(self, runner: CliRunner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_without_command(self, runner: CliRunner, config_path: Path):
        result = runner.invoke(cli, [])

        assert result.exit_code == 0
        assert "token" in result.output
        assert "cache" in result.output

    def test_invalid_config_reported(self, runner: CliRunner, config_path: Path):
        # Arrange
        config_path.parent.mkdir(parents=True)
        config_path.write_text('{"http_timeout": "soon"}')

        # Act
        result = runner.invoke(cli, ["cache", "path"])

        # Assert
        assert result.exit_code == 1
        assert "Failed to load configuration" in result.stderr


class TestListCommand:
    """Tests for `os-creds list`."""

    def test_lists_entries(self, runner: CliRunner, config_path: Path, tmp_path: Path):
        # Arrange
        store = tmp_path / "store"
        (store / "production").mkdir(parents=True)
        (store / "production" / "cloud.openrc.gpg").write_bytes(b"x")
        (store / "lab.openrc.gpg").write_bytes(b"x")

        # Act
        result = runner.invoke(cli, ["list", "--store-dir", str(store)])

        # Assert
        assert result.exit_code == 0
        assert result.stdout.splitlines() == ["lab", "production/cloud"]

    def test_empty_store(self, runner: CliRunner, config_path: Path, tmp_path: Path):
        result = runner.invoke(cli, ["list", "--store-dir", str(tmp_path)])

        assert result.exit_code == 0
        assert "No credentials found" in result.stderr


class TestCacheCommands:
    """Tests for `os-creds cache`."""

    def test_clear_removes_entries(self, runner: CliRunner, config_path: Path, tmp_path: Path):
        # Arrange
        cache_dir = tmp_path / "cache"
        store = CacheStore(cache_dir)
        store.save_projects("https://k", [Project(id="p1", name="dev")])
        store.save_token("https://k", "alice", "Default", "", "tok", "2099-01-01T00:00:00Z")

        # Act
        result = runner.invoke(cli, ["cache", "clear", "--cache-dir", str(cache_dir)])

        # Assert
        assert result.exit_code == 0
        assert "Removed 2 cache files" in result.output
        assert store.load_projects("https://k") is None

    def test_clear_empty(self, runner: CliRunner, config_path: Path, tmp_path: Path):
        result = runner.invoke(cli, ["cache", "clear", "--cache-dir", str(tmp_path / "cache")])

        assert result.exit_code == 0
        assert "Removed 0 cache files" in result.output

    def test_path_from_config(self, runner: CliRunner, config_path: Path, tmp_path: Path):
        # Arrange
        config_path.parent.mkdir(parents=True)
        config_path.write_text(f'{{"cache_dir": "{tmp_path / "mycache"}"}}')

        # Act
        result = runner.invoke(cli, ["cache", "path"])

        # Assert
        assert result.exit_code == 0
        assert result.output.strip() == str(tmp_path / "mycache")
