"""
Unit tests for server configuration.
"""

import logging
from pathlib import Path

import pytest

from fileserver.config import ServerConfig


ENV_VARS = (
    "FILESERVER_HOST",
    "FILESERVER_PORT",
    "FILESERVER_ROOT",
    "FILESERVER_WORKERS",
    "FILESERVER_TIMEOUT",
    "FILESERVER_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    """Tests for the dataclass defaults."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 7878
        assert config.max_request_size == 1024 * 1024
        assert config.log_format == "text"

    def test_root_defaults_to_cwd_at_construction(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = ServerConfig()
        monkeypatch.chdir(tmp_path.parent)

        assert Path(config.root_dir).resolve() == tmp_path.resolve()

    def test_log_level_number(self):
        assert ServerConfig(log_level="debug").log_level_number == logging.DEBUG
        assert ServerConfig(log_level="WARNING").log_level_number == logging.WARNING


class TestFromEnv:
    """Tests for ServerConfig.from_env."""

    def test_reads_variables(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("FILESERVER_HOST", "0.0.0.0")
        monkeypatch.setenv("FILESERVER_PORT", "9000")
        monkeypatch.setenv("FILESERVER_ROOT", str(tmp_path))
        monkeypatch.setenv("FILESERVER_WORKERS", "8")
        monkeypatch.setenv("FILESERVER_TIMEOUT", "2.5")
        monkeypatch.setenv("FILESERVER_LOG_LEVEL", "debug")

        config = ServerConfig.from_env()

        assert config.host == "0.0.0.0"
        assert config.port == 9000
        assert config.root_dir == str(tmp_path)
        assert config.max_workers == 8
        assert config.min_workers == 4
        assert config.timeout == 2.5
        assert config.log_level == "DEBUG"

    def test_few_workers_lowers_minimum(self, monkeypatch):
        monkeypatch.setenv("FILESERVER_WORKERS", "2")

        config = ServerConfig.from_env()

        assert config.min_workers == 2
        assert config.max_workers == 2

    def test_unset_uses_defaults(self, monkeypatch, tmp_path: Path):
        monkeypatch.chdir(tmp_path)

        config = ServerConfig.from_env()

        assert config.port == 7878
        assert Path(config.root_dir).resolve() == tmp_path.resolve()

    def test_bad_number(self, monkeypatch):
        monkeypatch.setenv("FILESERVER_PORT", "eighty")

        with pytest.raises(ValueError):
            ServerConfig.from_env()


class TestValidate:
    """Tests for ServerConfig.validate."""

    def test_valid(self, config: ServerConfig):
        config.validate()

    @pytest.mark.parametrize("changes,message", [
        ({"port": 70000}, "Invalid port"),
        ({"port": -1}, "Invalid port"),
        ({"backlog": 0}, "backlog"),
        ({"min_workers": 0}, "min_workers"),
        ({"min_workers": 5, "max_workers": 2}, "max_workers"),
        ({"queue_size": 0}, "queue_size"),
        ({"buffer_size": 10}, "buffer_size"),
        ({"max_request_size": 2048, "buffer_size": 4096}, "max_request_size"),
        ({"timeout": 0}, "timeout"),
        ({"log_level": "LOUD"}, "log_level"),
        ({"log_format": "xml"}, "log_format"),
    ])
    def test_invalid(self, config: ServerConfig, changes: dict, message: str):
        for name, value in changes.items():
            setattr(config, name, value)

        with pytest.raises(ValueError, match=message):
            config.validate()

    def test_missing_root(self, config: ServerConfig, tmp_path: Path):
        config.root_dir = str(tmp_path / "nope")

        with pytest.raises(ValueError, match="Root directory does not exist"):
            config.validate()

    def test_root_must_be_directory(self, config: ServerConfig, site_root: Path):
        config.root_dir = str(site_root / "readme.txt")

        with pytest.raises(ValueError, match="Root directory"):
            config.validate()

    def test_port_zero_allowed(self, config: ServerConfig):
        config.port = 0
        config.validate()

    def test_timeout_none_allowed(self, config: ServerConfig):
        config.timeout = None
        config.validate()
