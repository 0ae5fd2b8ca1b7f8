"""Tests for configuration loading."""

import pytest
from pathlib import Path

from claudeset.config import config_dir, load_config

_ENV_KEYS = [
    "CLAUDESET_SETS_DIR",
    "CLAUDESET_LOG_LEVEL",
    "CLAUDESET_RETRY_ATTEMPTS",
    "CLAUDESET_RETRY_DELAY",
    "CLAUDESET_MAX_DEPTH",
]


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestConfig:
    def test_defaults(self, tmp_path: Path):
        config = load_config()
        assert config.sets_dir == tmp_path / "xdg" / "claudeset" / "sets"
        assert config.log_level == "WARNING"
        assert config.retry.max_attempts == 3
        assert config.retry.delay == 0.5
        assert config.references.max_depth == 2

    def test_config_dir_without_xdg(self, monkeypatch):
        monkeypatch.delenv("XDG_CONFIG_HOME")
        assert config_dir() == Path.home() / ".config" / "claudeset"

    def test_env_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("CLAUDESET_SETS_DIR", str(tmp_path / "elsewhere"))
        monkeypatch.setenv("CLAUDESET_RETRY_ATTEMPTS", "5")
        monkeypatch.setenv("CLAUDESET_MAX_DEPTH", "4")

        config = load_config()
        assert config.sets_dir == tmp_path / "elsewhere"
        assert config.retry.max_attempts == 5
        assert config.references.max_depth == 4

    def test_toml_file(self, tmp_path: Path):
        toml_path = tmp_path / "claudeset.toml"
        toml_path.write_text("""
sets_dir = "~/my-sets"
log_level = "DEBUG"

[retry]
max_attempts = 1
delay = 0.0

[references]
max_depth = 3
""")
        config = load_config(toml_path)
        assert config.sets_dir == Path.home() / "my-sets"
        assert config.log_level == "DEBUG"
        assert config.retry.max_attempts == 1
        assert config.retry.delay == 0.0
        assert config.references.max_depth == 3

    def test_toml_found_in_cwd(self, tmp_path: Path):
        (tmp_path / "claudeset.toml").write_text('log_level = "INFO"\n')
        config = load_config()
        assert config.log_level == "INFO"

    def test_toml_found_in_config_dir(self, tmp_path: Path):
        cfg = tmp_path / "xdg" / "claudeset"
        cfg.mkdir(parents=True)
        (cfg / "claudeset.toml").write_text("[references]\nmax_depth = 1\n")
        config = load_config()
        assert config.references.max_depth == 1

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("CLAUDESET_LOG_LEVEL", "ERROR")

        toml_path = tmp_path / "claudeset.toml"
        toml_path.write_text('log_level = "DEBUG"\n')
        config = load_config(toml_path)
        assert config.log_level == "ERROR"  # env wins
