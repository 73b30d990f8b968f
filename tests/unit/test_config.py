"""
Unit tests for the configuration module.

Tests cover:
- Default values
- Environment variable overrides
- Configuration file parsing and discovery
- Root canonicalization at startup
- Command line overrides
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from simple_include.config import Config, WatchConfig, load_config
from simple_include.errors import ConfigurationError, StartupError
from simple_include.main import apply_overrides


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep SIMPLE_INCLUDE_ variables from the outer environment out."""
    for name in (
        "SIMPLE_INCLUDE_SRC",
        "SIMPLE_INCLUDE_TARGET",
        "SIMPLE_INCLUDE_INCLUDE_PREFIX",
        "SIMPLE_INCLUDE_VERBOSE",
        "SIMPLE_INCLUDE_LOG_LEVEL",
        "SIMPLE_INCLUDE_WATCH__ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    """Tests for default values."""

    def test_default_values(self):
        config = Config()

        assert config.src == Path(".")
        assert config.target == Path("target")
        assert config.include_prefix == "--include"
        assert config.verbose is False
        assert config.log_level == "WARNING"
        assert config.watch.enabled is False
        assert config.watch.use_polling is False

    def test_effective_log_level(self):
        assert Config().effective_log_level == "WARNING"
        assert Config(verbose=True).effective_log_level == "DEBUG"
        assert Config(log_level="ERROR").effective_log_level == "ERROR"

    def test_empty_prefix_rejected(self):
        with pytest.raises(ValidationError):
            Config(include_prefix="")

    def test_polling_interval_bounds(self):
        assert WatchConfig(polling_interval_ms=250).polling_interval == 0.25

        with pytest.raises(ValidationError):
            WatchConfig(polling_interval_ms=10)


class TestEnvironment:
    """Tests for environment variable overrides."""

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SIMPLE_INCLUDE_INCLUDE_PREFIX", "#include")
        monkeypatch.setenv("SIMPLE_INCLUDE_WATCH__ENABLED", "true")

        config = Config()

        assert config.include_prefix == "#include"
        assert config.watch.enabled is True


class TestConfigFiles:
    """Tests for file-based configuration."""

    def test_from_toml(self, tmp_path):
        path = tmp_path / "simple-include.toml"
        path.write_text(
            'src = "pages"\ntarget = "site"\ninclude_prefix = "@@"\n'
            "[watch]\nenabled = true\npolling_interval_ms = 500\n"
        )

        config = Config.from_file(path)

        assert config.src == Path("pages")
        assert config.target == Path("site")
        assert config.include_prefix == "@@"
        assert config.watch.enabled is True
        assert config.watch.polling_interval == 0.5

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "simple-include.yaml"
        path.write_text("verbose: true\nwatch:\n  use_polling: true\n")

        config = Config.from_file(path)

        assert config.verbose is True
        assert config.watch.use_polling is True

    def test_from_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"target": "out"}')

        assert Config.from_file(path).target == Path("out")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            Config.from_file(tmp_path / "nope.toml")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[x]")

        with pytest.raises(ConfigurationError):
            Config.from_file(path)

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("src = ")

        with pytest.raises(ConfigurationError):
            Config.from_file(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text('log_level = "LOUD"\n')

        with pytest.raises(ConfigurationError):
            Config.from_file(path)

    def test_discovery(self, tmp_path):
        (tmp_path / ".simple-include.toml").write_text('target = "dist"\n')

        assert load_config(cwd=tmp_path).target == Path("dist")

    def test_discovery_defaults(self, tmp_path):
        assert load_config(cwd=tmp_path).target == Path("target")

    def test_explicit_path_wins(self, tmp_path):
        (tmp_path / "simple-include.toml").write_text('target = "dist"\n')
        explicit = tmp_path / "other.toml"
        explicit.write_text('target = "other"\n')

        assert load_config(config_path=explicit, cwd=tmp_path).target == Path("other")


class TestResolveRoots:
    """Tests for Config.resolve_roots."""

    def test_canonical_roots(self, tmp_path):
        (tmp_path / "src").mkdir()
        config = Config(src=tmp_path / "src" / ".." / "src", target=tmp_path / "out" / "site")

        source_root, target_root = config.resolve_roots()

        assert source_root == (tmp_path / "src").resolve()
        assert target_root == (tmp_path / "out" / "site").resolve()
        assert target_root.is_dir()

    def test_missing_source(self, tmp_path):
        config = Config(src=tmp_path / "missing", target=tmp_path / "out")

        with pytest.raises(StartupError):
            config.resolve_roots()

    def test_source_is_file(self, tmp_path):
        (tmp_path / "file.txt").write_text("x")
        config = Config(src=tmp_path / "file.txt", target=tmp_path / "out")

        with pytest.raises(StartupError):
            config.resolve_roots()

    def test_target_cannot_be_created(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "blocker").write_text("x")
        config = Config(src=tmp_path / "src", target=tmp_path / "blocker" / "out")

        with pytest.raises(StartupError):
            config.resolve_roots()


class TestCommandLineOverrides:
    """Tests for applying command line options to a loaded Config."""

    def test_overrides_applied(self, tmp_path):
        config = Config(src=tmp_path / "a", watch=WatchConfig(polling_interval_ms=500))

        merged = apply_overrides(config, True, None, tmp_path / "out", "#include", True, True)

        assert merged.src == tmp_path / "a"
        assert merged.target == tmp_path / "out"
        assert merged.include_prefix == "#include"
        assert merged.verbose is True
        assert merged.watch.enabled is True
        assert merged.watch.use_polling is True
        assert merged.watch.polling_interval_ms == 500

    def test_no_overrides(self):
        config = Config(include_prefix="@@")

        assert apply_overrides(config, False, None, None, None, False, False) == config

    def test_empty_prefix_rejected(self):
        with pytest.raises(ConfigurationError, match="Invalid command line option"):
            apply_overrides(Config(), False, None, None, "", False, False)
