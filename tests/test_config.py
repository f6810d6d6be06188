"""Tests for configuration module."""

from pathlib import Path

import pytest

from sessionscan.config import (
    Config,
    LoggingConfig,
    ScanConfig,
    SourceConfig,
    get_config_path,
    load_config,
)


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / "config.toml"


class TestDefaultConfig:
    def test_defaults(self):
        config = Config()
        assert config.scan.default_limit == 20
        assert config.scan.max_files == 0
        assert config.logging.level == "WARNING"
        assert config.sources == {}

    def test_unconfigured_source_is_enabled(self):
        config = Config()
        assert config.is_source_enabled("claude-code") is True
        assert config.source("claude-code").paths == []


class TestConfigPath:
    def test_default_location(self, home):
        assert get_config_path() == home / ".sessionscan" / "config.toml"

    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SESSIONSCAN_CONFIG", str(tmp_path / "custom.toml"))
        assert get_config_path() == tmp_path / "custom.toml"


class TestLoadConfig:
    def test_missing_file_returns_defaults(self, tmp_path):
        assert load_config(tmp_path / "missing.toml") == Config()

    def test_loads_from_default_location(self, home):
        path = home / ".sessionscan" / "config.toml"
        path.parent.mkdir()
        path.write_text("[scan]\ndefault_limit = 7\n")

        assert load_config().scan.default_limit == 7

    def test_partial_config_merges_with_defaults(self, config_file):
        config_file.write_text(
            """
[sources.aider]
paths = ["~/code/myproject"]

[sources.cursor]
enabled = false

[scan]
max_files = 500
"""
        )

        config = load_config(config_file)

        assert config.source("aider").enabled is True
        assert config.source("aider").expanded_paths() == [Path("~/code/myproject").expanduser()]
        assert config.is_source_enabled("cursor") is False
        assert config.scan.max_files == 500
        assert config.scan.default_limit == 20
        assert config.logging.level == "WARNING"

    def test_log_level_is_normalized(self, config_file):
        config_file.write_text('[logging]\nlevel = "debug"\n')
        assert load_config(config_file).logging.level == "DEBUG"

    def test_invalid_toml_returns_defaults(self, config_file):
        config_file.write_text("[scan\ndefault_limit = ")
        assert load_config(config_file) == Config()

    def test_invalid_values_return_defaults(self, config_file):
        config_file.write_text('[scan]\ndefault_limit = -3\n[logging]\nlevel = "LOUD"\n')
        assert load_config(config_file) == Config()

    def test_non_table_source_is_ignored(self, config_file):
        config_file.write_text('[sources]\naider = "yes"\n')
        assert load_config(config_file).sources == {}

    @pytest.mark.parametrize(
        "content",
        ['sources = "x"\n', "scan = 5\n", "logging = 1\n", "scan = [1, 2]\n"],
    )
    def test_non_table_section_is_ignored(self, config_file, content):
        config_file.write_text(content)
        assert load_config(config_file) == Config()

    def test_non_table_section_keeps_other_sections(self, config_file):
        config_file.write_text('logging = "debug"\n[scan]\nmax_files = 9\n')

        config = load_config(config_file)

        assert config.scan.max_files == 9
        assert config.logging.level == "WARNING"


class TestModels:
    def test_rejects_unknown_level(self):
        with pytest.raises(ValueError):
            LoggingConfig(level="LOUD")

    def test_rejects_negative_limits(self):
        with pytest.raises(ValueError):
            ScanConfig(max_files=-1)

    def test_source_paths_default_empty(self):
        assert SourceConfig().expanded_paths() == []
