"""Tests for ConfigLoader."""

from pathlib import Path

import pytest

from chatflow.config import ConfigLoader, EngineConfig
from chatflow.config.loader import CONFIG_PATH_ENV
from chatflow.core.constants import MAX_STEPS
from chatflow.core.errors import ConfigError

EXAMPLE_CONFIG = Path(__file__).resolve().parents[3] / "examples" / "chatflow.yaml"


class TestLoad:
    """Tests for ConfigLoader.load()."""

    def test_loads_file(self, tmp_path):
        config_file = tmp_path / "engine.yaml"
        config_file.write_text(
            "version: '1.0'\n"
            "max_steps: 12\n"
            "persistence:\n"
            "  backend: sqlite\n"
            "  path: /tmp/x.db\n"
            "channel:\n"
            "  backend: http\n"
            "  url: https://send.example.com\n"
        )

        config = ConfigLoader.load(config_file)

        assert config.max_steps == 12
        assert config.persistence.backend == "sqlite"
        assert config.persistence.path == "/tmp/x.db"
        assert config.channel.url == "https://send.example.com"

    def test_directory_resolves_to_chatflow_yaml(self, tmp_path):
        (tmp_path / "chatflow.yaml").write_text("max_delay_ms: 100\n")

        assert ConfigLoader.load(tmp_path).max_delay_ms == 100

    def test_empty_file_gives_defaults(self, tmp_path):
        config_file = tmp_path / "chatflow.yaml"
        config_file.write_text("")

        assert ConfigLoader.load(config_file) == EngineConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load(tmp_path / "nope.yaml")

    def test_numeric_version_is_accepted(self, tmp_path):
        config_file = tmp_path / "chatflow.yaml"
        config_file.write_text("version: 1.0\n")

        assert ConfigLoader.load(config_file).version == "1.0"

    def test_unsupported_version(self, tmp_path):
        config_file = tmp_path / "chatflow.yaml"
        config_file.write_text("version: '2.0'\n")

        with pytest.raises(ConfigError, match="Unsupported config version"):
            ConfigLoader.load(config_file)

    def test_invalid_value(self, tmp_path):
        config_file = tmp_path / "chatflow.yaml"
        config_file.write_text("max_steps: 0\n")

        with pytest.raises(ConfigError, match="Invalid configuration"):
            ConfigLoader.load(config_file)

    def test_unknown_backend(self, tmp_path):
        config_file = tmp_path / "chatflow.yaml"
        config_file.write_text("persistence:\n  backend: postgres\n")

        with pytest.raises(ConfigError):
            ConfigLoader.load(config_file)

    def test_non_mapping(self, tmp_path):
        config_file = tmp_path / "chatflow.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            ConfigLoader.load(config_file)

    def test_example_config_is_valid(self):
        config = ConfigLoader.load(EXAMPLE_CONFIG)

        assert config.persistence.backend == "sqlite"
        assert config.graphs.directory == "examples/graphs"


class TestFromEnv:
    def test_defaults_when_nothing_is_configured(self, tmp_path, monkeypatch):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        monkeypatch.chdir(tmp_path)

        config = ConfigLoader.from_env()

        assert config.max_steps == MAX_STEPS
        assert config.channel.backend == "log"

    def test_environment_variable_wins(self, tmp_path, monkeypatch):
        (tmp_path / "chatflow.yaml").write_text("max_steps: 3\n")
        other = tmp_path / "other.yaml"
        other.write_text("max_steps: 9\n")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv(CONFIG_PATH_ENV, str(other))

        assert ConfigLoader.from_env().max_steps == 9

    def test_falls_back_to_working_directory(self, tmp_path, monkeypatch):
        (tmp_path / "chatflow.yaml").write_text("max_steps: 3\n")
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)
        monkeypatch.chdir(tmp_path)

        assert ConfigLoader.from_env().max_steps == 3


class TestEngineConfigDefaults:
    def test_defaults(self):
        config = EngineConfig()

        assert config.max_steps == 20
        assert config.external_call_timeout_seconds == 10.0
        assert config.max_delay_ms == 5000
        assert config.graph_cache_size == 256
        assert config.logging.level == "INFO"
        assert config.logging.json_file is None
        assert config.persistence.backend == "memory"
        assert config.graphs.directory is None
