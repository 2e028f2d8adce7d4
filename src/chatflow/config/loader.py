"""Config loader for YAML configuration files."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from chatflow.config.models import SUPPORTED_VERSIONS, EngineConfig
from chatflow.core.errors import ConfigError

CONFIG_PATH_ENV = "CHATFLOW_CONFIG_PATH"
DEFAULT_CONFIG_FILE = "chatflow.yaml"


class ConfigLoader:
    """Load EngineConfig from YAML files."""

    @staticmethod
    def load(path: Path | str) -> EngineConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to config directory or chatflow.yaml file

        Returns:
            Parsed EngineConfig instance

        Raises:
            FileNotFoundError: If no config file exists at path
            ConfigError: If the file content is invalid
        """
        config_path = Path(path)
        if config_path.is_dir():
            config_path = config_path / DEFAULT_CONFIG_FILE

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, encoding="utf-8") as f:
            data: Any = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping", path=str(config_path))

        version = str(data.get("version", "1.0"))
        if version not in SUPPORTED_VERSIONS:
            raise ConfigError(
                f"Unsupported config version '{version}'. Supported: {sorted(SUPPORTED_VERSIONS)}",
                path=str(config_path),
            )
        data["version"] = version

        try:
            return EngineConfig.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}", path=str(config_path)) from e

    @staticmethod
    def from_env() -> EngineConfig:
        """Load the file named by CHATFLOW_CONFIG_PATH, else ./chatflow.yaml, else defaults."""
        config_path = os.environ.get(CONFIG_PATH_ENV)
        if not config_path and os.path.exists(DEFAULT_CONFIG_FILE):
            config_path = DEFAULT_CONFIG_FILE
        if not config_path:
            return EngineConfig()
        return ConfigLoader.load(config_path)
