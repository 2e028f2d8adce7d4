"""Configuration module for chatflow."""

from chatflow.config.loader import ConfigLoader
from chatflow.config.models import (
    ChannelConfig,
    EngineConfig,
    LoggingConfig,
    PersistenceConfig,
)

__all__ = [
    "ChannelConfig",
    "ConfigLoader",
    "EngineConfig",
    "LoggingConfig",
    "PersistenceConfig",
]
