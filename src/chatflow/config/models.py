"""Configuration models for the chatflow engine and its server."""

from typing import Literal

from pydantic import BaseModel, Field

from chatflow.core.constants import DEFAULT_EXTERNAL_TIMEOUT_SECONDS, MAX_STEPS

SUPPORTED_VERSIONS = frozenset({"1.0"})
CURRENT_VERSION = "1.0"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    json_file: str | None = Field(
        default=None, description="Optional path of a rotating JSON log file"
    )


class PersistenceConfig(BaseModel):
    """Execution store configuration."""

    backend: Literal["memory", "sqlite"] = Field(default="memory", description="Backend type")
    path: str = Field(default="chatflow.db", description="SQLite database path")


class GraphSourceConfig(BaseModel):
    """Where graph definition snapshots are read from."""

    directory: str | None = Field(
        default=None, description="Directory of graph YAML/JSON files (one file per version)"
    )


class ChannelConfig(BaseModel):
    """Outbound messaging channel."""

    backend: Literal["log", "http"] = Field(
        default="log", description="'log' only records messages; 'http' posts them"
    )
    url: str | None = Field(default=None, description="Send endpoint for the http backend")
    api_key: str | None = Field(default=None, description="Sent as the 'apikey' header")


class EngineConfig(BaseModel):
    """Root configuration (chatflow.yaml)."""

    version: str = Field(default=CURRENT_VERSION, description="Config format version")
    max_steps: int = Field(
        default=MAX_STEPS, gt=0, description="Nodes processed per turn before failing"
    )
    external_call_timeout_seconds: float = Field(
        default=DEFAULT_EXTERNAL_TIMEOUT_SECONDS,
        gt=0,
        description="Timeout for each send, webhook, api_call and store call",
    )
    max_delay_ms: int = Field(
        default=5000, ge=0, description="Upper bound for delay nodes and typing delay"
    )
    graph_cache_size: int = Field(default=256, gt=0, description="Cached graph snapshots")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    graphs: GraphSourceConfig = Field(default_factory=GraphSourceConfig)
    channel: ChannelConfig = Field(default_factory=ChannelConfig)
