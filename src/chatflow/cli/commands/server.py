"""Server command to start API."""

import os
from pathlib import Path

import typer
import uvicorn

from chatflow.config.loader import CONFIG_PATH_ENV, ConfigLoader
from chatflow.core.errors import ConfigError
from chatflow.observability.logging import setup_logging

app = typer.Typer(help="Start API server")


@app.callback(invoke_without_command=True)
def start_server(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to chatflow.yaml", exists=True
    ),
    host: str = typer.Option("0.0.0.0", "--host", "-h"),
    port: int = typer.Option(8000, "--port", "-p"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    """Start the chatflow API server."""

    # 1. Validate Config
    try:
        engine_config = ConfigLoader.load(config) if config else ConfigLoader.from_env()
    except (ConfigError, FileNotFoundError) as e:
        typer.echo(f"Invalid config: {e}", err=True)
        raise typer.Exit(1) from e

    setup_logging(engine_config.logging.level, engine_config.logging.json_file)

    # 2. Set Env Vars for the server process (it loads config from env)
    if config:
        os.environ[CONFIG_PATH_ENV] = str(config.absolute())

    typer.echo(f"Starting chatflow server on http://{host}:{port}")
    if config:
        typer.echo(f"   Config: {config}")

    uvicorn.run(
        "chatflow.server.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level=engine_config.logging.level.lower(),
    )
