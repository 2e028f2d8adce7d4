"""Sweep command: expire idle sessions (run it from a scheduler)."""

import asyncio
from pathlib import Path

import typer

from chatflow.config.loader import ConfigLoader
from chatflow.config.models import EngineConfig
from chatflow.core.errors import ConfigError
from chatflow.observability.logging import setup_logging
from chatflow.runtime.bootstrap import open_runtime

app = typer.Typer(help="Expire idle waiting executions")


async def run_sweep(config: EngineConfig) -> list[str]:
    async with open_runtime(config) as runtime:
        return await runtime.sweeper.sweep()


@app.callback(invoke_without_command=True)
def sweep(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to chatflow.yaml", exists=True
    ),
) -> None:
    """Expire every waiting execution idle past its graph's session timeout."""
    try:
        engine_config = ConfigLoader.load(config) if config else ConfigLoader.from_env()
    except (ConfigError, FileNotFoundError) as e:
        typer.echo(f"Invalid config: {e}", err=True)
        raise typer.Exit(1) from e

    setup_logging(engine_config.logging.level, engine_config.logging.json_file)
    if engine_config.persistence.backend == "memory":
        typer.echo("Persistence backend is 'memory'; nothing to sweep.", err=True)
        raise typer.Exit(0)

    expired = asyncio.run(run_sweep(engine_config))
    typer.echo(f"Expired {len(expired)} execution(s)")
    for execution_id in expired:
        typer.echo(f"  {execution_id}")
