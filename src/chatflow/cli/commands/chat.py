"""Chat command for interactive sessions."""

import asyncio
from pathlib import Path

import typer

from chatflow.core.errors import ChatflowError

app = typer.Typer(help="Chat with a graph in the terminal")


@app.callback(invoke_without_command=True)
def run_chat(
    graph: Path = typer.Argument(..., help="Graph definition file (.yaml/.json)", exists=True),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to chatflow.yaml or config directory"
    ),
    name: str | None = typer.Option(None, "--name", "-n", help="Contact name"),
    phone: str = typer.Option("+5500000000000", "--phone", help="Contact phone"),
    debug: bool = typer.Option(False, "--debug", help="Show turn status after each message"),
) -> None:
    """Start interactive chat session."""
    from chatflow.cli.chat_runner import ChatConfig, run_chat_session

    chat_config = ChatConfig(
        graph_path=graph,
        config_path=config,
        contact_name=name,
        contact_phone=phone,
        debug=debug,
    )

    try:
        asyncio.run(run_chat_session(chat_config))
    except KeyboardInterrupt:
        pass
    except (ChatflowError, FileNotFoundError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
