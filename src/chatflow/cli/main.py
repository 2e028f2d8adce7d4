"""Main CLI entry point for chatflow"""

import typer

from chatflow import __version__
from chatflow.cli.commands import chat as chat_module
from chatflow.cli.commands import server as server_module
from chatflow.cli.commands import sweep as sweep_module
from chatflow.cli.commands import validate as validate_module

app = typer.Typer(
    name="chatflow",
    help="chatflow - conversational flow execution engine",
    add_completion=False,
)

# Register subcommands
app.add_typer(server_module.app, name="server", help="Start the chatflow API server")
app.add_typer(chat_module.app, name="chat", help="Chat with a graph in the terminal")
app.add_typer(validate_module.app, name="validate", help="Check graph definition files")
app.add_typer(sweep_module.app, name="sweep", help="Expire idle waiting executions")


def version_callback(value: bool) -> None:
    """Print version and exit"""
    if value:
        typer.echo(f"chatflow version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """chatflow - conversational flow execution engine"""
    pass


def cli() -> None:
    """Entry point for CLI"""
    app()


if __name__ == "__main__":
    cli()
