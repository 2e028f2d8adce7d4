"""Validate command: static checks of graph definition files."""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from chatflow.core.errors import ConfigError
from chatflow.graph.loader import GRAPH_SUFFIXES, GraphLoader
from chatflow.graph.validator import validate_graph

app = typer.Typer(help="Check graph definition files")


def collect_files(paths: list[Path]) -> list[Path]:
    """Expand directories into their graph files."""
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(sorted(p for p in path.iterdir() if p.suffix in GRAPH_SUFFIXES))
        else:
            files.append(path)
    return files


@app.callback(invoke_without_command=True)
def validate_graphs(
    paths: list[Path] = typer.Argument(..., help="Graph files or directories", exists=True),
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as errors"),
) -> None:
    """Report problems in graph definitions; exit 1 when any error is found."""
    console = Console()
    failed = False

    for file in collect_files(paths):
        try:
            graph = GraphLoader.load(file)
        except ConfigError as e:
            console.print(f"[red]✗[/] {escape(str(file))}: {escape(str(e))}")
            failed = True
            continue

        issues = validate_graph(graph)
        errors = [issue for issue in issues if issue.severity == "error"]
        if errors or (strict and issues):
            failed = True

        if not issues:
            console.print(f"[green]✓[/] {file} ({graph.id} v{graph.version})")
            continue

        table = Table(title=f"{file} ({graph.id} v{graph.version})", title_justify="left")
        table.add_column("Severity")
        table.add_column("Code")
        table.add_column("Node")
        table.add_column("Message")
        for issue in issues:
            style = "red" if issue.severity == "error" else "yellow"
            table.add_row(
                f"[{style}]{issue.severity}[/]",
                issue.code,
                issue.node_id or "",
                escape(issue.message),
            )
        console.print(table)

    if failed:
        raise typer.Exit(1)
