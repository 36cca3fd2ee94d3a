"""Shared console output helpers for the CLI."""

from typing import Any

import orjson
import typer
from rich.console import Console

console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[bold red]✗[/bold red] {message}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_info(message: str) -> None:
    console.print(f"[blue]ℹ[/blue] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def to_json(data: Any) -> str:
    """Serialize CLI output as indented JSON (enum values as plain strings)."""
    return orjson.dumps(data, option=orjson.OPT_INDENT_2).decode()


def print_json(data: Any, title: str | None = None) -> None:
    """Print JSON to stdout without rich wrapping so it stays machine-readable.

    Args:
        data: JSON-serializable data
        title: Optional heading printed before the document
    """
    if title:
        console.print(f"[bold blue]{title}[/bold blue]")
    typer.echo(to_json(data))
