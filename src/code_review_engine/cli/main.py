"""Entry point for the code-review CLI."""

import sys
from pathlib import Path

import typer
from loguru import logger

from .. import __version__
from .commands.providers import providers_app
from .commands.review import review

app = typer.Typer(
    name="code-review",
    help="🔍 Review source code with heuristic, AI and third-party analysis",
    no_args_is_help=True,
    add_completion=False,
)

app.command("review")(review)
app.add_typer(providers_app, name="providers")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"code-review {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging"
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        help="Settings file (defaults to ~/.code-review-engine/settings.json, "
        "or $CODE_REVIEW_SETTINGS)",
        dir_okay=False,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Code review engine command-line interface."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")

    ctx.ensure_object(dict)
    ctx.obj["settings_path"] = settings


if __name__ == "__main__":
    app()
