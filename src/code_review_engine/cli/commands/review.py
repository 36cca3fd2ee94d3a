"""Review command for the code-review CLI."""

import asyncio
from pathlib import Path

import typer
from loguru import logger

from ...analysis.reporters import ConsoleReporter, render_markdown
from ...analysis.review.engine import ReviewEngine
from ...analysis.review.models import (
    AnalysisType,
    IssueCategory,
    ReviewOptions,
    ReviewResult,
    Severity,
)
from ...analysis.review.registry import create_default_registry
from ...core.exceptions import CodeReviewError
from ...core.llm_client import LLMClient
from ...core.settings import JsonFileSettingsStore
from ..output import console, print_error, print_json, print_success, to_json

SEVERITY_CHOICES = ["all"] + [severity.value for severity in Severity]


def parse_severity(value: str) -> Severity | None:
    """Convert a ``--severity`` flag to a minimum severity (``all`` keeps everything)."""
    normalized = value.strip().lower()
    if normalized == "all":
        return None
    try:
        return Severity(normalized)
    except ValueError:
        raise typer.BadParameter(
            f"Must be one of: {', '.join(SEVERITY_CHOICES)}"
        ) from None


def review(
    ctx: typer.Context,
    target: Path = typer.Argument(
        ..., help="File or directory to review", exists=True, readable=True
    ),
    analysis_type: AnalysisType | None = typer.Option(
        None,
        "--type",
        "-t",
        help="Force file or directory scope (auto-detected by default)",
    ),
    extensions: list[str] | None = typer.Option(
        None,
        "--ext",
        "-e",
        help="File extension to include in directory scope (repeatable)",
    ),
    severity: str = typer.Option(
        "all",
        "--severity",
        "-s",
        help=f"Minimum severity to report ({'|'.join(SEVERITY_CHOICES)})",
    ),
    categories: list[IssueCategory] | None = typer.Option(
        None, "--category", "-c", help="Only report this category (repeatable)"
    ),
    third_party: bool = typer.Option(
        False, "--third-party", help="Also run enabled third-party providers"
    ),
    providers: list[str] | None = typer.Option(
        None,
        "--provider",
        "-p",
        help="Restrict third-party analysis to this provider (repeatable)",
    ),
    summary_only: bool = typer.Option(
        False, "--summary-only", help="Only print the summary, not every issue"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the report (markdown, or JSON with --json) to this file",
        dir_okay=False,
    ),
    model: str | None = typer.Option(
        None, "--model", help="LLM model (defaults based on provider)"
    ),
    provider: str | None = typer.Option(
        None, "--llm-provider", help="LLM provider: 'openai' or 'openrouter'"
    ),
) -> None:
    """🔍 Review a file or directory.

    [bold cyan]Examples:[/bold cyan]

    [green]Review a directory:[/green]
        $ code-review review src/

    [green]Only high and critical security findings:[/green]
        $ code-review review src/ --severity high --category security

    [green]Include SonarQube results and save JSON:[/green]
        $ code-review review src/ --third-party --provider sonarqube --json -o review.json
    """
    min_severity = parse_severity(severity)
    if provider and provider not in ("openai", "openrouter"):
        print_error(f"Invalid provider: {provider}. Must be 'openai' or 'openrouter'")
        raise typer.Exit(1)

    options = ReviewOptions(
        analysis_type=analysis_type,
        include_extensions=list(extensions) if extensions else None,
        severity_filter=min_severity,
        category_filter=list(categories) if categories else None,
        enable_third_party=third_party or bool(providers),
        provider_ids=list(providers) if providers else None,
        detailed=not summary_only,
    )
    settings_path = (ctx.obj or {}).get("settings_path")

    try:
        result = asyncio.run(
            run_review(target, options, settings_path, model=model, provider=provider)
        )
    except CodeReviewError as e:
        logger.error(f"Review failed: {e}")
        print_error(str(e))
        raise typer.Exit(1)

    if output is not None:
        text = (
            to_json(result.to_dict())
            if json_output
            else render_markdown(result, detailed=options.detailed)
        )
        output.write_text(text, encoding="utf-8")
        print_success(f"Report written to {output}")
        return

    if json_output:
        print_json(result.to_dict())
        return

    reporter = ConsoleReporter(console)
    reporter.print_summary(result)
    if not summary_only:
        reporter.print_report(result, detailed=True)


async def run_review(
    target: Path,
    options: ReviewOptions,
    settings_path: Path | None = None,
    model: str | None = None,
    provider: str | None = None,
) -> ReviewResult:
    """Build the registry and engine for one CLI invocation and run the review."""
    completion = LLMClient(model=model, provider=provider)
    registry = create_default_registry(JsonFileSettingsStore(settings_path))
    engine = ReviewEngine(completion, registry)
    return await engine.review(target, options)
