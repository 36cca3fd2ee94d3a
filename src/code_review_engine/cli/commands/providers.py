"""Providers command for the code-review CLI."""

import asyncio
from pathlib import Path
from typing import Any

import typer
from loguru import logger
from rich.table import Table

from ...analysis.review.registry import ProviderRegistry, create_default_registry
from ...core.exceptions import CodeReviewError, ConfigValidationError
from ...core.settings import JsonFileSettingsStore
from ..output import console, print_error, print_info, print_json, print_success

# Create providers subcommand app
providers_app = typer.Typer(help="🔌 Manage third-party analysis providers")


def _open_registry(ctx: typer.Context) -> ProviderRegistry:
    settings_path: Path | None = (ctx.obj or {}).get("settings_path")
    return create_default_registry(JsonFileSettingsStore(settings_path))


def mask_secret(value: str) -> str:
    """Hide all but the last four characters of a credential."""
    if len(value) <= 4:
        return "****"
    return f"****{value[-4:]}"


def _masked(wire: dict[str, Any]) -> dict[str, Any]:
    masked = dict(wire)
    if isinstance(masked.get("apiKey"), str):
        masked["apiKey"] = mask_secret(masked["apiKey"])
    return masked


def parse_headers(values: list[str]) -> dict[str, str]:
    """Parse repeated ``Name=Value`` header flags."""
    headers: dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected Name=Value, got '{item}'")
        headers[name.strip()] = value.strip()
    return headers


@providers_app.command("list")
def list_providers(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List available providers and their status."""
    registry = _open_registry(ctx)
    rows = [
        {
            "id": template.provider_id,
            "name": template.name,
            "configured": registry.get_config(template.provider_id) is not None,
            "enabled": registry.is_enabled(template.provider_id),
            "description": template.description,
        }
        for template in registry.list_available()
    ]

    if json_output:
        print_json(rows)
        return

    table = Table(title="Providers", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Configured", justify="center")
    table.add_column("Enabled", justify="center")
    table.add_column("Description", style="dim")
    for row in rows:
        table.add_row(
            row["id"],
            row["name"],
            "✓" if row["configured"] else "-",
            "[green]✓[/green]" if row["enabled"] else "-",
            row["description"],
        )
    console.print(table)


@providers_app.command()
def show(
    ctx: typer.Context,
    provider_id: str = typer.Argument(..., help="Provider id"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show a provider's template and stored configuration (API key masked)."""
    registry = _open_registry(ctx)
    try:
        template = registry.get_template(provider_id)
    except CodeReviewError as e:
        print_error(str(e))
        raise typer.Exit(1)

    config = registry.get_config(provider_id)
    data = {
        "id": template.provider_id,
        "name": template.name,
        "description": template.description,
        "required": list(template.required_config),
        "optional": list(template.optional_config),
        "languages": sorted(template.supported_languages),
        "features": sorted(feature.value for feature in template.supported_features),
        "documentation": template.documentation_url,
        "enabled": registry.is_enabled(provider_id),
        "config": _masked(config.to_wire()) if config else None,
    }

    if json_output:
        print_json(data)
        return

    console.print(f"[bold blue]{template.name}[/bold blue] ({template.provider_id})")
    console.print(f"  {template.description}")
    console.print(f"  Required: {', '.join(template.required_config)}")
    console.print(f"  Optional: {', '.join(template.optional_config)}")
    console.print(f"  Languages: {', '.join(data['languages'])}")
    if template.documentation_url:
        console.print(f"  Docs: {template.documentation_url}")
    console.print(f"  Enabled: {'yes' if data['enabled'] else 'no'}")
    if data["config"] is None:
        print_info(f"Not configured. Example: {template.config_example}")
    else:
        for key, value in data["config"].items():
            console.print(f"  [cyan]{key}[/cyan]: {value}")


@providers_app.command("set")
def set_provider(
    ctx: typer.Context,
    provider_id: str = typer.Argument(..., help="Provider id"),
    api_key: str | None = typer.Option(None, "--api-key", help="API key or token"),
    endpoint: str | None = typer.Option(None, "--endpoint", help="Base URL of the API"),
    timeout: int | None = typer.Option(
        None, "--timeout", help="Per-request timeout in milliseconds"
    ),
    retry_attempts: int | None = typer.Option(
        None, "--retry-attempts", help="Retries after a failed request"
    ),
    headers: list[str] | None = typer.Option(
        None, "--header", help="Extra request header as Name=Value (repeatable)"
    ),
    project_key: str | None = typer.Option(
        None, "--project-key", help="SonarQube project key"
    ),
    repo_id: str | None = typer.Option(None, "--repo-id", help="CodeClimate repository id"),
    rules: str | None = typer.Option(None, "--rules", help="Semgrep rule set"),
) -> None:
    """Create or update a provider configuration.

    Values not passed on the command line keep their stored value.

    Examples:
        code-review providers set sonarqube --endpoint https://sonar.example.com --api-key squ_xxxxxxxxxx
        code-review providers set semgrep --api-key xxxxxxxxxxxx --rules p/security-audit
    """
    registry = _open_registry(ctx)
    existing = registry.get_config(provider_id)
    data: dict[str, Any] = existing.to_wire() if existing else {}

    updates = {
        "apiKey": api_key,
        "endpoint": endpoint,
        "timeout": timeout,
        "retryAttempts": retry_attempts,
        "projectKey": project_key,
        "repoId": repo_id,
        "rules": rules,
    }
    data.update({key: value for key, value in updates.items() if value is not None})
    if headers:
        data["customHeaders"] = {**data.get("customHeaders", {}), **parse_headers(headers)}

    try:
        asyncio.run(registry.set_config(provider_id, data))
    except ConfigValidationError as e:
        print_error(f"Invalid configuration for {provider_id}:")
        for error in e.errors:
            console.print(f"  [red]•[/red] {error.field}: {error.message}")
        raise typer.Exit(1)
    except CodeReviewError as e:
        logger.error(f"Failed to save provider configuration: {e}")
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Saved configuration for {provider_id}")


@providers_app.command()
def enable(
    ctx: typer.Context,
    provider_id: str = typer.Argument(..., help="Provider id"),
) -> None:
    """Enable a configured provider."""
    registry = _open_registry(ctx)
    try:
        asyncio.run(registry.enable(provider_id))
    except CodeReviewError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success(f"Enabled {provider_id}")


@providers_app.command()
def disable(
    ctx: typer.Context,
    provider_id: str = typer.Argument(..., help="Provider id"),
) -> None:
    """Disable a provider (its configuration is kept)."""
    registry = _open_registry(ctx)
    try:
        asyncio.run(registry.disable(provider_id))
    except CodeReviewError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success(f"Disabled {provider_id}")


@providers_app.command()
def remove(
    ctx: typer.Context,
    provider_id: str = typer.Argument(..., help="Provider id"),
) -> None:
    """Remove a provider configuration."""
    registry = _open_registry(ctx)
    try:
        asyncio.run(registry.remove_config(provider_id))
    except CodeReviewError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_success(f"Removed configuration for {provider_id}")


@providers_app.command()
def test(
    ctx: typer.Context,
    provider_id: str = typer.Argument(..., help="Provider id"),
) -> None:
    """Check that a configured provider is reachable with its credentials."""
    registry = _open_registry(ctx)
    status = asyncio.run(registry.test_connection(provider_id))

    if status.is_healthy:
        print_success(
            f"{provider_id} is reachable ({status.response_time_ms:.0f}ms)"
        )
        return

    print_error(f"{provider_id} is not reachable: {status.error_message}")
    raise typer.Exit(1)
