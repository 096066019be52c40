"""CLI commands for inspecting and validating sitescrape settings."""

from __future__ import annotations

import json

import typer
from rich.console import Console

settings_app = typer.Typer(help="Inspect and validate sitescrape configuration.")
console = Console()


@settings_app.command("show")
def show_settings() -> None:
    """Display the currently resolved settings."""
    from sitescrape.settings import get_settings

    settings = get_settings()
    console.print_json(json.dumps(settings.model_dump(mode="json"), indent=2, default=str))


@settings_app.command("validate")
def validate_settings() -> None:
    """Validate settings and report any issues."""
    from pydantic import ValidationError

    from sitescrape.models.policy import SessionPolicy
    from sitescrape.settings import get_settings

    try:
        settings = get_settings()
        policy = SessionPolicy.from_settings(settings)
    except ValidationError as e:
        console.print(f"[red]✗[/red] Settings validation failed: {e}")
        raise typer.Exit(code=1)

    console.print("[green]✓[/green] Settings are valid.")
    console.print(f"  Environment: {settings.env}")
    console.print(f"  Headless: {policy.headless}  Sandboxed: {policy.sandboxed}")
    console.print(f"  Rate limit: {policy.rate_limit_ms}ms  Hard timeout: {policy.hard_timeout_ms}ms")
    console.print(f"  Proxy: {policy.proxy.url or '-'}")
    console.print(f"  Block lists: {len(settings.blocklists.sources)}")
