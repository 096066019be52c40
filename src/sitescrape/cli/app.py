"""Unified CLI entry point for sitescrape.

Config precedence: settings.default.toml -> settings.<env>.toml -> settings.local.toml -> env vars (SITESCRAPE_* with double underscores) -> CLI flags.
"""

from __future__ import annotations

import typer

from sitescrape.cli.run_cmd import run_command
from sitescrape.cli.settings_cmd import settings_app

try:
    from importlib.metadata import version

    VERSION = version("sitescrape")
except Exception:
    VERSION = "unknown"

APP_HELP = (
    "sitescrape: drive a headless browser through your scrapers and emit records. "
    "Config precedence: settings.default.toml -> settings.<env>.toml -> settings.local.toml "
    "-> env vars (SITESCRAPE_* with __) -> CLI flags."
)

app = typer.Typer(add_completion=True, help=APP_HELP)

app.command("run")(run_command)
app.add_typer(settings_app, name="settings")


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context, version: bool = typer.Option(False, "--version", help="Show version and exit.")) -> None:
    """Show help when no subcommand is provided."""
    if version:
        typer.echo(f"sitescrape {VERSION}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


if __name__ == "__main__":
    app()
