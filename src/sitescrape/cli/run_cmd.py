"""``sitescrape run``: load a scraper (and optionally a custom runner) and run it."""

from __future__ import annotations

import asyncio
import importlib
import importlib.util
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console

from sitescrape.exceptions import SessionClosedError, WatchdogTimeoutError

# stdout belongs to ConsoleSink records
console = Console(stderr=True)
logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_WATCHDOG = 2
EXIT_SESSION_CLOSED = 3

SLOW_MO_MS = 250


def _import_module(module_name: str) -> Any:
    """Import *module_name* by dotted name or file path, falling back to the working directory."""
    if module_name.endswith(".py") or "/" in module_name:
        path = Path(module_name).resolve()
        spec = importlib.util.spec_from_file_location(path.stem, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load module from {path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[path.stem] = module
        spec.loader.exec_module(module)
        return module

    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as exc:
        # Only retry when the module itself is missing, not one of its imports.
        if exc.name is None or not module_name.startswith(exc.name):
            raise
    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)
    return importlib.import_module(module_name)


def load_object(target: str, default_name: str) -> Any:
    """Resolve ``module:Name`` (or bare ``module``, meaning ``module:<default_name>``)."""
    module_name, _, attr = target.partition(":")
    module = _import_module(module_name)
    name = attr or default_name
    try:
        return getattr(module, name)
    except AttributeError:
        raise typer.BadParameter(f"{module_name} has no attribute {name!r}") from None


def policy_overrides(
    *,
    visible: bool = False,
    slow: bool = False,
    no_sandbox: bool = False,
    clear_cookies: bool = False,
    clear_cache: bool = False,
    browser_console: bool = False,
    proxy: str | None = None,
    auth: str | None = None,
    no_images: bool = False,
    no_ads: bool = False,
    throttle: int | None = None,
    hard_timeout: int | None = None,
) -> dict[str, Any]:
    """Translate CLI flags into ``SessionPolicy`` overrides. Unset flags leave settings alone."""
    overrides: dict[str, Any] = {}
    if visible:
        overrides["headless"] = False
    if slow:
        overrides["slow_mo_ms"] = SLOW_MO_MS
    if no_sandbox:
        overrides["sandboxed"] = False
    if clear_cookies:
        overrides["clear_cookies_on_navigate"] = True
    if clear_cache:
        overrides["clear_cache_on_launch"] = True
    if browser_console:
        overrides["browser_console"] = True
    if proxy:
        overrides["proxy"] = {"url": proxy, "auth": auth or ""}
    if no_images:
        overrides["load_images"] = False
    if no_ads:
        overrides["load_ads"] = False
    if throttle is not None:
        overrides["rate_limit_ms"] = throttle
    if hard_timeout is not None:
        overrides["hard_timeout_ms"] = hard_timeout
    return overrides


def run_command(
    scraper: str = typer.Argument(..., help="Scraper to run: module:Class, or module (class defaults to Scraper)."),
    runner: str = typer.Option("sitescrape.runner:Runner", "--runner", "-r", help="Runner class as module:Class."),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Start from this URL instead of the scraper's targets."),
    visible: bool = typer.Option(False, "--visible", "-v", help="Show Chromium while scraping."),
    slow: bool = typer.Option(False, "--slow", help="Run the browser in slow motion."),
    no_sandbox: bool = typer.Option(False, "--no-sandbox", "-x", help="Disable Chromium's sandbox."),
    clear_cookies: bool = typer.Option(False, "--clear-cookies", "-c", help="Clear cookies before every page load."),
    clear_cache: bool = typer.Option(False, "--clear-cache", help="Disable the browser cache for every page."),
    browser_console: bool = typer.Option(False, "--browser-console", "-b", help="Log console messages from pages."),
    proxy: Optional[str] = typer.Option(None, "--proxy", "-p", help="URL of an HTTP proxy to scrape through."),
    auth: Optional[str] = typer.Option(None, "--auth", "-a", help="Proxy authorization as USER:PASS."),
    no_images: bool = typer.Option(False, "--no-images", "-i", help="Block all image loads."),
    no_ads: bool = typer.Option(False, "--no-ads", "-d", help="Block ads and trackers using public block lists."),
    throttle: Optional[int] = typer.Option(None, "--throttle", "-t", min=0, help="At most one page load per MS."),
    hard_timeout: Optional[int] = typer.Option(
        None, "--hard-timeout", min=0, help="Abort if no record arrives within MS (0 disables)."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Logging level (default from settings)."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines."),
) -> None:
    """Run a scraper and write its records to the runner's sinks.

    Exit codes: 0 success, 1 failure, 2 hard timeout hit, 3 browser session closed.
    """
    from sitescrape.logging_utils import configure_logging
    from sitescrape.models.policy import SessionPolicy
    from sitescrape.settings import get_settings

    settings = get_settings()
    configure_logging(log_level or settings.logging.level, json_logs or settings.logging.json_format)

    overrides = policy_overrides(
        visible=visible,
        slow=slow,
        no_sandbox=no_sandbox,
        clear_cookies=clear_cookies,
        clear_cache=clear_cache,
        browser_console=browser_console,
        proxy=proxy,
        auth=auth,
        no_images=no_images,
        no_ads=no_ads,
        throttle=throttle,
        hard_timeout=hard_timeout,
    )
    policy = SessionPolicy.from_settings(settings).merged(overrides)

    console.print(f"[dim]sitescrape: loading runner from {runner}[/dim]")
    runner_cls = load_object(runner, "Runner")
    console.print(f"[dim]sitescrape: loading scraper from {scraper}[/dim]")
    scraper_cls = load_object(scraper, "Scraper")

    runner_obj = runner_cls(settings, policy=policy)
    scraper_obj = scraper_cls(runner_obj, url)

    console.print("[dim]sitescrape: running...[/dim]")
    try:
        asyncio.run(runner_obj.run(scraper_obj))
    except WatchdogTimeoutError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=EXIT_WATCHDOG)
    except SessionClosedError as e:
        console.print(f"[red]✗[/red] Browser session closed: {e}")
        raise typer.Exit(code=EXIT_SESSION_CLOSED)
    except Exception as e:
        logger.debug("Run failed", exc_info=True)
        console.print(f"[red]✗[/red] Runner raised an error: {e}")
        raise typer.Exit(code=EXIT_FAILURE)

    console.print("[green]✓[/green] Runner exited successfully.")
