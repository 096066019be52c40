"""Orchestration: runner, browser sessions and the record-stream watchdog."""

from sitescrape.runner.runner import Runner
from sitescrape.runner.session import Session
from sitescrape.runner.watchdog import watchdog

__all__ = ["Runner", "Session", "watchdog"]
