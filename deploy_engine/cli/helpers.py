"""Shared helpers for CLI commands."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from ..core.deployer import Deployer, LogSink
from ..models.config import EngineSettings
from ..models.deployment import LogLevel
from ..services.exceptions import ConfigError
from ..utils.config_manager import ConfigManager

console = Console()

LEVEL_STYLES = {
    LogLevel.INFO: "",
    LogLevel.SUCCESS: "green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red",
}


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def console_sink(build_id: str) -> LogSink:
    """Sink printing build and runtime output to the terminal."""
    def sink(message: str, level: LogLevel) -> None:
        style = LEVEL_STYLES.get(level, "")
        console.print(message, style=style or None, markup=False, highlight=False)
    return sink


def load_settings(config_file: Optional[Path]) -> EngineSettings:
    try:
        return ConfigManager(config_file).load_settings()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def get_deployer(ctx: click.Context) -> Deployer:
    """Build a Deployer from the settings stored on the CLI context."""
    settings = (ctx.obj or {}).get('settings') or EngineSettings()
    return Deployer(settings=settings, sink_factory=console_sink)


def run_async(coro):
    return asyncio.run(coro)
