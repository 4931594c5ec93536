"""Shared helpers for the flutter-bridge command line interface."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from flutter_bridge.core.config import get_config, load_config_file
from flutter_bridge.core.exceptions import ConfigError

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool = False) -> None:
    """Route log records through Rich; DEBUG when verbose, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


def _error(message: str) -> None:
    err_console.print(f"[red]Error:[/red] {escape(message)}")


def _warning(message: str) -> None:
    err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}")


def _info(message: str) -> None:
    console.print(f"[cyan]{message}[/cyan]")


def _load_settings(config: Path | None) -> None:
    """Load the settings file if one was given.

    Raises:
        typer.Exit: With EXIT_CONFIG_ERROR if the file is invalid.

    """
    if config is None:
        return
    try:
        load_config_file(config)
    except ConfigError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None


def _resolve_sdk_path(sdk: Path | None) -> Path:
    """Return the SDK root from the option or the settings.

    Raises:
        typer.Exit: With EXIT_CONFIG_ERROR if neither names an SDK.

    """
    if sdk is not None:
        return sdk
    configured = get_config().sdk_path
    if configured:
        return Path(configured)
    _error("No Flutter SDK given; pass --sdk or set sdk_path in the settings file")
    raise typer.Exit(code=EXIT_CONFIG_ERROR)
