"""Command line interface for flutter-bridge.

Example:
    $ flutter-bridge --config flutter-bridge.yaml info --sdk ~/flutter
    $ flutter-bridge doctor --sdk ~/flutter
    $ flutter-bridge config-get android-studio-dir --sdk ~/flutter
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from flutter_bridge import __version__
from flutter_bridge.cli_utils import (
    EXIT_ERROR,
    EXIT_SUCCESS,
    _error,
    _info,
    _load_settings,
    _resolve_sdk_path,
    _setup_logging,
    _warning,
    console,
)
from flutter_bridge.process.executor import OutputChunk
from flutter_bridge.sdk.command import FlutterCommand
from flutter_bridge.sdk.handle import FlutterSdk

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="flutter-bridge",
    help="Locate a Flutter SDK and run its tool the way an IDE does",
    no_args_is_help=True,
)

SDK_OPTION = typer.Option(
    None,
    "--sdk",
    "-s",
    help="Flutter SDK root (default: sdk_path from the settings file)",
)


@app.callback()
def main(
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a flutter-bridge YAML settings file",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Global options."""
    _setup_logging(verbose)
    _load_settings(config)


def _open_sdk(sdk: Path | None) -> FlutterSdk:
    path = _resolve_sdk_path(sdk)
    handle = FlutterSdk.for_path(path)
    if handle is None:
        _error(f"Not a Flutter SDK: {path}")
        raise typer.Exit(code=EXIT_ERROR)
    return handle


def _echo(chunk: OutputChunk) -> None:
    console.print(chunk.text, end="", markup=False, highlight=False)


def _run_streaming(handle: FlutterSdk, command: FlutterCommand) -> None:
    _info(f"$ {escape(command.display_command)}")
    exit_code = handle.executor.run(command, on_output=_echo)
    if exit_code is None:
        _error(f"Could not run {command.display_command}")
        raise typer.Exit(code=EXIT_ERROR)
    raise typer.Exit(code=EXIT_SUCCESS if exit_code == 0 else EXIT_ERROR)


@app.command(name="info")
def info_command(sdk: Path | None = SDK_OPTION) -> None:
    """Show the SDK's location, version and supported features."""
    handle = _open_sdk(sdk)
    version = handle.version

    table = Table(title="Flutter SDK", caption=f"flutter-bridge {__version__}", show_header=False)
    table.add_column("Property", style="bold")
    table.add_column("Value")
    table.add_row("Home", handle.home_path)
    table.add_row("Version", str(version))
    table.add_row("Dart SDK", handle.dart_sdk_path() or "[dim]not cached[/dim]")
    table.add_row("test --machine", "yes" if version.supports_test_machine_mode else "no")
    table.add_row("test --plain-name", "yes" if version.supports_test_name_filtering else "no")
    console.print(table)
    if not version.is_min_recommended_supported:
        _warning(f"Flutter SDK {version} is older than the minimum recommended version")


@app.command(name="version")
def version_command(sdk: Path | None = SDK_OPTION) -> None:
    """Run 'flutter --version'."""
    handle = _open_sdk(sdk)
    _run_streaming(handle, handle.flutter_version())


@app.command(name="doctor")
def doctor_command(sdk: Path | None = SDK_OPTION) -> None:
    """Run 'flutter doctor'."""
    handle = _open_sdk(sdk)
    _run_streaming(handle, handle.flutter_doctor())


@app.command(name="config-get")
def config_get_command(
    key: str = typer.Argument(..., help="Configuration key, e.g. android-studio-dir"),
    sdk: Path | None = SDK_OPTION,
) -> None:
    """Print one value from 'flutter config --machine'."""
    handle = _open_sdk(sdk)
    value = handle.query_flutter_config(key, use_cached_value=False)
    if value is None:
        _error(f"No value for '{key}'")
        raise typer.Exit(code=EXIT_ERROR)
    console.print(value, markup=False, highlight=False)


@app.command(name="samples")
def samples_command(sdk: Path | None = SDK_OPTION) -> None:
    """List the code samples the SDK can create."""
    handle = _open_sdk(sdk)
    samples = handle.get_samples()
    if not samples:
        _error("No samples available")
        raise typer.Exit(code=EXIT_ERROR)

    table = Table(title="Flutter samples")
    table.add_column("Sample", style="bold")
    table.add_column("Library")
    table.add_column("Description")
    for sample in samples:
        table.add_row(sample.display_label, sample.library, sample.description)
    console.print(table)


if __name__ == "__main__":
    app()
