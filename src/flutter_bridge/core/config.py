"""Settings for flutter-bridge.

Settings are a frozen Pydantic model held in a module-level singleton.
They stand in for the host IDE's global preferences (verbose logging,
widget tracking, Bazel mode) which decide some of the flags that go into
a command line.

Usage:
    from flutter_bridge.core.config import get_config, load_config_file

    load_config_file(Path("flutter-bridge.yaml"))
    if get_config().verbose_logging:
        ...

Settings file format (YAML, the ``flutter`` section is optional):

    flutter:
      verbose_logging: true
      track_widget_creation: false
      sdk_path: /opt/flutter
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from flutter_bridge.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_HOST_NAME = "flutter-bridge"
CONFIG_SECTION = "flutter"


class BridgeSettings(BaseModel):
    """Global settings consulted while building and running commands.

    Attributes:
        verbose_logging: Pass ``--verbose`` to run, attach and test.
        track_widget_creation: Pass ``--track-widget-creation`` to debug runs.
        use_bazel: Prefer the Bazel workspace backend over the pub SDK.
        host_name: Value exported to the tool as ``FLUTTER_HOST``.
        cache_failed_config_queries: Remember failed ``config`` lookups too.
        sdk_path: Default SDK root used by the CLI.

    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    verbose_logging: bool = Field(
        default=False,
        description="Pass --verbose to run, attach and test commands",
    )
    track_widget_creation: bool = Field(
        default=True,
        description="Pass --track-widget-creation when running in debug launch mode",
    )
    use_bazel: bool = Field(
        default=False,
        description="Use the Bazel workspace SDK instead of the pub-based SDK",
    )
    host_name: str = Field(
        default=DEFAULT_HOST_NAME,
        min_length=1,
        description="Identifier passed to the tool in the FLUTTER_HOST variable",
    )
    cache_failed_config_queries: bool = Field(
        default=True,
        description="Cache absent results of 'flutter config' lookups",
    )
    sdk_path: str | None = Field(
        default=None,
        description="Default Flutter SDK root for the command line interface",
    )


DEFAULT_SETTINGS = BridgeSettings()

_config: BridgeSettings | None = None
_config_lock = threading.Lock()


def load_config(data: dict[str, Any]) -> BridgeSettings:
    """Validate settings data and install it as the active configuration.

    Args:
        data: Settings mapping, either flat or nested under ``flutter``.

    Returns:
        The validated settings.

    Raises:
        ConfigError: If the data does not validate.

    """
    global _config

    if not isinstance(data, dict):
        raise ConfigError(f"Settings must be a mapping, got {type(data).__name__}")

    section = data.get(CONFIG_SECTION, data)
    if section is None:
        section = {}
    try:
        settings = BridgeSettings.model_validate(section)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e

    with _config_lock:
        _config = settings
    logger.debug("Loaded settings: %s", settings.model_dump())
    return settings


def load_config_file(path: Path) -> BridgeSettings:
    """Load settings from a YAML file.

    Args:
        path: Path to the YAML settings file.

    Returns:
        The validated settings.

    Raises:
        ConfigError: If the file cannot be read or parsed.

    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read settings file {path}: {e}") from e

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    logger.info("Loading settings from %s", path)
    return load_config(data)


def get_config() -> BridgeSettings:
    """Return the active settings, or defaults when nothing was loaded."""
    with _config_lock:
        return _config if _config is not None else DEFAULT_SETTINGS


def _reset_config() -> None:
    """Forget loaded settings (for tests)."""
    global _config
    with _config_lock:
        _config = None
