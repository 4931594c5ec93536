"""Core infrastructure: settings, exceptions and platform helpers."""

from flutter_bridge.core.config import BridgeSettings, get_config, load_config, load_config_file
from flutter_bridge.core.exceptions import (
    ConfigError,
    FlutterBridgeError,
    InvalidTargetError,
    SdkError,
    ToolchainNotFoundError,
    UnsupportedFeatureError,
)

__all__ = [
    "BridgeSettings",
    "ConfigError",
    "FlutterBridgeError",
    "InvalidTargetError",
    "SdkError",
    "ToolchainNotFoundError",
    "UnsupportedFeatureError",
    "get_config",
    "load_config",
    "load_config_file",
]
