"""Exception hierarchy for flutter-bridge.

Only contract violations are raised. "Not found" and process/IO failures
are reported as ``None``/``False`` results plus a log entry, so callers
never need to catch anything for an SDK that is simply missing.
"""

from __future__ import annotations

__all__ = [
    "ConfigError",
    "FlutterBridgeError",
    "InvalidTargetError",
    "SdkError",
    "ToolchainNotFoundError",
    "UnsupportedFeatureError",
]


class FlutterBridgeError(Exception):
    """Base exception for all flutter-bridge errors."""


class ConfigError(FlutterBridgeError):
    """Settings file or settings content is invalid."""


class SdkError(FlutterBridgeError):
    """Base class for faults raised while shaping SDK commands."""


class InvalidTargetError(SdkError, ValueError):
    """Target file is not inside the project root it is launched from.

    Attributes:
        target: The offending target path.
        root: The project root the target was expected under.

    """

    def __init__(self, message: str, target: str = "", root: str = "") -> None:
        super().__init__(message)
        self.target = target
        self.root = root


class UnsupportedFeatureError(SdkError, RuntimeError):
    """Requested feature is not available in the installed SDK version.

    Attributes:
        feature: Short name of the feature that was requested.
        version: The SDK version text that lacks the feature.

    """

    def __init__(self, message: str, feature: str = "", version: str = "") -> None:
        super().__init__(message)
        self.feature = feature
        self.version = version


class ToolchainNotFoundError(SdkError):
    """The backend could not resolve the toolchain it needs to run a command."""
