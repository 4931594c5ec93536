"""Filesystem layout of a Flutter SDK installation."""

from __future__ import annotations

import hashlib
from pathlib import Path

from flutter_bridge.core.platform_command import script_name

# The Dart SDK is cached inside the Flutter SDK at this sub-path
DART_SDK_SUFFIX = "/bin/cache/dart-sdk"
DART_CORE_SUFFIX = DART_SDK_SUFFIX + "/lib/core"

FLUTTER_PUBSPEC = Path("packages") / "flutter" / "pubspec.yaml"


def _normalize(path: str) -> str:
    return path.replace("\\", "/").rstrip("/")


def flutter_tool_path(home: Path) -> Path:
    return home / "bin" / script_name("flutter")


def is_flutter_sdk_home(path: str | Path) -> bool:
    """Check whether a directory looks like a Flutter SDK root.

    Requires the ``bin/flutter`` tool script and the flutter package's
    ``pubspec.yaml``.
    """
    home = Path(path)
    return flutter_tool_path(home).is_file() and (home / FLUTTER_PUBSPEC).is_file()


def strip_dart_sdk_suffix(dart_sdk_path: str | None) -> str | None:
    """Return the Flutter SDK root for a Dart SDK nested inside it.

    Returns:
        The SDK root, or None if the Dart SDK is not the one cached by a
        Flutter SDK.

    """
    if not dart_sdk_path:
        return None
    normalized = _normalize(dart_sdk_path)
    if not normalized.endswith(DART_SDK_SUFFIX):
        return None
    root = normalized[: -len(DART_SDK_SUFFIX)]
    return root or None


def path_to_dart_sdk(home: Path) -> str | None:
    """Return the Dart SDK cached within a Flutter SDK, or None if absent."""
    dart_sdk = home / "bin" / "cache" / "dart-sdk"
    return str(dart_sdk) if dart_sdk.is_dir() else None


def pub_path(dart_sdk_path: str) -> str:
    """Return the pub executable of a Dart SDK."""
    return str(Path(dart_sdk_path) / "bin" / script_name("pub"))


def location_hash(project_id: str) -> str:
    """Short stable hash identifying a project location."""
    return hashlib.sha1(project_id.encode("utf-8")).hexdigest()[:8]
