"""Cross-platform command helpers.

The Flutter SDK ships its tools as shell scripts on POSIX and as batch
files on Windows (``bin/flutter`` vs ``bin/flutter.bat``). This module
hides that difference and renders argument lists for log lines and
display strings.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import Literal

# Platform detection
IS_WINDOWS = sys.platform == "win32"
IS_POSIX = not IS_WINDOWS

PlatformType = Literal["windows", "posix", "unknown"]


def get_platform() -> PlatformType:
    """Get the current platform type.

    Returns:
        'windows' for Windows, 'posix' for Linux/macOS, 'unknown' otherwise.

    """
    if IS_WINDOWS:
        return "windows"
    elif IS_POSIX:
        return "posix"
    return "unknown"


def script_name(base: str) -> str:
    """Return the platform-specific file name of an SDK tool script.

    Examples:
        >>> script_name("flutter")
        'flutter'  # on POSIX
        'flutter.bat'  # on Windows

    """
    return f"{base}.bat" if IS_WINDOWS else base


def _shell_quote(arg: str) -> str:
    """Quote an argument for display as part of a shell command.

    Uses single quotes which protect against all special characters
    except single quotes themselves.

    Args:
        arg: The argument to quote.

    Returns:
        Safely quoted argument.

    """
    if arg and all(c.isalnum() or c in "_-./=:,@+" for c in arg):
        return arg

    # ' becomes '\''
    return "'" + arg.replace("'", "'\\''") + "'"


def format_command(args: Iterable[str]) -> str:
    """Join arguments into a single human-readable command string."""
    return " ".join(_shell_quote(arg) for arg in args)
