"""Flutter SDK version marker parsing and capability checks.

The SDK records its version in a plain-text ``version`` file at the SDK
root. The value is coarse grained and only used to check for baseline
features, never for presentation. Parsing is defensive: anything that
does not look like ``MAJOR.MINOR.PATCH`` becomes the unknown version, for
which every capability check answers ``False``.
"""

from __future__ import annotations

import functools
import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

VERSION_FILE_NAME = "version"

_VERSION_PATTERN = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)(?:[-+.][0-9A-Za-z.+-]*)?$")

# Minimum versions for optional tool features
MIN_TEST_MACHINE_MODE = (0, 0, 12)
MIN_TEST_NAME_FILTERING = (0, 1, 5)
MIN_RECOMMENDED = (0, 0, 12)


def _parse(text: str) -> tuple[int, int, int] | None:
    match = _VERSION_PATTERN.match(text.strip())
    if match is None:
        return None
    return (int(match.group(1)), int(match.group(2)), int(match.group(3)))


@functools.total_ordering
class FlutterSdkVersion:
    """Immutable version value read from an SDK's version marker.

    Attributes:
        full_version: The raw (stripped) marker text, empty if unavailable.

    Example:
        >>> v = FlutterSdkVersion("0.2.3-pre.1")
        >>> v.supports_test_name_filtering
        True
        >>> FlutterSdkVersion("garbage").supports_test_machine_mode
        False

    """

    __slots__ = ("_parts", "full_version")

    def __init__(self, text: str | None) -> None:
        object.__setattr__(self, "full_version", (text or "").strip())
        object.__setattr__(self, "_parts", _parse(self.full_version))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def unknown(cls) -> FlutterSdkVersion:
        return cls(None)

    @classmethod
    def read_from_file(cls, path: Path | None) -> FlutterSdkVersion:
        """Read a version marker from an arbitrary file.

        Never raises; a missing or unreadable file gives the unknown version.
        """
        if path is None:
            return cls.unknown()
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.debug("Cannot read version file %s: %s", path, e)
            return cls.unknown()
        return cls(text)

    @classmethod
    def read_from_sdk(cls, home: Path) -> FlutterSdkVersion:
        """Read the version marker from an SDK root."""
        return cls.read_from_file(home / VERSION_FILE_NAME)

    @property
    def is_valid(self) -> bool:
        return self._parts is not None

    @property
    def parts(self) -> tuple[int, int, int] | None:
        return self._parts

    def _at_least(self, minimum: tuple[int, int, int]) -> bool:
        return self._parts is not None and self._parts >= minimum

    @property
    def supports_test_machine_mode(self) -> bool:
        """Whether ``flutter test --machine`` is available."""
        return self._at_least(MIN_TEST_MACHINE_MODE)

    @property
    def supports_test_name_filtering(self) -> bool:
        """Whether ``flutter test --plain-name`` is available."""
        return self._at_least(MIN_TEST_NAME_FILTERING)

    @property
    def is_min_recommended_supported(self) -> bool:
        return self._at_least(MIN_RECOMMENDED)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlutterSdkVersion):
            return NotImplemented
        if self._parts is None or other._parts is None:
            return self._parts is None and other._parts is None
        return self._parts == other._parts

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, FlutterSdkVersion):
            return NotImplemented
        # Unknown sorts before every real version
        if self._parts is None:
            return other._parts is not None
        if other._parts is None:
            return False
        return self._parts < other._parts

    def __hash__(self) -> int:
        return hash(self._parts)

    def __repr__(self) -> str:
        return f"FlutterSdkVersion({self.full_version!r})"

    def __str__(self) -> str:
        return self.full_version if self.is_valid else "unknown"
