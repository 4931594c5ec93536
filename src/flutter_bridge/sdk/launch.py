"""Values that parameterize command construction.

Run and launch modes, target devices, the pub root a command runs in,
and the optional settings for ``flutter create``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

PUBSPEC_FILE = "pubspec.yaml"


class RunMode(str, Enum):
    """How the IDE drives a launched process."""

    RUN = "run"
    DEBUG = "debug"
    TEST = "test"


class LaunchMode(str, Enum):
    """Build flavour the app is launched in."""

    DEBUG = "debug"
    PROFILE = "profile"
    RELEASE = "release"


@dataclass(frozen=True)
class FlutterDevice:
    """A device reported by the Flutter daemon."""

    device_id: str
    device_name: str = ""
    platform: str | None = None
    emulator: bool = False


class PubRoot:
    """A directory containing a ``pubspec.yaml``; the working root of most commands."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(os.path.abspath(root))

    @classmethod
    def for_directory(cls, directory: Path | str) -> PubRoot | None:
        """Return the pub root for a directory, or None if it has no pubspec."""
        path = Path(directory)
        if not (path / PUBSPEC_FILE).is_file():
            return None
        return cls(path)

    @property
    def pubspec(self) -> Path:
        return self.root / PUBSPEC_FILE

    @property
    def package_name(self) -> str | None:
        """Package name declared in the pubspec, or None if unreadable."""
        try:
            data = yaml.safe_load(self.pubspec.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            logger.debug("Cannot read %s: %s", self.pubspec, e)
            return None
        if isinstance(data, dict) and isinstance(data.get("name"), str):
            return data["name"]
        return None

    def contains(self, target: Path | str) -> bool:
        return self.relative_path(target) is not None

    def relative_path(self, target: Path | str) -> str | None:
        """Return ``target`` relative to the root using OS separators.

        Returns:
            The relative path ("." for the root itself), or None if the
            target is not inside the root.

        """
        absolute = Path(os.path.abspath(target))
        try:
            relative = absolute.relative_to(self.root)
        except ValueError:
            return None
        return str(relative)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PubRoot):
            return NotImplemented
        return self.root == other.root

    def __hash__(self) -> int:
        return hash(self.root)

    def __repr__(self) -> str:
        return f"PubRoot({str(self.root)!r})"


ProjectTemplate = Literal["app", "module", "package", "plugin", "skeleton"]


class CreateSettings(BaseModel):
    """Optional arguments for ``flutter create``.

    Example:
        >>> CreateSettings(template="plugin", org="com.example").to_args()
        ['--template', 'plugin', '--org', 'com.example']

    """

    model_config = ConfigDict(frozen=True)

    include_driver_test: bool = False
    template: ProjectTemplate | None = None
    description: str | None = None
    org: str | None = None
    swift: bool = Field(default=False, description="Use Swift for iOS code")
    kotlin: bool = Field(default=False, description="Use Kotlin for Android code")
    sample_id: str | None = None
    offline: bool = False

    def to_args(self) -> list[str]:
        args: list[str] = []
        if self.include_driver_test:
            args.append("--with-driver-test")
        if self.template:
            args.extend(["--template", self.template])
        if self.description:
            args.extend(["--description", self.description])
        if self.org:
            args.extend(["--org", self.org])
        if self.swift:
            args.extend(["--ios-language", "swift"])
        if self.kotlin:
            args.extend(["--android-language", "kotlin"])
        if self.sample_id:
            args.extend(["--sample", self.sample_id])
        if self.offline:
            args.append("--offline")
        return args
