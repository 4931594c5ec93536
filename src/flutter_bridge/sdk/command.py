"""Flutter command descriptions.

A :class:`FlutterCommand` is the immutable description of one tool
invocation: which operation, the working directory and the arguments
that follow the operation's sub-command tokens. Building one never
starts a process; :meth:`FlutterCommand.create_command_line` turns it
into the OS-level :class:`CommandLine` that the executor spawns.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from flutter_bridge.core.config import get_config
from flutter_bridge.core.platform_command import format_command
from flutter_bridge.sdk import sdk_util

if TYPE_CHECKING:
    from flutter_bridge.sdk.handle import FlutterSdk

logger = logging.getLogger(__name__)

FLUTTER_HOST_ENV = "FLUTTER_HOST"


class CommandType(Enum):
    """Closed set of tool operations with their leading sub-command tokens."""

    VERSION = ("Flutter version", ("--version",))
    UPGRADE = ("Flutter upgrade", ("upgrade",))
    CLEAN = ("Flutter clean", ("clean",))
    DOCTOR = ("Flutter doctor", ("doctor",))
    CREATE = ("Flutter create", ("create",))
    PACKAGES_GET = ("Flutter packages get", ("packages", "get"))
    PACKAGES_UPGRADE = ("Flutter packages upgrade", ("packages", "upgrade"))
    PACKAGES_PUB = ("Flutter packages pub", ("packages", "pub"))
    MAKE_HOST_APP_EDITABLE = ("Flutter make-host-app-editable", ("make-host-app-editable",))
    BUILD = ("Flutter build", ("build",))
    CONFIG = ("Flutter config", ("config",))
    LIST_SAMPLES = ("Flutter sample", ("create", "--list-samples"))
    RUN = ("Flutter run", ("run",))
    ATTACH = ("Flutter attach", ("attach",))
    TEST = ("Flutter test", ("test",))
    WEB_RUN = ("Flutter web run", ("packages", "pub", "global", "run", "webdev", "daemon"))

    def __init__(self, title: str, subcommand: tuple[str, ...]) -> None:
        self.title = title
        self.subcommand = subcommand


# Commands that touch pub state; only one may run at a time
PUB_RELATED_COMMANDS = frozenset(
    {CommandType.PACKAGES_GET, CommandType.PACKAGES_UPGRADE, CommandType.UPGRADE}
)


@dataclass(frozen=True)
class CommandLine:
    """OS-level shape of a command: executable, parameters, cwd and env overrides.

    ``environment`` holds only the variables added on top of the parent
    process environment.
    """

    exe_path: str
    parameters: tuple[str, ...] = ()
    work_dir: Path | None = None
    environment: Mapping[str, str] = field(default_factory=dict)
    charset: str = "utf-8"

    @property
    def argv(self) -> list[str]:
        return [self.exe_path, *self.parameters]

    def with_parameters(self, parameters: tuple[str, ...] | list[str]) -> CommandLine:
        return replace(self, parameters=tuple(parameters))

    def with_exe_path(self, exe_path: str) -> CommandLine:
        return replace(self, exe_path=exe_path)

    def __str__(self) -> str:
        return format_command(self.argv)


class ArgumentRewriter(Protocol):
    """Backend hook that reshapes the command line of one command type."""

    def rewrite(self, command: FlutterCommand, line: CommandLine) -> CommandLine: ...

    def display(self, command: FlutterCommand) -> str: ...


def find_sublist(items: list[str] | tuple[str, ...], sub: tuple[str, ...]) -> int:
    """Return the index of the first occurrence of ``sub`` in ``items``, or -1."""
    if not sub:
        return 0
    for i in range(len(items) - len(sub) + 1):
        if tuple(items[i : i + len(sub)]) == sub:
            return i
    return -1


@dataclass(frozen=True)
class FlutterCommand:
    """One tool invocation, bound to the SDK that will run it.

    Attributes:
        sdk: The SDK handle whose tool runs the command.
        type: The operation.
        work_dir: Working directory, or None to inherit the caller's.
        args: Arguments following the sub-command tokens.

    """

    sdk: FlutterSdk
    type: CommandType
    work_dir: Path | None = None
    args: tuple[str, ...] = ()

    @property
    def is_pub_related(self) -> bool:
        return self.type in PUB_RELATED_COMMANDS

    @property
    def parameters(self) -> tuple[str, ...]:
        """Sub-command tokens followed by the arguments."""
        return (*self.type.subcommand, *self.args)

    @property
    def _rewriter(self) -> ArgumentRewriter | None:
        backend = self.sdk.backend
        if backend is None:
            return None
        return backend.rewriters.get(self.type)

    @property
    def display_command(self) -> str:
        """Human-readable command, e.g. ``flutter packages get``."""
        rewriter = self._rewriter
        if rewriter is not None:
            return rewriter.display(self)
        return format_command(["flutter", *self.parameters])

    def create_command_line(self) -> CommandLine:
        """Build the OS-level command line.

        Raises:
            ToolchainNotFoundError: If a backend rewrite cannot resolve its
                toolchain.

        """
        line = CommandLine(
            exe_path=str(sdk_util.flutter_tool_path(self.sdk.home)),
            parameters=self.parameters,
            work_dir=self.work_dir,
            environment={FLUTTER_HOST_ENV: get_config().host_name},
        )
        rewriter = self._rewriter
        if rewriter is not None:
            line = rewriter.rewrite(self, line)
        return line

    def __str__(self) -> str:
        return self.display_command
