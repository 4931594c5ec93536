"""Bazel workspace backend.

In a Bazel workspace the Flutter SDK lives at a workspace-relative path
named by the plugin config file ``dart/config/intellij-plugins/flutter.json``,
and the Dart SDK comes from the project rather than from the Flutter SDK's
cache. Pub is invoked directly instead of through ``flutter packages pub``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from flutter_bridge.core.exceptions import ToolchainNotFoundError
from flutter_bridge.core.platform_command import format_command
from flutter_bridge.process.executor import CommandExecutor
from flutter_bridge.sdk import sdk_util
from flutter_bridge.sdk.command import CommandLine, CommandType, FlutterCommand, find_sublist
from flutter_bridge.sdk.handle import BackendOverride, FlutterSdk, ToolchainResolver
from flutter_bridge.sdk.version import FlutterSdkVersion

logger = logging.getLogger(__name__)

WORKSPACE_FILES = ("WORKSPACE", "WORKSPACE.bazel")
PLUGIN_CONFIG_PATH = Path("dart") / "config" / "intellij-plugins" / "flutter.json"

BAZEL_BACKEND = "bazel"


class PluginConfig(BaseModel):
    """Flutter plugin settings checked into a Bazel workspace."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    sdk_home: str | None = Field(default=None, alias="sdkHome")
    version_file: str | None = Field(default=None, alias="versionFile")
    daemon_script: str | None = Field(default=None, alias="daemonScript")
    doctor_script: str | None = Field(default=None, alias="doctorScript")


class Workspace(BaseModel):
    """A Bazel workspace and its Flutter plugin config."""

    model_config = ConfigDict(frozen=True)

    root: Path
    config: PluginConfig

    @property
    def sdk_home(self) -> str | None:
        return self.config.sdk_home

    @property
    def version_file(self) -> str | None:
        return self.config.version_file

    @classmethod
    def find_root(cls, start: Path) -> Path | None:
        """Return the nearest ancestor of ``start`` holding a WORKSPACE file."""
        start = start.resolve()
        for directory in (start, *start.parents):
            if any((directory / name).is_file() for name in WORKSPACE_FILES):
                return directory
        return None

    @classmethod
    def load(cls, project_dir: Path | str) -> Workspace | None:
        """Load the workspace containing ``project_dir``.

        Returns:
            The workspace, or None if there is no workspace or no readable
            plugin config.

        """
        root = cls.find_root(Path(project_dir))
        if root is None:
            return None

        config_file = root / PLUGIN_CONFIG_PATH
        try:
            data = json.loads(config_file.read_text(encoding="utf-8"))
            config = PluginConfig.model_validate(data)
        except FileNotFoundError:
            logger.debug("No Flutter plugin config in workspace %s", root)
            return None
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Invalid Flutter plugin config %s: %s", config_file, e)
            return None

        return cls(root=root, config=config)


class BazelPubRewriter:
    """Runs ``packages pub`` commands through the Dart SDK's pub directly."""

    def rewrite(self, command: FlutterCommand, line: CommandLine) -> CommandLine:
        # Strip the sub-command, since we talk directly to pub
        parameters = list(line.parameters)
        subcommand = CommandType.PACKAGES_PUB.subcommand
        index = find_sublist(parameters, subcommand)
        if index >= 0:
            del parameters[index : index + len(subcommand)]

        dart_sdk_path = command.sdk.dart_sdk_path()
        if dart_sdk_path is None:
            raise ToolchainNotFoundError("Unable to find the Dart SDK")

        return replace(
            line,
            exe_path=sdk_util.pub_path(dart_sdk_path),
            parameters=tuple(parameters),
        )

    def display(self, command: FlutterCommand) -> str:
        return format_command(["flutter", *command.args])


def bazel_backend(toolchain_resolver: ToolchainResolver) -> BackendOverride:
    return BackendOverride(
        name=BAZEL_BACKEND,
        toolchain_resolver=toolchain_resolver,
        rewriters={CommandType.PACKAGES_PUB: BazelPubRewriter()},
    )


def for_workspace(
    workspace: Workspace,
    toolchain_resolver: ToolchainResolver,
    executor: CommandExecutor | None = None,
) -> FlutterSdk | None:
    """Build the SDK handle for a Bazel workspace.

    The SDK home and version file are resolved relative to the workspace
    root; the usual SDK-root structural check does not apply.

    Args:
        workspace: The loaded workspace.
        toolchain_resolver: Returns the project's Dart SDK path.
        executor: Executor for the handle's flows.

    Returns:
        The handle, or None if the workspace does not name an existing SDK.

    """
    if not workspace.sdk_home:
        logger.warning("Workspace %s does not name a Flutter SDK", workspace.root)
        return None

    home = workspace.root / workspace.sdk_home
    if not home.is_dir():
        logger.warning("Flutter SDK of workspace %s not found at %s", workspace.root, home)
        return None

    version_file = workspace.root / workspace.version_file if workspace.version_file else None
    return FlutterSdk(
        home,
        FlutterSdkVersion.read_from_file(version_file),
        backend=bazel_backend(toolchain_resolver),
        executor=executor,
    )


def for_bazel(
    project_dir: Path | str,
    toolchain_resolver: ToolchainResolver,
    executor: CommandExecutor | None = None,
) -> FlutterSdk | None:
    """Return the Bazel SDK for a project, or None outside a Bazel workspace.

    Note that the Bazel SDK only supports a subset of the pub-based SDK's
    features.
    """
    workspace = Workspace.load(project_dir)
    if workspace is None:
        return None
    return for_workspace(workspace, toolchain_resolver, executor)
