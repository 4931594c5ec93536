"""Flutter SDK handle and per-operation command builders.

A :class:`FlutterSdk` is the identity of one installed SDK (root path and
version) plus a per-handle cache of ``flutter config`` values. It builds
:class:`~flutter_bridge.sdk.command.FlutterCommand` values for every
operation the host needs and offers a few blocking and background flows
on top of them (sync, create, packages get/upgrade).

An SDK may carry a :class:`BackendOverride`. The Bazel backend uses it to
resolve the Dart SDK through the project instead of the SDK root and to
rewrite the ``packages pub`` command line so it talks to pub directly.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from flutter_bridge.core.config import get_config
from flutter_bridge.core.exceptions import InvalidTargetError, UnsupportedFeatureError
from flutter_bridge.process.executor import CommandExecutor, OutputCallback, RunningProcess
from flutter_bridge.sdk import sdk_util
from flutter_bridge.sdk.command import ArgumentRewriter, CommandType, FlutterCommand
from flutter_bridge.sdk.config_query import ConfigQueryService
from flutter_bridge.sdk.launch import (
    CreateSettings,
    FlutterDevice,
    LaunchMode,
    PubRoot,
    RunMode,
)
from flutter_bridge.sdk.samples import FlutterSample, load_samples
from flutter_bridge.sdk.version import FlutterSdkVersion

logger = logging.getLogger(__name__)

TESTER_DEVICE_ID = "flutter-tester"

ToolchainResolver = Callable[[], str | None]

_default_executor: CommandExecutor | None = None
_default_executor_lock = threading.Lock()


def default_executor() -> CommandExecutor:
    """Return the process-wide executor shared by handles created without one."""
    global _default_executor
    with _default_executor_lock:
        if _default_executor is None:
            _default_executor = CommandExecutor()
        return _default_executor


@dataclass(frozen=True)
class BackendOverride:
    """Replacement toolchain resolution and argument shaping for an SDK.

    Attributes:
        name: Backend name for logs (e.g. "bazel").
        toolchain_resolver: Returns the Dart SDK path, or None if unavailable.
        rewriters: Command-line rewriters keyed by the command type they apply to.

    """

    name: str
    toolchain_resolver: ToolchainResolver
    rewriters: Mapping[CommandType, ArgumentRewriter] = field(default_factory=dict)


class FlutterSdk:
    """An installed Flutter SDK.

    Attributes:
        home: The SDK root directory.
        version: The version read from the SDK's version marker.
        backend: Optional backend override (Bazel mode).

    """

    def __init__(
        self,
        home: Path | str,
        version: FlutterSdkVersion,
        *,
        backend: BackendOverride | None = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        self._home = Path(home)
        self._version = version
        self._backend = backend
        self._executor = executor
        self._config_query = ConfigQueryService(self)
        self._samples: list[FlutterSample] | None = None
        self._samples_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    @classmethod
    def for_path(
        cls, path: Path | str, executor: CommandExecutor | None = None
    ) -> FlutterSdk | None:
        """Return the SDK rooted at ``path``, or None if it is not an SDK root."""
        home = Path(path)
        if not home.is_dir() or not sdk_util.is_flutter_sdk_home(home):
            logger.debug("Not a Flutter SDK root: %s", home)
            return None
        return cls(home, FlutterSdkVersion.read_from_sdk(home), executor=executor)

    @classmethod
    def from_library_urls(
        cls, urls: Iterable[str], executor: CommandExecutor | None = None
    ) -> FlutterSdk | None:
        """Recover an SDK whose Dart SDK is not cached yet.

        Looks for a Dart SDK library class root ending in
        ``/bin/cache/dart-sdk/lib/core`` and takes the SDK root in front of it.
        No structural check is made since the SDK may be incomplete.
        """
        for url in urls:
            path = url.removeprefix("file://").replace("\\", "/")
            if path.endswith(sdk_util.DART_CORE_SUFFIX):
                home = Path(path[: -len(sdk_util.DART_CORE_SUFFIX)])
                if not home.is_dir():
                    return None
                return cls(home, FlutterSdkVersion.read_from_sdk(home), executor=executor)
        return None

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def home(self) -> Path:
        return self._home

    @property
    def home_path(self) -> str:
        return str(self._home)

    @property
    def version(self) -> FlutterSdkVersion:
        """Coarse version from the version marker, for feature checks only."""
        return self._version

    @property
    def backend(self) -> BackendOverride | None:
        return self._backend

    @property
    def is_bazel(self) -> bool:
        return self._backend is not None and self._backend.name == "bazel"

    @property
    def executor(self) -> CommandExecutor:
        return self._executor if self._executor is not None else default_executor()

    def dart_sdk_path(self) -> str | None:
        """Return the Dart SDK this SDK runs on, or None if it doesn't exist."""
        if self._backend is not None:
            return self._backend.toolchain_resolver()
        return sdk_util.path_to_dart_sdk(self._home)

    # ------------------------------------------------------------------
    # Command builders
    # ------------------------------------------------------------------

    def _command(
        self, command_type: CommandType, work_dir: Path | None, args: Iterable[str] = ()
    ) -> FlutterCommand:
        return FlutterCommand(self, command_type, work_dir, tuple(args))

    def flutter_version(self) -> FlutterCommand:
        return self._command(CommandType.VERSION, self._home)

    def flutter_upgrade(self) -> FlutterCommand:
        return self._command(CommandType.UPGRADE, self._home)

    def flutter_clean(self, root: PubRoot) -> FlutterCommand:
        return self._command(CommandType.CLEAN, root.root)

    def flutter_doctor(self) -> FlutterCommand:
        return self._command(CommandType.DOCTOR, self._home)

    def flutter_create(
        self, app_dir: Path | str, settings: CreateSettings | None = None
    ) -> FlutterCommand:
        """Build ``flutter create``; runs in the parent of the new directory."""
        app_dir = Path(os.path.abspath(app_dir))
        args = settings.to_args() if settings is not None else []
        # The bare directory name stays the last argument
        args.append(app_dir.name)
        return self._command(CommandType.CREATE, app_dir.parent, args)

    def flutter_packages_get(self, root: PubRoot) -> FlutterCommand:
        return self._command(CommandType.PACKAGES_GET, root.root)

    def flutter_packages_upgrade(self, root: PubRoot) -> FlutterCommand:
        return self._command(CommandType.PACKAGES_UPGRADE, root.root)

    def flutter_packages_pub(self, root: PubRoot | None, *args: str) -> FlutterCommand:
        return self._command(CommandType.PACKAGES_PUB, root.root if root else None, args)

    def flutter_make_host_app_editable(self, root: PubRoot) -> FlutterCommand:
        return self._command(CommandType.MAKE_HOST_APP_EDITABLE, root.root)

    def flutter_build(self, root: PubRoot, *additional_args: str) -> FlutterCommand:
        return self._command(CommandType.BUILD, root.root, additional_args)

    def flutter_config(self, *additional_args: str) -> FlutterCommand:
        return self._command(CommandType.CONFIG, self._home, additional_args)

    def flutter_list_samples(self, index_file: Path | str) -> FlutterCommand:
        return self._command(
            CommandType.LIST_SAMPLES, self._home, [os.path.abspath(index_file)]
        )

    def flutter_run(
        self,
        root: PubRoot,
        main: Path | str,
        device: FlutterDevice | None,
        mode: RunMode,
        launch_mode: LaunchMode,
        *additional_args: str,
        track_widget_creation: bool | None = None,
    ) -> FlutterCommand:
        """Build ``flutter run`` for a main file inside ``root``.

        Args:
            root: Pub root the app runs from.
            main: Entry point; must be inside ``root``.
            device: Target device, or None for the tool's default.
            mode: How the IDE drives the process; DEBUG starts paused.
            launch_mode: Debug, profile or release build.
            additional_args: Extra arguments placed before the main path.
            track_widget_creation: Overrides the settings toggle when not None.

        Raises:
            InvalidTargetError: If ``main`` is not inside ``root``.

        """
        settings = get_config()
        args = ["--machine"]
        if settings.verbose_logging:
            args.append("--verbose")

        if launch_mode == LaunchMode.DEBUG:
            if track_widget_creation is None:
                track_widget_creation = settings.track_widget_creation
            if track_widget_creation:
                args.append("--track-widget-creation")

        if device is not None:
            args.append(f"--device-id={device.device_id}")

        if mode == RunMode.DEBUG:
            args.append("--start-paused")

        args.extend(_launch_mode_flags(launch_mode))
        args.extend(additional_args)
        args.append(_relative_target(root, main))
        return self._command(CommandType.RUN, root.root, args)

    def flutter_attach(
        self,
        root: PubRoot,
        main: Path | str,
        device: FlutterDevice | None,
        launch_mode: LaunchMode,
        *additional_args: str,
    ) -> FlutterCommand:
        """Build ``flutter attach``.

        Raises:
            InvalidTargetError: If ``main`` is not inside ``root``.

        """
        args = ["--machine"]
        if get_config().verbose_logging:
            args.append("--verbose")

        args.extend(_launch_mode_flags(launch_mode))

        if device is not None:
            args.append(f"--device-id={device.device_id}")

        args.extend(additional_args)
        args.append(_relative_target(root, main))
        return self._command(CommandType.ATTACH, root.root, args)

    def flutter_run_web(
        self, root: PubRoot, mode: RunMode, *additional_args: str
    ) -> FlutterCommand:
        # webdev has no debug flags yet, so the run mode does not change the arguments
        return self._command(CommandType.WEB_RUN, root.root, additional_args)

    def flutter_run_on_tester(self, root: PubRoot, main_path: str) -> FlutterCommand:
        args = ["--machine", f"--device-id={TESTER_DEVICE_ID}", main_path]
        return self._command(CommandType.RUN, root.root, args)

    def flutter_test(
        self,
        root: PubRoot,
        file_or_dir: Path | str,
        test_name_substring: str | None,
        mode: RunMode,
    ) -> FlutterCommand:
        """Build ``flutter test`` for a file or directory inside ``root``.

        Machine mode is used whenever the SDK supports it; older SDKs run
        the tests with plain output.

        Raises:
            UnsupportedFeatureError: If debugging or name filtering is
                requested from an SDK too old to provide it.
            InvalidTargetError: If ``file_or_dir`` is not inside ``root``.

        """
        args: list[str] = []
        if self._version.supports_test_machine_mode:
            args.append("--machine")
        if mode == RunMode.DEBUG:
            if not self._version.supports_test_machine_mode:
                raise UnsupportedFeatureError(
                    "Flutter SDK is too old to debug tests",
                    feature="test-machine-mode",
                    version=str(self._version),
                )
            args.append("--start-paused")
        if get_config().verbose_logging:
            args.append("--verbose")
        if test_name_substring is not None:
            if not self._version.supports_test_name_filtering:
                raise UnsupportedFeatureError(
                    "Flutter SDK is too old to select tests by name",
                    feature="test-name-filtering",
                    version=str(self._version),
                )
            args.extend(["--plain-name", test_name_substring])

        if Path(os.path.abspath(file_or_dir)) != root.root:
            args.append(_relative_target(root, file_or_dir))

        return self._command(CommandType.TEST, root.root, args)

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    def sync(self, on_output: OutputCallback | None = None) -> bool:
        """Run ``flutter --version`` and wait, so the Dart SDK gets downloaded.

        Blocks without a timeout; call it from a background thread.

        Returns:
            True if the tool succeeded and the Dart SDK now exists.

        """
        exit_code = self.executor.run(self.flutter_version(), on_output=on_output)
        if exit_code != 0:
            logger.info("flutter --version failed for %s (exit code %s)", self._home, exit_code)
            return False
        return sdk_util.path_to_dart_sdk(self._home) is not None

    def create_files(
        self,
        base_dir: Path | str,
        settings: CreateSettings | None = None,
        on_output: OutputCallback | None = None,
    ) -> PubRoot | None:
        """Run ``flutter create`` and wait for it.

        Blocks without a timeout; call it from a background thread.

        Returns:
            The new project's pub root, or None on failure.

        """
        exit_code = self.executor.run(self.flutter_create(base_dir, settings), on_output=on_output)
        if exit_code != 0:
            logger.info("flutter create failed for %s (exit code %s)", base_dir, exit_code)
            return None
        return PubRoot.for_directory(base_dir)

    def _start_with_refresh(
        self,
        command: FlutterCommand,
        on_done: Callable[[], object] | None,
        on_output: OutputCallback | None,
    ) -> RunningProcess | None:
        def on_exit(_exit_code: int) -> None:
            if on_done is not None:
                on_done()

        return self.executor.start_process(command, on_output=on_output, on_exit=on_exit)

    def start_packages_get(
        self,
        root: PubRoot,
        on_done: Callable[[], object] | None = None,
        on_output: OutputCallback | None = None,
    ) -> RunningProcess | None:
        """Start ``flutter packages get``; ``on_done`` runs after exit (refresh hook)."""
        return self._start_with_refresh(self.flutter_packages_get(root), on_done, on_output)

    def start_packages_upgrade(
        self,
        root: PubRoot,
        on_done: Callable[[], object] | None = None,
        on_output: OutputCallback | None = None,
    ) -> RunningProcess | None:
        return self._start_with_refresh(self.flutter_packages_upgrade(root), on_done, on_output)

    def start_make_host_app_editable(
        self,
        root: PubRoot,
        on_done: Callable[[], object] | None = None,
        on_output: OutputCallback | None = None,
    ) -> RunningProcess | None:
        return self._start_with_refresh(
            self.flutter_make_host_app_editable(root), on_done, on_output
        )

    def query_flutter_config(self, key: str, use_cached_value: bool) -> str | None:
        """Query ``flutter config`` for ``key``, optionally from the cache."""
        return self._config_query.query(key, use_cached_value)

    @property
    def cached_config_values(self) -> dict[str, str | None]:
        return self._config_query.cached_values()

    def get_samples(self) -> list[FlutterSample]:
        """Return the SDK's code samples, loading the index on first use."""
        with self._samples_lock:
            if self._samples is None:
                self._samples = load_samples(self)
            return list(self._samples)

    def __repr__(self) -> str:
        backend = f", backend={self._backend.name!r}" if self._backend else ""
        return f"FlutterSdk({self.home_path!r}, version={str(self._version)!r}{backend})"


def _launch_mode_flags(launch_mode: LaunchMode) -> list[str]:
    if launch_mode == LaunchMode.PROFILE:
        return ["--profile"]
    elif launch_mode == LaunchMode.RELEASE:
        return ["--release"]
    return []


def _relative_target(root: PubRoot, target: Path | str) -> str:
    relative = root.relative_path(target)
    if relative is None:
        raise InvalidTargetError(
            f"main isn't within the pub root: {target}",
            target=str(target),
            root=str(root.root),
        )
    return relative
