"""Registry of SDK handles for a host application.

One registry is created per host application instance and passed to
whoever needs SDK lookups. It memoizes handles by project and SDK root
so repeated lookups return the same handle (and the same config cache).

Cache keys look like ``"e41cfa3d:/home/dev/flutter"``: the hash of the
project location followed by the SDK root.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path
from types import TracebackType
from typing import Self

from flutter_bridge.core.config import get_config
from flutter_bridge.process.executor import CommandExecutor
from flutter_bridge.sdk import sdk_util
from flutter_bridge.sdk.handle import FlutterSdk, ToolchainResolver
from flutter_bridge.sdk.workspace import for_bazel

logger = logging.getLogger(__name__)


def cache_key(project_id: str, sdk_root: str) -> str:
    return f"{sdk_util.location_hash(project_id)}:{sdk_root}"


class SdkRegistry:
    """Thread-safe memoization of SDK handles.

    Lookups for different keys do not block each other. Concurrent first
    lookups of the same key construct at most one handle. Lookups that
    find no SDK are not memoized.

    Attributes:
        executor: Executor given to every handle the registry creates.

    """

    def __init__(self, executor: CommandExecutor | None = None) -> None:
        self.executor = executor if executor is not None else CommandExecutor()
        self._handles: dict[str, FlutterSdk] = {}
        self._key_locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()
        self._closed = False

    def get(self, key: str) -> FlutterSdk | None:
        with self._lock:
            return self._handles.get(key)

    def get_or_create(
        self, key: str, factory: Callable[[], FlutterSdk | None]
    ) -> FlutterSdk | None:
        """Return the handle for ``key``, constructing it with ``factory`` once."""
        # Quick check WITHOUT the key lock
        with self._lock:
            if self._closed:
                raise RuntimeError("SdkRegistry is closed")
            handle = self._handles.get(key)
            if handle is not None:
                return handle
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            # Re-check under the key lock (double-checked locking)
            with self._lock:
                handle = self._handles.get(key)
            if handle is not None:
                return handle

            handle = factory()
            if handle is None:
                with self._lock:
                    if self._key_locks.get(key) is key_lock:
                        del self._key_locks[key]
                return None
            with self._lock:
                self._handles[key] = handle
            logger.debug("Registered Flutter SDK %s", key)
            return handle

    def discover_for_project(
        self, project_id: str, dart_sdk_path: str | None
    ) -> FlutterSdk | None:
        """Return the SDK a project's Dart SDK belongs to.

        Args:
            project_id: Stable identity of the project (e.g. its location).
            dart_sdk_path: The project's configured Dart SDK, or None.

        Returns:
            The memoized handle, or None if the project has no Dart SDK or
            its Dart SDK is not the one cached inside a Flutter SDK.

        """
        sdk_root = sdk_util.strip_dart_sdk_suffix(dart_sdk_path)
        if sdk_root is None:
            return None
        return self.get_or_create(
            cache_key(project_id, sdk_root),
            lambda: FlutterSdk.for_path(sdk_root, executor=self.executor),
        )

    def discover_pub_or_bazel(
        self,
        project_id: str,
        dart_sdk_path: str | None,
        project_dir: Path | str,
        toolchain_resolver: ToolchainResolver,
    ) -> FlutterSdk | None:
        """Return the Bazel SDK when Bazel mode is on, else the pub-based SDK."""
        if get_config().use_bazel:
            return for_bazel(project_dir, toolchain_resolver, executor=self.executor)
        return self.discover_for_project(project_id, dart_sdk_path)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._handles)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def clear(self) -> None:
        with self._lock:
            self._handles.clear()
            self._key_locks.clear()

    def close(self) -> None:
        """Drop all handles; the registry refuses further lookups."""
        with self._lock:
            self._handles.clear()
            self._key_locks.clear()
            self._closed = True
        logger.debug("SDK registry closed")

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
