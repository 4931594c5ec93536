"""Lookups of ``flutter config`` values.

Runs ``flutter config --machine`` and reads one key from the JSON object
it prints. The tool may print non-JSON lines first (e.g. "Building
flutter tool..."), so output is ignored until the first line that starts
with ``{``. Every failure (timeout, non-zero exit, bad JSON, missing key)
yields None; nothing is raised.

Results are cached per SDK handle. By default a failed lookup is cached
as None too, so a later cached read does not retry it.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import TYPE_CHECKING

from flutter_bridge.core.config import get_config
from flutter_bridge.process.executor import OutputChunk

if TYPE_CHECKING:
    from flutter_bridge.sdk.handle import FlutterSdk

logger = logging.getLogger(__name__)

# Upper bound on how long a config lookup may block the caller
CONFIG_QUERY_TIMEOUT = 5.0
# Grace period for a timed-out lookup before it is killed, spent off the caller's thread
TERMINATE_WAIT = 0.5

MACHINE_FLAG = "--machine"


class ConfigOutputCollector:
    """Collects stdout starting at the first line that begins with ``{``."""

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._seen_brace = False
        self._lock = threading.Lock()

    def __call__(self, chunk: OutputChunk) -> None:
        if chunk.stream != "stdout":
            return
        with self._lock:
            if not self._seen_brace and chunk.text.startswith("{"):
                self._seen_brace = True
            if self._seen_brace:
                self._lines.append(chunk.text)

    @property
    def text(self) -> str:
        with self._lock:
            return "".join(self._lines)


def strip_preamble(output: str) -> str:
    """Drop every line before the first one that starts with ``{``."""
    lines = output.splitlines(keepends=True)
    for i, line in enumerate(lines):
        if line.startswith("{"):
            return "".join(lines[i:])
    return ""


def parse_config_output(output: str, key: str) -> str | None:
    """Extract ``key`` from ``flutter config --machine`` output.

    Example:
        >>> parse_config_output('Building tool...\\n{"k":"v"}\\n', "k")
        'v'
        >>> parse_config_output("{not json", "k") is None
        True

    """
    text = strip_preamble(output)
    if not text:
        logger.warning("Invalid JSON from flutter config")
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug("Unparseable output from flutter config: %s", e)
        return None

    if not isinstance(data, dict):
        logger.debug("flutter config returned %s instead of an object", type(data).__name__)
        return None

    value = data.get(key)
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


class ConfigQueryService:
    """Cached ``flutter config`` lookups for one SDK handle.

    Concurrent misses for the same key are not de-duplicated: each one
    spawns its own process and the last write wins.
    """

    def __init__(self, sdk: FlutterSdk, timeout: float = CONFIG_QUERY_TIMEOUT) -> None:
        self._sdk = sdk
        self._timeout = timeout
        self._cache: dict[str, str | None] = {}
        self._lock = threading.Lock()

    def cached_values(self) -> dict[str, str | None]:
        with self._lock:
            return dict(self._cache)

    def query(self, key: str, use_cached_value: bool) -> str | None:
        """Return the config value for ``key``.

        Args:
            key: Configuration name, e.g. "android-studio-dir".
            use_cached_value: Serve a previously observed value (including a
                cached None) without starting a process.

        Returns:
            The value, or None if unset or the lookup failed.

        """
        if use_cached_value:
            with self._lock:
                if key in self._cache:
                    return self._cache[key]

        value = self._fetch(key)
        if value is not None or get_config().cache_failed_config_queries:
            with self._lock:
                self._cache[key] = value
        return value

    def _fetch(self, key: str) -> str | None:
        command = self._sdk.flutter_config(MACHINE_FLAG)
        collector = ConfigOutputCollector()
        process = self._sdk.executor.start_process(command, on_output=collector)
        if process is None:
            return None

        logger.info("Calling flutter config --machine")
        start = time.monotonic()

        exit_code = process.wait(timeout=self._timeout)
        if exit_code is None:
            logger.info("Timeout when calling flutter config --machine")
            process.terminate_in_background(wait=TERMINATE_WAIT)
            return None

        logger.info("flutter config --machine: %dms", (time.monotonic() - start) * 1000)
        if exit_code != 0:
            logger.info("Exit code from flutter config --machine: %d", exit_code)
            return None

        return parse_config_output(collector.text, key)
