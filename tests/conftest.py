"""Pytest configuration and fixtures for flutter-bridge tests."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# A stand-in for the SDK's bin/flutter script. It records every call in
# <home>/calls.log and acts out behaviour read from <home>/behavior.json,
# keyed by the first argument ("list-samples" for create --list-samples).
FAKE_TOOL = """#!@PYTHON@
import json
import os
import signal
import sys
import time
from pathlib import Path

home = Path(__file__).resolve().parent.parent
args = sys.argv[1:]
with open(home / "calls.log", "a", encoding="utf-8") as log:
    log.write(json.dumps({
        "args": args,
        "cwd": os.getcwd(),
        "host": os.environ.get("FLUTTER_HOST"),
    }) + "\\n")

behavior = {}
behavior_file = home / "behavior.json"
if behavior_file.exists():
    behavior = json.loads(behavior_file.read_text(encoding="utf-8"))

key = args[0] if args else ""
if args[:2] == ["create", "--list-samples"]:
    key = "list-samples"
action = behavior.get(key, {})
if action.get("ignore_term"):
    signal.signal(signal.SIGTERM, signal.SIG_IGN)

time.sleep(action.get("sleep", 0))
for line in action.get("stdout", []):
    print(line, flush=True)
for line in action.get("stderr", []):
    print(line, file=sys.stderr, flush=True)

if key == "--version":
    (home / "bin" / "cache" / "dart-sdk").mkdir(parents=True, exist_ok=True)
elif key == "list-samples" and "index" in action:
    Path(args[2]).write_text(json.dumps(action["index"]), encoding="utf-8")
elif key == "create" and action.get("exit", 0) == 0:
    app = Path(os.getcwd()) / args[-1]
    app.mkdir(parents=True, exist_ok=True)
    (app / "pubspec.yaml").write_text("name: " + args[-1] + "\\n", encoding="utf-8")

sys.exit(action.get("exit", 0))
"""


@pytest.fixture(autouse=True)
def reset_config():
    """Reset the settings singleton before and after each test."""
    from flutter_bridge.core.config import _reset_config

    _reset_config()
    yield
    _reset_config()


@pytest.fixture
def make_sdk(tmp_path: Path) -> Callable[..., Path]:
    """Factory creating a fake Flutter SDK root on disk.

    Args (of the returned callable):
        version: Contents of the version marker, or None for no marker.
        behavior: Per-command behaviour for the fake tool.
        name: Directory name of the SDK root under tmp_path.
    """

    def _make(
        version: str | None = "1.0.0",
        behavior: dict[str, Any] | None = None,
        name: str = "flutter",
    ) -> Path:
        home = tmp_path / name
        (home / "bin").mkdir(parents=True)
        tool = home / "bin" / "flutter"
        tool.write_text(FAKE_TOOL.replace("@PYTHON@", sys.executable), encoding="utf-8")
        tool.chmod(0o755)
        pubspec_dir = home / "packages" / "flutter"
        pubspec_dir.mkdir(parents=True)
        (pubspec_dir / "pubspec.yaml").write_text("name: flutter\n", encoding="utf-8")
        if version is not None:
            (home / "version").write_text(version + "\n", encoding="utf-8")
        if behavior:
            (home / "behavior.json").write_text(json.dumps(behavior), encoding="utf-8")
        return home

    return _make


def _read_calls(home: Path) -> list[dict[str, Any]]:
    log = home / "calls.log"
    if not log.exists():
        return []
    return [json.loads(line) for line in log.read_text(encoding="utf-8").splitlines()]


@pytest.fixture
def read_calls() -> Callable[[Path], list[dict[str, Any]]]:
    """Return a function listing the calls recorded by the fake tool, oldest first."""
    return _read_calls


@pytest.fixture
def app_dir(tmp_path: Path) -> Path:
    """A minimal Flutter app: pubspec, lib/main.dart and a test directory."""
    app = tmp_path / "my_app"
    (app / "lib").mkdir(parents=True)
    (app / "test").mkdir()
    (app / "pubspec.yaml").write_text("name: my_app\n", encoding="utf-8")
    (app / "lib" / "main.dart").write_text("void main() {}\n", encoding="utf-8")
    (app / "test" / "widget_test.dart").write_text("void main() {}\n", encoding="utf-8")
    return app
