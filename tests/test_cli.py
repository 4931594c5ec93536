"""Tests for the flutter-bridge command line interface."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from flutter_bridge.cli import app
from flutter_bridge.cli_utils import EXIT_CONFIG_ERROR, EXIT_ERROR, EXIT_SUCCESS

runner = CliRunner()

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="fake SDK tool is a POSIX script")


# =============================================================================
# Global options
# =============================================================================


class TestGlobalOptions:
    """Tests for --config and SDK resolution."""

    def test_no_sdk_given(self) -> None:
        result = runner.invoke(app, ["info"])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "No Flutter SDK given" in result.output

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        config = tmp_path / "bridge.yaml"
        config.write_text("verbose_logging: [unclosed\n", encoding="utf-8")

        result = runner.invoke(app, ["--config", str(config), "info"])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Invalid YAML" in result.output

    def test_unknown_setting(self, tmp_path: Path) -> None:
        config = tmp_path / "bridge.yaml"
        config.write_text("no_such_setting: 1\n", encoding="utf-8")

        result = runner.invoke(app, ["-c", str(config), "info"])

        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_not_an_sdk(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["info", "--sdk", str(tmp_path)])

        assert result.exit_code == EXIT_ERROR
        assert "Not a Flutter SDK" in result.output

    @posix_only
    def test_sdk_from_config_file(self, make_sdk, tmp_path: Path) -> None:
        home = make_sdk(version="1.2.3")
        config = tmp_path / "bridge.yaml"
        config.write_text(f"flutter:\n  sdk_path: {home}\n", encoding="utf-8")

        result = runner.invoke(app, ["--config", str(config), "info"])

        assert result.exit_code == EXIT_SUCCESS
        assert "1.2.3" in result.output


# =============================================================================
# Commands
# =============================================================================


@posix_only
class TestInfo:
    def test_reports_version_and_features(self, make_sdk) -> None:
        home = make_sdk(version="0.0.20")

        result = runner.invoke(app, ["info", "--sdk", str(home)])

        assert result.exit_code == EXIT_SUCCESS
        assert "0.0.20" in result.output
        assert "not cached" in result.output

    def test_unknown_version(self, make_sdk) -> None:
        home = make_sdk(version=None)

        result = runner.invoke(app, ["info", "-s", str(home)])

        assert result.exit_code == EXIT_SUCCESS
        assert "unknown" in result.output
        assert "minimum recommended" in result.output


@posix_only
class TestRunCommands:
    def test_version_streams_output(self, make_sdk, read_calls) -> None:
        home = make_sdk(behavior={"--version": {"stdout": ["Flutter 1.0.0 channel stable"]}})

        result = runner.invoke(app, ["version", "--sdk", str(home)])

        assert result.exit_code == EXIT_SUCCESS
        assert "flutter --version" in result.output
        assert "Flutter 1.0.0 channel stable" in result.output
        assert read_calls(home)[0]["args"] == ["--version"]

    def test_doctor_failure(self, make_sdk) -> None:
        home = make_sdk(behavior={"doctor": {"stderr": ["Doctor found issues"], "exit": 1}})

        result = runner.invoke(app, ["doctor", "--sdk", str(home)])

        assert result.exit_code == EXIT_ERROR
        assert "Doctor found issues" in result.output


@posix_only
class TestConfigGet:
    def test_prints_value(self, make_sdk) -> None:
        home = make_sdk(behavior={"config": {"stdout": ['{"android-sdk": "/opt/android"}']}})

        result = runner.invoke(app, ["config-get", "android-sdk", "--sdk", str(home)])

        assert result.exit_code == EXIT_SUCCESS
        assert "/opt/android" in result.output

    def test_missing_key(self, make_sdk) -> None:
        home = make_sdk(behavior={"config": {"stdout": ["{}"]}})

        result = runner.invoke(app, ["config-get", "android-sdk", "--sdk", str(home)])

        assert result.exit_code == EXIT_ERROR
        assert "No value for 'android-sdk'" in result.output


@posix_only
class TestSamples:
    def test_lists_samples(self, make_sdk) -> None:
        index = [{"id": "widgets.Align.1", "element": "Align", "library": "widgets"}]
        home = make_sdk(behavior={"list-samples": {"index": index}})

        result = runner.invoke(app, ["samples", "--sdk", str(home)])

        assert result.exit_code == EXIT_SUCCESS
        assert "Align" in result.output

    def test_no_samples(self, make_sdk) -> None:
        home = make_sdk(behavior={"list-samples": {"exit": 1}})

        result = runner.invoke(app, ["samples", "--sdk", str(home)])

        assert result.exit_code == EXIT_ERROR
        assert "No samples available" in result.output
