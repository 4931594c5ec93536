"""Tests for flutter_bridge.core.config settings loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from flutter_bridge.core.config import (
    DEFAULT_HOST_NAME,
    BridgeSettings,
    _reset_config,
    get_config,
    load_config,
    load_config_file,
)
from flutter_bridge.core.exceptions import ConfigError


class TestDefaults:
    def test_get_config_without_loading_returns_defaults(self) -> None:
        settings = get_config()

        assert settings.verbose_logging is False
        assert settings.track_widget_creation is True
        assert settings.use_bazel is False
        assert settings.host_name == DEFAULT_HOST_NAME
        assert settings.cache_failed_config_queries is True
        assert settings.sdk_path is None

    def test_settings_are_frozen(self) -> None:
        settings = BridgeSettings()
        with pytest.raises(ValidationError):
            settings.verbose_logging = True  # type: ignore[misc]


class TestLoadConfig:
    def test_flat_mapping(self) -> None:
        settings = load_config({"verbose_logging": True})

        assert settings.verbose_logging is True
        assert get_config() is settings

    def test_nested_flutter_section(self) -> None:
        load_config({"flutter": {"use_bazel": True, "host_name": "my-ide"}})

        assert get_config().use_bazel is True
        assert get_config().host_name == "my-ide"

    def test_empty_section_gives_defaults(self) -> None:
        settings = load_config({"flutter": None})
        assert settings == BridgeSettings()

    def test_unknown_key_is_config_error(self) -> None:
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_config({"no_such_setting": 1})

    def test_wrong_type_is_config_error(self) -> None:
        with pytest.raises(ConfigError):
            load_config({"verbose_logging": "definitely"})

    def test_non_mapping_is_config_error(self) -> None:
        with pytest.raises(ConfigError, match="mapping"):
            load_config(["verbose_logging"])  # type: ignore[arg-type]

    def test_reset_restores_defaults(self) -> None:
        load_config({"verbose_logging": True})
        _reset_config()
        assert get_config().verbose_logging is False


class TestLoadConfigFile:
    def test_loads_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "flutter-bridge.yaml"
        config_file.write_text(
            """
flutter:
  verbose_logging: true
  track_widget_creation: false
  sdk_path: /opt/flutter
"""
        )

        settings = load_config_file(config_file)

        assert settings.verbose_logging is True
        assert settings.track_widget_creation is False
        assert settings.sdk_path == "/opt/flutter"

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        assert load_config_file(config_file) == BridgeSettings()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config_file(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("flutter: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config_file(config_file)
