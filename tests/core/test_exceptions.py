"""Tests for the flutter-bridge exception hierarchy."""

import pytest

from flutter_bridge.core.exceptions import (
    ConfigError,
    FlutterBridgeError,
    InvalidTargetError,
    SdkError,
    ToolchainNotFoundError,
    UnsupportedFeatureError,
)


class TestHierarchy:
    """All errors share FlutterBridgeError; contract faults share SdkError."""

    @pytest.mark.parametrize(
        "exc_type",
        [ConfigError, SdkError, InvalidTargetError, UnsupportedFeatureError, ToolchainNotFoundError],
    )
    def test_inherits_from_base(self, exc_type: type[Exception]) -> None:
        assert issubclass(exc_type, FlutterBridgeError)

    def test_invalid_target_is_value_error(self) -> None:
        """Callers using plain ValueError handlers still catch it."""
        assert issubclass(InvalidTargetError, ValueError)
        assert issubclass(InvalidTargetError, SdkError)

    def test_unsupported_feature_is_runtime_error(self) -> None:
        assert issubclass(UnsupportedFeatureError, RuntimeError)
        assert issubclass(UnsupportedFeatureError, SdkError)


class TestAttributes:
    def test_invalid_target_attributes(self) -> None:
        err = InvalidTargetError("outside", target="/tmp/x.dart", root="/app")
        assert str(err) == "outside"
        assert err.target == "/tmp/x.dart"
        assert err.root == "/app"

    def test_unsupported_feature_attributes(self) -> None:
        err = UnsupportedFeatureError("too old", feature="test-name-filtering", version="0.0.1")
        assert err.feature == "test-name-filtering"
        assert err.version == "0.0.1"

    def test_default_attributes(self) -> None:
        err = UnsupportedFeatureError("too old")
        assert err.feature == ""
        assert err.version == ""

    def test_in_all_exports(self) -> None:
        from flutter_bridge.core import exceptions

        for name in ("InvalidTargetError", "UnsupportedFeatureError", "ToolchainNotFoundError"):
            assert name in exceptions.__all__
