"""Tests for FlutterSdkVersion parsing and capability checks."""

from pathlib import Path

import pytest

from flutter_bridge.sdk.version import (
    MIN_TEST_MACHINE_MODE,
    MIN_TEST_NAME_FILTERING,
    FlutterSdkVersion,
)


class TestParsing:
    @pytest.mark.parametrize(
        ("text", "parts"),
        [
            ("1.2.3", (1, 2, 3)),
            ("1.2.3\n", (1, 2, 3)),
            ("  0.0.12  ", (0, 0, 12)),
            ("v1.0.0", (1, 0, 0)),
            ("0.5.8-pre.1", (0, 5, 8)),
            ("1.22.0+hotfix.2", (1, 22, 0)),
        ],
    )
    def test_valid_versions(self, text: str, parts: tuple[int, int, int]) -> None:
        version = FlutterSdkVersion(text)

        assert version.is_valid
        assert version.parts == parts
        assert version.full_version == text.strip()

    @pytest.mark.parametrize("text", ["", "   ", "garbage", "1.2", "one.two.three", "1.2.3 beta", None])
    def test_malformed_is_unknown(self, text: str | None) -> None:
        version = FlutterSdkVersion(text)

        assert not version.is_valid
        assert version.parts is None
        assert str(version) == "unknown"

    def test_immutable(self) -> None:
        version = FlutterSdkVersion("1.0.0")
        with pytest.raises(AttributeError):
            version.full_version = "2.0.0"  # type: ignore[misc]


class TestCapabilities:
    def test_unknown_version_supports_nothing(self) -> None:
        version = FlutterSdkVersion.unknown()

        assert version.supports_test_machine_mode is False
        assert version.supports_test_name_filtering is False
        assert version.is_min_recommended_supported is False

    def test_thresholds_are_ordered(self) -> None:
        """Name filtering arrived after machine mode."""
        assert MIN_TEST_MACHINE_MODE < MIN_TEST_NAME_FILTERING

    def test_machine_mode_boundary(self) -> None:
        assert not FlutterSdkVersion("0.0.11").supports_test_machine_mode
        assert FlutterSdkVersion("0.0.12").supports_test_machine_mode
        assert FlutterSdkVersion("1.0.0").supports_test_machine_mode

    def test_name_filtering_boundary(self) -> None:
        assert not FlutterSdkVersion("0.1.4").supports_test_name_filtering
        assert FlutterSdkVersion("0.1.5").supports_test_name_filtering
        assert FlutterSdkVersion("2.10.0").supports_test_name_filtering

    def test_pre_release_counts_as_release(self) -> None:
        assert FlutterSdkVersion("0.1.5-pre.3").supports_test_name_filtering


class TestOrdering:
    def test_comparison(self) -> None:
        assert FlutterSdkVersion("0.9.9") < FlutterSdkVersion("1.0.0")
        assert FlutterSdkVersion("1.10.0") > FlutterSdkVersion("1.9.0")
        assert FlutterSdkVersion("1.0.0") == FlutterSdkVersion("v1.0.0")

    def test_unknown_sorts_first(self) -> None:
        assert FlutterSdkVersion.unknown() < FlutterSdkVersion("0.0.1")
        assert FlutterSdkVersion.unknown() == FlutterSdkVersion("junk")

    def test_hashable(self) -> None:
        assert len({FlutterSdkVersion("1.0.0"), FlutterSdkVersion("1.0.0-pre.1")}) == 1


class TestReading:
    def test_read_from_sdk(self, tmp_path: Path) -> None:
        (tmp_path / "version").write_text("0.2.0\n")

        assert FlutterSdkVersion.read_from_sdk(tmp_path).parts == (0, 2, 0)

    def test_read_from_sdk_without_marker(self, tmp_path: Path) -> None:
        assert not FlutterSdkVersion.read_from_sdk(tmp_path).is_valid

    def test_read_from_file(self, tmp_path: Path) -> None:
        marker = tmp_path / "bazel_version.txt"
        marker.write_text("1.5.4-hotfix.2")

        assert FlutterSdkVersion.read_from_file(marker).parts == (1, 5, 4)

    def test_read_from_none(self) -> None:
        assert not FlutterSdkVersion.read_from_file(None).is_valid

    def test_read_from_directory_does_not_raise(self, tmp_path: Path) -> None:
        assert not FlutterSdkVersion.read_from_file(tmp_path).is_valid

    def test_read_binary_garbage(self, tmp_path: Path) -> None:
        marker = tmp_path / "version"
        marker.write_bytes(b"\xff\xfe\x00garbage")

        assert not FlutterSdkVersion.read_from_file(marker).is_valid
