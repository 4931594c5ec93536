"""Flutter SDK handles, command construction and config lookups."""

from flutter_bridge.sdk.command import CommandLine, CommandType, FlutterCommand
from flutter_bridge.sdk.config_query import ConfigQueryService, parse_config_output
from flutter_bridge.sdk.handle import BackendOverride, FlutterSdk
from flutter_bridge.sdk.launch import CreateSettings, FlutterDevice, LaunchMode, PubRoot, RunMode
from flutter_bridge.sdk.registry import SdkRegistry
from flutter_bridge.sdk.samples import FlutterSample
from flutter_bridge.sdk.version import FlutterSdkVersion
from flutter_bridge.sdk.workspace import Workspace, for_bazel

__all__ = [
    "BackendOverride",
    "CommandLine",
    "CommandType",
    "ConfigQueryService",
    "CreateSettings",
    "FlutterCommand",
    "FlutterDevice",
    "FlutterSample",
    "FlutterSdk",
    "FlutterSdkVersion",
    "LaunchMode",
    "PubRoot",
    "RunMode",
    "SdkRegistry",
    "Workspace",
    "for_bazel",
    "parse_config_output",
]
