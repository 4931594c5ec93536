"""Process execution for Flutter commands."""

from flutter_bridge.process.executor import (
    CommandExecutor,
    OutputChunk,
    RunningProcess,
    StartResult,
    StartStatus,
)

__all__ = [
    "CommandExecutor",
    "OutputChunk",
    "RunningProcess",
    "StartResult",
    "StartStatus",
]
