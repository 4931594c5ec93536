"""Process execution for Flutter commands.

Turns a :class:`~flutter_bridge.sdk.command.FlutterCommand` into an OS
process, either run to completion (blocking) or spawned in the
background. A spawned process is exposed as a :class:`RunningProcess`:
a ``done`` future that resolves to the exit code plus a lazy channel of
output chunks. Optional ``on_output``/``on_exit`` callbacks receive the
same events for callers that prefer listeners.

Reader threads deliver lines of each stream in the order the stream
emits them. No ordering is guaranteed between stdout and stderr.

Example:
    >>> executor = CommandExecutor()
    >>> process = executor.start_process(sdk.flutter_doctor())
    >>> for chunk in process.output():
    ...     print(chunk.text, end="")
    >>> process.wait()
    0

"""

from __future__ import annotations

import contextlib
import logging
import os
import queue
import threading
import time
from collections import deque
from collections.abc import Callable, Iterator
from concurrent.futures import CancelledError, Future, InvalidStateError
from dataclasses import dataclass
from enum import Enum
from subprocess import PIPE, Popen, SubprocessError
from typing import IO, TYPE_CHECKING, Any, Literal

from flutter_bridge.core.exceptions import ToolchainNotFoundError

if TYPE_CHECKING:
    from flutter_bridge.sdk.command import CommandLine, FlutterCommand

logger = logging.getLogger(__name__)

StreamName = Literal["stdout", "stderr"]

OutputCallback = Callable[["OutputChunk"], Any]
ExitCallback = Callable[[int], Any]

# Seconds to wait after SIGTERM before escalating to SIGKILL
DEFAULT_TERMINATE_WAIT = 5.0
# Lines kept for a late output() consumer; older lines are dropped
OUTPUT_BACKLOG = 1000


@dataclass(frozen=True)
class OutputChunk:
    """One line of process output, with its trailing newline."""

    stream: StreamName
    text: str


class StartStatus(str, Enum):
    OK = "ok"
    ALREADY_RUNNING = "already_running"
    EXCEPTION = "exception"


@dataclass(frozen=True)
class StartResult:
    """Outcome of trying to start a command."""

    status: StartStatus
    process: RunningProcess | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status is StartStatus.OK


_END = object()


class RunningProcess:
    """A live process started from a command.

    Attributes:
        command: The command that was started.
        command_line: The command line that was spawned.
        done: Future resolving to the exit code after all output was delivered.

    """

    def __init__(
        self,
        command: FlutterCommand,
        command_line: CommandLine,
        popen: Popen[str],
        on_output: OutputCallback | None = None,
        on_exit: ExitCallback | None = None,
        on_finished: Callable[[], None] | None = None,
    ) -> None:
        self.command = command
        self.command_line = command_line
        self.done: Future[int] = Future()
        self._popen = popen
        self._on_output = on_output
        self._on_exit = on_exit
        self._on_finished = on_finished
        # Created by the first output() call; until then only a bounded backlog is kept
        self._channel: queue.Queue[Any] | None = None
        self._backlog: deque[OutputChunk] = deque(maxlen=OUTPUT_BACKLOG)
        self._finished = False
        self._channel_lock = threading.Lock()
        self._readers = [
            self._start_reader("stdout", popen.stdout),
            self._start_reader("stderr", popen.stderr),
        ]
        self._waiter = threading.Thread(
            target=self._wait_for_exit,
            name=f"flutter-wait-{popen.pid}",
            daemon=True,
        )
        self._waiter.start()

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def exit_code(self) -> int | None:
        """Exit code once the process and its output are finished, else None."""
        if not self.done.done() or self.done.cancelled():
            return None
        return self.done.result()

    @property
    def is_running(self) -> bool:
        return not self.done.done()

    def _start_reader(self, stream: StreamName, pipe: IO[str] | None) -> threading.Thread:
        thread = threading.Thread(
            target=self._read_stream,
            args=(stream, pipe),
            name=f"flutter-{stream}-{self._popen.pid}",
            daemon=True,
        )
        thread.start()
        return thread

    def _read_stream(self, stream: StreamName, pipe: IO[str] | None) -> None:
        if pipe is None:
            return
        try:
            for line in iter(pipe.readline, ""):
                self._emit(OutputChunk(stream, line))
        except (OSError, ValueError):
            logger.exception("Error reading %s of %s", stream, self.command)
        finally:
            with contextlib.suppress(OSError):
                pipe.close()

    def _emit(self, chunk: OutputChunk) -> None:
        with self._channel_lock:
            if self._channel is not None:
                self._channel.put(chunk)
            else:
                self._backlog.append(chunk)
        if self._on_output is not None:
            try:
                self._on_output(chunk)
            except Exception:
                logger.exception("Output listener failed for %s", self.command)

    def _wait_for_exit(self) -> None:
        exit_code = self._popen.wait()
        for reader in self._readers:
            reader.join()
        with self._channel_lock:
            self._finished = True
            if self._channel is not None:
                self._channel.put(_END)

        logger.debug("%s exited with code %d", self.command, exit_code)
        if self._on_finished is not None:
            self._on_finished()
        if self._on_exit is not None:
            try:
                self._on_exit(exit_code)
            except Exception:
                logger.exception("Exit listener failed for %s", self.command)
        try:
            self.done.set_result(exit_code)
        except InvalidStateError:
            logger.debug("Completion of %s was cancelled by the caller", self.command)

    def output(self) -> Iterator[OutputChunk]:
        """Yield output chunks as they arrive until the process finishes.

        Output is only retained once this is first called. Lines emitted
        before that are replayed from a backlog of the last
        ``OUTPUT_BACKLOG`` lines. The channel has a single consumer;
        iterate it from one place only.
        """
        channel = self._open_channel()
        while True:
            item = channel.get()
            if item is _END:
                # Leave the marker for any later iteration
                channel.put(_END)
                return
            yield item

    def _open_channel(self) -> queue.Queue[Any]:
        with self._channel_lock:
            if self._channel is None:
                self._channel = queue.Queue()
                for chunk in self._backlog:
                    self._channel.put(chunk)
                self._backlog.clear()
                if self._finished:
                    self._channel.put(_END)
            return self._channel

    def wait(self, timeout: float | None = None) -> int | None:
        """Wait for completion.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely.

        Returns:
            The exit code, or None if the timeout elapsed first or ``done``
            was cancelled.

        """
        try:
            return self.done.result(timeout=timeout)
        except (TimeoutError, CancelledError):
            return None

    def terminate(self, wait: float = DEFAULT_TERMINATE_WAIT) -> None:
        """Ask the process to stop, escalating to kill after ``wait`` seconds.

        Best-effort: output already delivered stays delivered.
        """
        if self._popen.poll() is not None:
            return
        logger.info("Terminating %s (PID %d)", self.command, self.pid)
        try:
            self._popen.terminate()
        except OSError:
            logger.warning("Failed to terminate PID %d (process may have exited)", self.pid)
            return

        deadline = time.monotonic() + wait
        while time.monotonic() < deadline:
            if self._popen.poll() is not None:
                return
            time.sleep(0.05)
        self.kill()

    def terminate_in_background(self, wait: float = DEFAULT_TERMINATE_WAIT) -> threading.Thread:
        """Run :meth:`terminate` on a daemon thread so the caller does not block."""
        thread = threading.Thread(
            target=self.terminate,
            kwargs={"wait": wait},
            name=f"flutter-terminate-{self.pid}",
            daemon=True,
        )
        thread.start()
        return thread

    def kill(self) -> None:
        if self._popen.poll() is not None:
            return
        logger.warning("Killing %s (PID %d)", self.command, self.pid)
        with contextlib.suppress(OSError):
            self._popen.kill()


class CommandExecutor:
    """Starts Flutter commands as OS processes.

    Pub-related commands (``packages get``, ``packages upgrade``,
    ``upgrade``) are single-flight per executor: while one runs, starting
    another yields ``StartStatus.ALREADY_RUNNING``.
    """

    def __init__(self) -> None:
        self._pub_lock = threading.Lock()

    def start(
        self,
        command: FlutterCommand,
        on_output: OutputCallback | None = None,
        on_exit: ExitCallback | None = None,
    ) -> StartResult:
        """Start a command without waiting for it.

        Args:
            command: The command to start.
            on_output: Called with every output chunk.
            on_exit: Called with the exit code after all output was delivered.

        Returns:
            The start result; never raises for start failures.

        """
        try:
            line = command.create_command_line()
        except ToolchainNotFoundError as e:
            logger.warning("Cannot start %s: %s", command, e)
            return StartResult(StartStatus.EXCEPTION, error=e)

        pub_guarded = command.is_pub_related
        if pub_guarded and not self._pub_lock.acquire(blocking=False):
            logger.info("Not starting %s: a pub command is already running", command)
            return StartResult(StartStatus.ALREADY_RUNNING)

        env = os.environ.copy()
        env.update(line.environment)

        logger.info("Starting %s: %s", command.type.title, line)
        try:
            popen = Popen(
                line.argv,
                cwd=line.work_dir,
                env=env,
                stdout=PIPE,
                stderr=PIPE,
                text=True,
                encoding=line.charset,
                errors="replace",
                bufsize=1,  # Line buffered
            )
        except (OSError, SubprocessError) as e:
            if pub_guarded:
                self._pub_lock.release()
            logger.warning("Failed to start %s: %s", command, e)
            return StartResult(StartStatus.EXCEPTION, error=e)

        process = RunningProcess(
            command,
            line,
            popen,
            on_output=on_output,
            on_exit=on_exit,
            on_finished=self._pub_lock.release if pub_guarded else None,
        )
        return StartResult(StartStatus.OK, process=process)

    def start_process(
        self,
        command: FlutterCommand,
        on_output: OutputCallback | None = None,
        on_exit: ExitCallback | None = None,
    ) -> RunningProcess | None:
        """Start a command; return the live process or None if it did not start."""
        return self.start(command, on_output=on_output, on_exit=on_exit).process

    def run(
        self,
        command: FlutterCommand,
        on_output: OutputCallback | None = None,
    ) -> int | None:
        """Run a command to completion, blocking the caller with no timeout.

        Only call this from a background thread.

        Returns:
            The exit code, or None if the process could not be started or
            its ``done`` future was cancelled while waiting.

        """
        process = self.start_process(command, on_output=on_output)
        if process is None:
            return None
        exit_code = process.wait()
        if exit_code is None:
            logger.warning("Stopped waiting for %s: completion was cancelled", command)
        return exit_code
