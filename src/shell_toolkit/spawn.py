"""Spawn core — resolve a command, launch it, and hand back a process handle.

Two launch strategies sit behind one ``run`` call:

* pass-through (``IOMode.PASSTHRU``): ``os.posix_spawn`` with the parent's
  descriptors inherited, for fully interactive programs such as editors.
  The returned ``PidHandle`` reaps the child through ``ChildProcessMonitor``.
* captured (``IOMode.PIPE`` / ``IOMode.PTY``): ``subprocess.Popen`` with each
  standard stream routed independently to a handler, the null device, or the
  parent's own descriptor. The returned ``ManagedHandle`` keeps the endpoint
  pairs alive until the child has finished and its output has been drained.
"""

import asyncio
import dataclasses
import enum
import errno
import logging
import os
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from shell_toolkit.errors import CommandNotFound, NotExecutable, SpawnErrno, from_os_error
from shell_toolkit.monitor import ChildProcessMonitor
from shell_toolkit.streams import Direction, Endpoint, EndpointPair, Handler, PipePair, PtyPair

logger = logging.getLogger(__name__)

# After the child exits, output still counts as arriving until its endpoint
# has been idle this long with nothing left unread.
DRAIN_GRACE = 0.05


class EnvironmentMode(enum.Enum):
    EMPTY = "empty"
    PASSTHRU = "passthru"
    EXACT = "exact"
    APPEND = "append"


@dataclass(frozen=True)
class Environment:
    """Which variables the child sees; resolved only at spawn time."""

    mode: EnvironmentMode = EnvironmentMode.PASSTHRU
    variables: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "Environment":
        return cls(EnvironmentMode.EMPTY)

    @classmethod
    def passthru(cls) -> "Environment":
        return cls(EnvironmentMode.PASSTHRU)

    @classmethod
    def exact(cls, variables: Mapping[str, str]) -> "Environment":
        return cls(EnvironmentMode.EXACT, dict(variables))

    @classmethod
    def append(cls, variables: Mapping[str, str]) -> "Environment":
        """Parent's variables plus these; these win on collision."""
        return cls(EnvironmentMode.APPEND, dict(variables))

    def resolve(self, parent: Mapping[str, str] | None = None) -> dict[str, str]:
        if parent is None:
            parent = os.environ
        if self.mode is EnvironmentMode.EMPTY:
            return {}
        if self.mode is EnvironmentMode.PASSTHRU:
            return dict(parent)
        if self.mode is EnvironmentMode.EXACT:
            return dict(self.variables)
        return {**parent, **self.variables}


class IOMode(enum.Enum):
    PASSTHRU = "passthru"
    PIPE = "pipe"
    PTY = "pty"

    def create_pair(self, direction: Direction) -> EndpointPair | None:
        if self is IOMode.PIPE:
            return PipePair(direction)
        if self is IOMode.PTY:
            return PtyPair(direction)
        return None


class Redirect(enum.Enum):
    """Stream routes that need no handler."""

    PASSTHRU = "passthru"
    DISCARD = "discard"


class LaunchMode(enum.Enum):
    PASSTHRU = "passthru"
    CAPTURED = "captured"


class ReadsOutput(Protocol):
    def read_handler(self, endpoint: Endpoint) -> None: ...


class WritesInput(Protocol):
    def write_handler(self, endpoint: Endpoint) -> None: ...


# None selects the mode default.
Route = Redirect | Handler | ReadsOutput | WritesInput | None


@dataclass(frozen=True)
class SpawnContext:
    """Defaults shared by spawn calls. Derive new contexts, never mutate."""

    environment: Environment = field(default_factory=Environment.passthru)
    working_directory: str | None = None
    io_mode: IOMode = IOMode.PASSTHRU
    search_path: str | None = None

    def with_working_directory(self, path: str | os.PathLike | None) -> "SpawnContext":
        return dataclasses.replace(
            self, working_directory=os.fspath(path) if path is not None else None
        )

    def with_io_mode(self, io_mode: IOMode) -> "SpawnContext":
        return dataclasses.replace(self, io_mode=io_mode)

    def with_environment(self, environment: Environment) -> "SpawnContext":
        return dataclasses.replace(self, environment=environment)


DEFAULT_CONTEXT = SpawnContext()


def find_executable(command: str, search_path: str | None = None) -> str:
    """Resolve a command name to a path.

    A name containing a path separator must exist as given. Otherwise the
    directories of ``search_path`` (default: this process's PATH) are tried in
    order and the first existing entry wins.
    """
    if os.sep in command:
        if not os.path.exists(command):
            raise CommandNotFound(command, errno=errno.ENOENT)
        return _check_executable(command)

    if search_path is None:
        search_path = os.environ.get("PATH", os.defpath)
    for directory in search_path.split(os.pathsep):
        candidate = os.path.join(directory or os.curdir, command)
        if os.path.exists(candidate):
            return _check_executable(candidate)
    raise CommandNotFound(command, errno=errno.ENOENT, message=f"{command}: command not found")


def _check_executable(path: str) -> str:
    if os.path.isdir(path) or not os.access(path, os.X_OK):
        raise NotExecutable(path, errno=errno.EACCES, message=f"{path}: not executable")
    return path


class ProcessHandle(ABC):
    """One spawned child: poll, wait, or await its exit status.

    Exit status moves once from unknown to known and is cached; ``wait`` may
    be called any number of times. Negative codes mean the child was killed
    by that signal.
    """

    launch_mode: LaunchMode

    @property
    @abstractmethod
    def pid(self) -> int: ...

    @abstractmethod
    def is_running(self) -> bool: ...

    @abstractmethod
    def did_finish_running(self) -> bool: ...

    @property
    @abstractmethod
    def exit_status(self) -> int | None:
        """Exit code if the child has terminated, else None. Never blocks."""

    @abstractmethod
    def wait(self) -> int: ...

    @property
    def exit_status_is_successful(self) -> bool:
        return self.exit_status == 0

    async def exit_status_async(self) -> int:
        """Await the exit code without blocking the event loop."""
        return await asyncio.to_thread(self.wait)

    def release(self) -> None:
        """Close any endpoints retained for the child's streams."""

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.wait()
        self.release()


class PidHandle(ProcessHandle):
    """Handle for a pass-through child known only by its pid."""

    launch_mode = LaunchMode.PASSTHRU

    def __init__(self, pid: int):
        self.monitor = ChildProcessMonitor(pid)

    def __repr__(self) -> str:
        return f"<PidHandle pid={self.pid} exit_status={self.monitor.status()}>"

    @property
    def pid(self) -> int:
        return self.monitor.pid

    def is_running(self) -> bool:
        return self.monitor.is_running()

    def did_finish_running(self) -> bool:
        return self.monitor.did_finish_running()

    @property
    def exit_status(self) -> int | None:
        return self.monitor.status()

    def wait(self) -> int:
        status = self.monitor.wait_status()
        if status is None:
            # Reaped elsewhere (e.g. SIGCHLD set to SIG_IGN); the code is lost.
            logger.debug("pid %d could not be waited on (errno %s)", self.pid, self.monitor.last_errno)
            return -1
        return status


class ManagedHandle(ProcessHandle):
    """Handle for a captured child backed by ``subprocess.Popen``."""

    launch_mode = LaunchMode.CAPTURED

    def __init__(self, process: subprocess.Popen, pairs: list[EndpointPair] | None = None):
        self.process = process
        # Keep-alive: handlers stop firing once these are released.
        self.pairs: list[EndpointPair] = list(pairs or [])
        self._returncode: int | None = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<ManagedHandle pid={self.pid} exit_status={self.exit_status}>"

    @property
    def pid(self) -> int:
        return self.process.pid

    def is_running(self) -> bool:
        return self._returncode is None and self.process.poll() is None

    def did_finish_running(self) -> bool:
        return not self.is_running()

    @property
    def exit_status(self) -> int | None:
        if self._returncode is not None:
            return self._returncode
        return self.process.poll()

    @property
    def stream_errors(self) -> list[Exception]:
        return [pair.owned.error for pair in self.pairs if pair.owned.error is not None]

    def wait(self) -> int:
        """Wait for the child to exit, then drain its captured output.

        Draining ends at EOF, or once an endpoint has gone quiet after the
        exit. A descendant that inherited the child's stdout keeps EOF away
        but does not keep this call blocked.
        """
        with self._lock:
            if self._returncode is None:
                returncode = self.process.wait()
                exited = time.monotonic()
                for pair in self.pairs:
                    if pair.captures_output:
                        _drain(pair.owned, exited)
                self.release()
                self._returncode = returncode
            return self._returncode

    def release(self) -> None:
        for pair in self.pairs:
            pair.close()


def run(
    command: str,
    args: Sequence[str] = (),
    *,
    context: SpawnContext = DEFAULT_CONTEXT,
    environment: Environment | None = None,
    io_mode: IOMode | None = None,
    cwd: str | os.PathLike | None = None,
    stdin: Route = None,
    stdout: Route = None,
    stderr: Route = None,
) -> ProcessHandle:
    """Launch ``command`` with ``args`` and return a handle without waiting.

    ``environment``, ``io_mode`` and ``cwd`` override the context defaults.
    Raises a SpawnError subclass if the child could not be created.
    """
    path = find_executable(command, context.search_path)
    env = (environment or context.environment).resolve()
    mode = io_mode or context.io_mode
    workdir = os.fspath(cwd) if cwd is not None else context.working_directory
    if workdir is not None and not os.path.isdir(workdir):
        raise SpawnErrno(
            command, errno=errno.ENOENT, message=f"working directory not found: {workdir}"
        )

    argv = [path, *args]
    if mode is IOMode.PASSTHRU:
        handle = _run_passthru(argv, env, workdir, (stdin, stdout, stderr))
    else:
        handle = _run_captured(argv, env, workdir, mode, stdin, stdout, stderr)
    logger.debug("spawned %s pid=%d (%s)", path, handle.pid, mode.value)
    return handle


def run_and_wait(command: str, args: Sequence[str] = (), **kwargs) -> int:
    """``run`` followed by a blocking wait. Returns the exit code."""
    return run(command, args, **kwargs).wait()


async def run_and_wait_async(command: str, args: Sequence[str] = (), **kwargs) -> int:
    handle = run(command, args, **kwargs)
    return await handle.exit_status_async()


_CWD_LOCK = threading.Lock()


def _run_passthru(argv: list[str], env: dict[str, str], workdir: str | None, routes) -> PidHandle:
    file_actions = []
    for fd, route in enumerate(routes):
        if route is None or route is Redirect.PASSTHRU:
            continue
        if route is Redirect.DISCARD:
            flags = os.O_RDONLY if fd == 0 else os.O_WRONLY
            file_actions.append((os.POSIX_SPAWN_OPEN, fd, os.devnull, flags, 0))
            continue
        raise ValueError("stream handlers need IOMode.PIPE or IOMode.PTY")

    try:
        if workdir is None:
            pid = os.posix_spawn(argv[0], argv, env, file_actions=file_actions or None)
        else:
            # posix_spawn takes no working directory; the process-wide cwd is
            # swapped under a lock, and other threads see it while it is held.
            with _CWD_LOCK:
                previous = os.getcwd()
                os.chdir(workdir)
                try:
                    pid = os.posix_spawn(argv[0], argv, env, file_actions=file_actions or None)
                finally:
                    os.chdir(previous)
    except OSError as e:
        raise from_os_error(e, argv[0]) from e
    return PidHandle(pid)


def _run_captured(
    argv: list[str],
    env: dict[str, str],
    workdir: str | None,
    mode: IOMode,
    stdin: Route,
    stdout: Route,
    stderr: Route,
) -> ManagedHandle:
    pairs: list[EndpointPair] = []
    attachments: list[tuple[EndpointPair, Callable[[Endpoint], None]]] = []

    def route(target: Route, default: Redirect, direction: Direction):
        if target is None:
            target = default
        if target is Redirect.PASSTHRU:
            return None
        if target is Redirect.DISCARD:
            return subprocess.DEVNULL
        handler = _handler_for(target, direction)
        pair = mode.create_pair(direction)
        pairs.append(pair)
        attachments.append((pair, handler))
        return pair.child_fd

    try:
        process = subprocess.Popen(
            argv,
            executable=argv[0],
            env=env,
            cwd=workdir,
            stdin=route(stdin, Redirect.DISCARD, Direction.TO_CHILD),
            stdout=route(stdout, Redirect.PASSTHRU, Direction.FROM_CHILD),
            stderr=route(stderr, Redirect.PASSTHRU, Direction.FROM_CHILD),
        )
    except OSError as e:
        _close_all(pairs)
        raise from_os_error(e, argv[0]) from e
    except BaseException:
        _close_all(pairs)
        raise

    for pair, handler in attachments:
        pair.close_child()
        if pair.direction is Direction.TO_CHILD:
            pair.write_handler = handler
        else:
            pair.read_handler = handler
    return ManagedHandle(process, pairs)


def _handler_for(target: Route, direction: Direction) -> Callable[[Endpoint], None]:
    attr = "write_handler" if direction is Direction.TO_CHILD else "read_handler"
    handler = getattr(target, attr, None)
    if callable(handler):
        return handler
    if callable(target):
        return target
    raise TypeError(f"{target!r} is not a stream route (expected a Redirect, a callable or an object with {attr})")


def _drain(endpoint: Endpoint, exited: float) -> None:
    while not endpoint.finished.wait(DRAIN_GRACE):
        idle_since = max(endpoint.last_activity, exited)
        if time.monotonic() - idle_since >= DRAIN_GRACE and not endpoint.pending():
            logger.debug("%s still open after exit; releasing without EOF", endpoint.name)
            return


def _close_all(pairs: list[EndpointPair]) -> None:
    for pair in pairs:
        pair.close()
