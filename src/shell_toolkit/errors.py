"""Spawn failure taxonomy — every error raised before a child process exists."""

import errno as _errno
import os


class SpawnError(RuntimeError):
    """A child process could not be created.

    ``errno`` holds the OS error code when one was reported.
    """

    def __init__(self, command: str, errno: int | None = None, message: str | None = None):
        self.command = command
        self.errno = errno
        if message is None:
            reason = os.strerror(errno) if errno is not None else "spawn failed"
            message = f"{command}: {reason}"
        super().__init__(message)


class CommandNotFound(SpawnError):
    pass


class NotExecutable(SpawnError):
    pass


class PermissionDenied(SpawnError):
    pass


class ArgumentListTooLong(SpawnError):
    pass


class OutOfMemory(SpawnError):
    pass


class TextFileBusy(SpawnError):
    pass


class PathTooLong(SpawnError):
    pass


class SpawnErrno(SpawnError):
    """Any OS error without a dedicated class; the errno is kept verbatim."""


class PtyAllocationError(SpawnError):
    """The pseudo-terminal pair could not be allocated."""


_BY_ERRNO: dict[int, type[SpawnError]] = {
    _errno.ENOENT: CommandNotFound,
    _errno.ENOEXEC: NotExecutable,
    _errno.EACCES: PermissionDenied,
    _errno.EPERM: PermissionDenied,
    _errno.E2BIG: ArgumentListTooLong,
    _errno.ENOMEM: OutOfMemory,
    _errno.ETXTBSY: TextFileBusy,
    _errno.ENAMETOOLONG: PathTooLong,
}


def error_for_errno(err: int, command: str) -> SpawnError:
    """Map an OS error code to its SpawnError subclass."""
    cls = _BY_ERRNO.get(err, SpawnErrno)
    return cls(command, errno=err)


def from_os_error(exc: OSError, command: str) -> SpawnError:
    if exc.errno is None:
        return SpawnErrno(command, message=f"{command}: {exc}")
    return error_for_errno(exc.errno, command)
