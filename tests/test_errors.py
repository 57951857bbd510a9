"""Tests for errors.py — errno to exception mapping."""

import errno

from shell_toolkit import errors


def test_enoent_is_command_not_found():
    e = errors.error_for_errno(errno.ENOENT, "nope")
    assert isinstance(e, errors.CommandNotFound)
    assert e.command == "nope"
    assert e.errno == errno.ENOENT


def test_permission_errors():
    assert isinstance(errors.error_for_errno(errno.EACCES, "x"), errors.PermissionDenied)
    assert isinstance(errors.error_for_errno(errno.EPERM, "x"), errors.PermissionDenied)


def test_unmapped_errno_keeps_code():
    e = errors.error_for_errno(errno.EIO, "x")
    assert type(e) is errors.SpawnErrno
    assert e.errno == errno.EIO


def test_from_os_error():
    e = errors.from_os_error(OSError(errno.E2BIG, "too long"), "cmd")
    assert isinstance(e, errors.ArgumentListTooLong)
    assert "cmd" in str(e)


def test_all_are_runtime_errors():
    assert issubclass(errors.SpawnError, RuntimeError)
    assert issubclass(errors.PtyAllocationError, errors.SpawnError)
