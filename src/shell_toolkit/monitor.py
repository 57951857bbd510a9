"""Child process monitor — poll/wait on a raw pid and cache its exit status."""

import errno
import logging
import os
import threading
import time

logger = logging.getLogger(__name__)

INITIAL_BACKOFF = 0.001


class ChildProcessMonitor:
    """Answers running/finished/exit-status questions for a child pid.

    The first decoded exit status is cached forever; once it is known the pid
    is never passed to waitpid again, since the OS may have handed it to an
    unrelated process. A pid that does not exist, or that is not a child of
    this process, is reported as "not running" rather than raising.
    """

    def __init__(self, pid: int):
        self.pid = pid
        self.last_errno: int | None = None
        self.terminating_signal: int | None = None
        self._exit_status: int | None = None
        self._lock = threading.Lock()

    def status(self) -> int | None:
        """Non-blocking poll. Returns the exit code, or None if not (yet) known."""
        return self._wait(block=False)

    def wait_status(self) -> int | None:
        """Block until the child exits and return its exit code.

        Returns None only when the pid cannot be waited on at all.
        """
        return self._wait(block=True)

    def is_running(self) -> bool:
        self._wait(block=False)
        if self._exit_status is not None:
            return False
        return self.last_errno not in (errno.ESRCH, errno.ECHILD)

    def did_finish_running(self) -> bool:
        self._wait(block=False)
        return self._exit_status is not None

    def _wait(self, block: bool) -> int | None:
        if self._exit_status is not None:
            return self._exit_status
        # One waitpid caller at a time. A poll that finds a blocking wait in
        # progress reports "not yet known" instead of racing it for the pid.
        if not self._lock.acquire(blocking=block):
            return None
        try:
            if self._exit_status is not None:
                return self._exit_status
            return self._waitpid(block)
        finally:
            self._lock.release()

    def _waitpid(self, block: bool) -> int | None:
        options = 0 if block else os.WNOHANG
        delay = INITIAL_BACKOFF
        while True:
            try:
                pid, status = os.waitpid(self.pid, options)
            except InterruptedError:
                time.sleep(delay)
                delay *= 2
                continue
            except OSError as e:
                logger.debug("waitpid(%d) failed: %s", self.pid, e)
                self.last_errno = e.errno
                return None

            if pid == 0:
                # WNOHANG and still running
                return None
            code = self._decode(status)
            if code is not None:
                self._exit_status = code
                return code
            if not block:
                return None

    def _decode(self, status: int) -> int | None:
        if os.WIFEXITED(status):
            return os.WEXITSTATUS(status)
        if os.WIFSIGNALED(status):
            self.terminating_signal = os.WTERMSIG(status)
            return -self.terminating_signal
        return None
