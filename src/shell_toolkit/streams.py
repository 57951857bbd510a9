"""Pipe and pseudo-terminal endpoint pairs with readiness callbacks.

A pair is two connected descriptors: the owned endpoint stays in this process
and the child endpoint becomes one of the child's standard streams. Handlers
attached to the owned endpoint are invoked from a single background
dispatcher thread whenever the descriptor is ready.
"""

import enum
import errno
import fcntl
import logging
import os
import selectors
import struct
import termios
import threading
import time
from collections.abc import Callable

from shell_toolkit.errors import PtyAllocationError

logger = logging.getLogger(__name__)

READ_CHUNK = 65536

Handler = Callable[["Endpoint"], None]


class Direction(enum.Enum):
    TO_CHILD = "to_child"
    FROM_CHILD = "from_child"


class Endpoint:
    """The descriptor of a pair kept by this process; handlers receive it.

    Reads and writes never block. ``read`` returns what is available now and
    ``b""`` once the other side has gone away (``at_eof`` tells the two
    apart). ``write`` buffers whatever the OS does not accept immediately;
    the dispatcher flushes the buffer when the descriptor turns writable, and
    ``close`` waits for that flush.

    ``finished`` is set at EOF, on close, or when the read handler is removed:
    in each case no further output will be delivered.
    """

    def __init__(self, fd: int, name: str = "endpoint"):
        os.set_blocking(fd, False)
        self.name = name
        self.error: Exception | None = None
        self.finished = threading.Event()
        self.last_activity = time.monotonic()
        self._fd = fd
        self._lock = threading.RLock()
        self._outbuf = bytearray()
        self._closed = False
        self._close_requested = False
        self._at_eof = False
        self._registered = False
        self._read_handler: Handler | None = None
        self._write_handler: Handler | None = None

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"fd={self._fd}"
        return f"<Endpoint {self.name} {state}>"

    def fileno(self) -> int:
        return self._fd

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def at_eof(self) -> bool:
        return self._at_eof

    @property
    def read_handler(self) -> Handler | None:
        return self._read_handler

    @read_handler.setter
    def read_handler(self, handler: Handler | None) -> None:
        with self._lock:
            if handler is None and self._read_handler is not None:
                self.finished.set()
            self._read_handler = handler
        self._reschedule()

    @property
    def write_handler(self) -> Handler | None:
        return self._write_handler

    @write_handler.setter
    def write_handler(self, handler: Handler | None) -> None:
        with self._lock:
            self._write_handler = handler
        self._reschedule()

    def read(self, size: int = READ_CHUNK) -> bytes:
        with self._lock:
            if self._closed or self._at_eof:
                return b""
            try:
                data = os.read(self._fd, size)
            except BlockingIOError:
                return b""
            except OSError as e:
                # A pty master reports EIO once every slave descriptor is closed.
                if e.errno != errno.EIO:
                    raise
                data = b""
            if data:
                self.last_activity = time.monotonic()
            else:
                self._at_eof = True
                self.finished.set()
        if not data:
            self._reschedule()
        return data

    def pending(self) -> int:
        """Bytes the OS holds for this endpoint that have not been read yet."""
        with self._lock:
            if self._closed or self._at_eof:
                return 0
            try:
                raw = fcntl.ioctl(self._fd, termios.FIONREAD, b"\0\0\0\0")
            except OSError:
                return 0
        return struct.unpack("i", raw)[0]

    def write(self, data: bytes) -> None:
        with self._lock:
            if self._closed or self._close_requested:
                raise ValueError(f"write to closed {self.name}")
            self._outbuf += data
            self._flush()
        self._reschedule()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            if not self._registered and not self._outbuf:
                self._close_now()
                return
            self._close_requested = True
        _dispatcher.update(self)

    def _flush(self) -> bool:
        """Write buffered bytes. True once nothing is left to write."""
        while self._outbuf:
            try:
                written = os.write(self._fd, self._outbuf)
            except BlockingIOError:
                return False
            except OSError as e:
                # The child closed its end; nothing more can be delivered.
                if e.errno not in (errno.EPIPE, errno.EIO):
                    self.error = e
                self._outbuf.clear()
                self._close_requested = True
                return True
            del self._outbuf[:written]
        return True

    def _interest(self) -> int:
        if self._closed:
            return 0
        events = 0
        if self._outbuf or (self._write_handler is not None and not self._close_requested):
            events |= selectors.EVENT_WRITE
        if self._read_handler is not None and not self._at_eof and not self._close_requested:
            events |= selectors.EVENT_READ
        return events

    def _reschedule(self) -> None:
        if self._registered or self._interest() or self._close_requested:
            _dispatcher.update(self)

    def _close_now(self) -> None:
        self._closed = True
        self._outbuf.clear()
        try:
            os.close(self._fd)
        except OSError as e:
            logger.debug("closing %s failed: %s", self.name, e)
        self.finished.set()

    def _dispatch(self, events: int) -> None:
        if events & selectors.EVENT_WRITE:
            with self._lock:
                flushed = self._flush()
                handler = self._write_handler
                if not flushed or self._close_requested or self._closed:
                    handler = None
            if handler is not None:
                self._call(handler)
        if events & selectors.EVENT_READ:
            with self._lock:
                handler = self._read_handler
                if self._closed or self._close_requested or self._at_eof:
                    handler = None
            if handler is not None:
                self._call(handler)

    def _call(self, handler: Handler) -> None:
        try:
            handler(self)
        except Exception as e:
            logger.debug("%s handler raised", self.name, exc_info=True)
            with self._lock:
                self.error = e
                self._read_handler = None
                self._write_handler = None
                self._outbuf.clear()
            self.close()


class _Dispatcher:
    """One daemon thread running a selector loop over registered endpoints.

    Only the dispatcher thread touches the selector; other threads queue the
    endpoint and wake the loop through a self-pipe.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: set[Endpoint] = set()
        self._thread: threading.Thread | None = None
        self._selector: selectors.BaseSelector | None = None
        self._wake_r = -1
        self._wake_w = -1

    def update(self, endpoint: Endpoint) -> None:
        with self._lock:
            self._pending.add(endpoint)
            if self._thread is None:
                self._start()
        try:
            os.write(self._wake_w, b"\0")
        except BlockingIOError:
            pass  # a wake-up is already queued

    def _start(self) -> None:
        self._selector = selectors.DefaultSelector()
        self._wake_r, self._wake_w = os.pipe()
        os.set_blocking(self._wake_r, False)
        os.set_blocking(self._wake_w, False)
        self._selector.register(self._wake_r, selectors.EVENT_READ)
        self._thread = threading.Thread(target=self._run, name="shell-toolkit-streams", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while True:
            self._apply_pending()
            for key, events in self._selector.select():
                if key.data is None:
                    self._drain_wake()
                    continue
                endpoint = key.data
                endpoint._dispatch(events)
                self._sync(endpoint)

    def _drain_wake(self) -> None:
        try:
            while os.read(self._wake_r, 4096):
                pass
        except BlockingIOError:
            pass

    def _apply_pending(self) -> None:
        with self._lock:
            pending, self._pending = self._pending, set()
        for endpoint in pending:
            self._sync(endpoint)

    def _sync(self, endpoint: Endpoint) -> None:
        with endpoint._lock:
            if endpoint._closed:
                return
            try:
                if endpoint._close_requested and not endpoint._outbuf:
                    self._unregister(endpoint)
                    endpoint._close_now()
                    return
                events = endpoint._interest()
                if not events:
                    self._unregister(endpoint)
                elif endpoint._registered:
                    self._selector.modify(endpoint, events, endpoint)
                else:
                    self._selector.register(endpoint, events, endpoint)
                    endpoint._registered = True
            except (OSError, ValueError) as e:
                logger.debug("cannot watch %s: %s", endpoint.name, e)
                endpoint.error = e
                self._unregister(endpoint)
                endpoint._close_now()

    def _unregister(self, endpoint: Endpoint) -> None:
        if endpoint._registered:
            try:
                self._selector.unregister(endpoint)
            except (KeyError, ValueError):
                pass
            endpoint._registered = False


_dispatcher = _Dispatcher()


class EndpointPair:
    """Owned endpoint plus the descriptor handed to the child.

    The pair must stay referenced until the child has finished writing or
    reading; releasing it closes the owned endpoint and stops delivery.
    """

    can_read = True
    can_write = True

    def __init__(self, owned: Endpoint, child_fd: int, direction: Direction):
        self.owned = owned
        self.child_fd: int | None = child_fd
        self.direction = direction

    @property
    def read_handler(self) -> Handler | None:
        return self.owned.read_handler

    @read_handler.setter
    def read_handler(self, handler: Handler | None) -> None:
        if handler is not None and not self.can_read:
            raise ValueError(f"{type(self).__name__} for child input cannot take a read handler")
        self.owned.read_handler = handler

    @property
    def write_handler(self) -> Handler | None:
        return self.owned.write_handler

    @write_handler.setter
    def write_handler(self, handler: Handler | None) -> None:
        if handler is not None and not self.can_write:
            raise ValueError(f"{type(self).__name__} for child output cannot take a write handler")
        self.owned.write_handler = handler

    @property
    def captures_output(self) -> bool:
        return self.direction is Direction.FROM_CHILD

    def close_child(self) -> None:
        """Drop this process's copy of the child endpoint once the child holds it."""
        if self.child_fd is not None:
            os.close(self.child_fd)
            self.child_fd = None

    def close(self) -> None:
        self.close_child()
        self.owned.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class PipePair(EndpointPair):
    """Anonymous pipe; the owned end follows the data direction."""

    def __init__(self, direction: Direction):
        read_fd, write_fd = os.pipe()
        if direction is Direction.FROM_CHILD:
            owned_fd, child_fd = read_fd, write_fd
        else:
            owned_fd, child_fd = write_fd, read_fd
        super().__init__(Endpoint(owned_fd, f"pipe ({direction.value})"), child_fd, direction)

    @property
    def can_read(self) -> bool:
        return self.direction is Direction.FROM_CHILD

    @property
    def can_write(self) -> bool:
        return self.direction is Direction.TO_CHILD


class PtyPair(EndpointPair):
    """Pseudo-terminal: the master is owned, the slave goes to the child."""

    def __init__(self, direction: Direction = Direction.FROM_CHILD):
        try:
            master_fd, slave_fd = os.openpty()
        except OSError as e:
            raise PtyAllocationError("openpty", errno=e.errno) from e
        try:
            owned = Endpoint(master_fd, f"pty master ({direction.value})")
        except OSError as e:
            os.close(master_fd)
            os.close(slave_fd)
            raise PtyAllocationError("openpty", errno=e.errno) from e
        super().__init__(owned, slave_fd, direction)
