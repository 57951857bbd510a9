"""Ready-made stream handlers for captured spawns."""

from collections.abc import Callable
from dataclasses import dataclass

from shell_toolkit.streams import Endpoint


@dataclass(frozen=True)
class Chunk:
    data: bytes
    is_eof: bool = False


class CaptureOutput:
    """Collect everything the child writes to a stream."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def data(self) -> bytes:
        return bytes(self._buffer)

    @property
    def text(self) -> str:
        return self._buffer.decode("utf-8", errors="replace")

    def read_handler(self, endpoint: Endpoint) -> None:
        data = endpoint.read()
        if data:
            self._buffer += data


class ChunkReader:
    """Hand each chunk of child output to a callback.

    The callback gets one final ``Chunk(b"", is_eof=True)`` when the stream ends.
    """

    def __init__(self, callback: Callable[[Chunk], None], chunk_size: int = 1024):
        self.callback = callback
        self.chunk_size = chunk_size

    def read_handler(self, endpoint: Endpoint) -> None:
        data = endpoint.read(self.chunk_size)
        if data:
            self.callback(Chunk(data))
        elif endpoint.at_eof:
            self.callback(Chunk(b"", is_eof=True))


class ChunkWriter:
    """Feed the child from a producer; the endpoint is closed after an EOF chunk."""

    def __init__(self, producer: Callable[[], Chunk]):
        self.producer = producer

    def write_handler(self, endpoint: Endpoint) -> None:
        chunk = self.producer()
        if chunk.data:
            endpoint.write(chunk.data)
        if chunk.is_eof:
            endpoint.close()


class StringInput(ChunkWriter):
    """Send a literal string as the child's whole input."""

    def __init__(self, text: str, encoding: str = "utf-8"):
        data = text.encode(encoding)
        super().__init__(lambda: Chunk(data, is_eof=True))
        self.text = text
