"""Tests for handlers.py — capture, chunked reading, and string input."""

import os

from shell_toolkit.handlers import CaptureOutput, Chunk, ChunkReader, ChunkWriter, StringInput
from shell_toolkit.streams import Direction, PipePair


def _feed(pair, data):
    os.write(pair.child_fd, data)
    pair.close_child()
    assert pair.owned.finished.wait(5)
    pair.close()


def test_capture_output_collects_bytes():
    capture = CaptureOutput()
    pair = PipePair(Direction.FROM_CHILD)
    pair.read_handler = capture.read_handler
    _feed(pair, "héllo\n".encode())
    assert capture.data == "héllo\n".encode()
    assert capture.text == "héllo\n"


def test_capture_output_replaces_invalid_utf8():
    capture = CaptureOutput()
    pair = PipePair(Direction.FROM_CHILD)
    pair.read_handler = capture.read_handler
    _feed(pair, b"ok\xff")
    assert capture.text == "ok�"


def test_chunk_reader_ends_with_eof_chunk():
    chunks = []
    reader = ChunkReader(chunks.append, chunk_size=4)
    pair = PipePair(Direction.FROM_CHILD)
    pair.read_handler = reader.read_handler
    _feed(pair, b"0123456789")
    assert b"".join(c.data for c in chunks) == b"0123456789"
    assert chunks[-1] == Chunk(b"", is_eof=True)
    assert all(len(c.data) <= 4 for c in chunks)


def _drain(fd):
    out = []
    while True:
        data = os.read(fd, 1024)
        if not data:
            break
        out.append(data)
    os.close(fd)
    return b"".join(out)


def test_chunk_writer_sends_until_eof():
    pieces = [Chunk(b"ab"), Chunk(b"cd"), Chunk(b"", is_eof=True)]
    writer = ChunkWriter(lambda: pieces.pop(0))
    pair = PipePair(Direction.TO_CHILD)
    read_fd, pair.child_fd = pair.child_fd, None
    pair.write_handler = writer.write_handler
    assert _drain(read_fd) == b"abcd"


def test_string_input():
    pair = PipePair(Direction.TO_CHILD)
    read_fd, pair.child_fd = pair.child_fd, None
    pair.write_handler = StringInput("line one\nline two\n").write_handler
    assert _drain(read_fd) == b"line one\nline two\n"
