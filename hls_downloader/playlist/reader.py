"""Incremental line reader for playlist byte streams."""

from __future__ import annotations

import logging
from typing import BinaryIO, Iterator, Optional

from .errors import StreamError

DEFAULT_CHUNK_SIZE = 128


class LineReader:
    """Splits a byte stream into logical lines without loading it whole.

    Bytes pulled from the source land in a scratch buffer of ``chunk_size``
    bytes and are appended to an arena that only grows. Three cursors index
    the arena: ``_start`` is where the next line begins, ``_scan`` is how far
    the arena is known to hold no newline, and ``_length`` is the end of the
    valid bytes. Returned lines are copies, so they stay valid after the next
    call.

    ``\\r\\n`` and ``\\n`` both terminate a line. A last line without a
    terminator is returned once before the reader reports the end of the
    stream with ``None``.
    """

    def __init__(self, stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            chunk_size = DEFAULT_CHUNK_SIZE
        self._stream = stream
        self._scratch = bytearray(chunk_size)
        self._arena = bytearray(chunk_size)
        self._start = 0
        self._scan = 0
        self._length = 0
        self._eof = False
        self._broken: Optional[BaseException] = None

    def set_source(self, stream: BinaryIO) -> None:
        """Reads from ``stream`` from now on, reusing the allocated buffers."""

        self._stream = stream
        self._start = self._scan = self._length = 0
        self._eof = False
        self._broken = None

    @property
    def capacity(self) -> int:
        return len(self._arena)

    def read_line(self) -> Optional[bytes]:
        if self._broken is not None:
            raise StreamError("line reader is unusable after a read failure") from self._broken

        while True:
            newline = self._arena.find(b"\n", self._scan, self._length)
            if newline >= 0:
                line = bytes(self._arena[self._start:newline])
                self._start = self._scan = newline + 1
                if self._start == self._length:
                    self._start = self._scan = self._length = 0
                return _strip_cr(line)
            self._scan = self._length

            if self._eof:
                return self._take_remainder()
            self._fill()

    def __iter__(self) -> Iterator[bytes]:
        while True:
            line = self.read_line()
            if line is None:
                return
            yield line

    def _take_remainder(self) -> Optional[bytes]:
        if self._start == self._length:
            return None
        line = bytes(self._arena[self._start:self._length])
        self._start = self._scan = self._length = 0
        return _strip_cr(line)

    def _fill(self) -> None:
        try:
            readinto = getattr(self._stream, "readinto", None)
            if readinto is not None:
                count = readinto(self._scratch) or 0
                data = memoryview(self._scratch)[:count]
            else:
                data = self._stream.read(len(self._scratch)) or b""
                count = len(data)
        except OSError as exc:
            self._broken = exc
            logging.debug("Playlist stream read failed: %s", exc)
            raise StreamError(f"failed to read playlist stream: {exc}") from exc

        if count == 0:
            self._eof = True
            return
        self._append(data)

    def _append(self, data) -> None:
        count = len(data)
        if self._length + count > len(self._arena) and self._start > 0:
            # Slide unconsumed bytes to the front before growing.
            pending = self._length - self._start
            self._arena[0:pending] = self._arena[self._start:self._length]
            self._scan -= self._start
            self._length = pending
            self._start = 0
        needed = self._length + count
        if needed > len(self._arena):
            self._arena.extend(bytes(max(needed, 2 * len(self._arena)) - len(self._arena)))
        self._arena[self._length:needed] = data
        self._length = needed


def _strip_cr(line: bytes) -> bytes:
    if line.endswith(b"\r"):
        return line[:-1]
    return line
