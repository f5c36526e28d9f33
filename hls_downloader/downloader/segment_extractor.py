"""Streams segment references out of a media playlist without building a model."""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from ..playlist.attributes import split_tag
from ..playlist.errors import MalformedLineError
from ..playlist.reader import LineReader
from ..playlist.tags import Tag


class SegmentExtractor:
    """Yields the raw (unresolved) URI of every segment, in playlist order.

    Only ``#EXTINF`` and ``#EXT-X-ENDLIST`` are interpreted; every other tag
    is skipped. The extractor consumes its reader, so it can be iterated once.
    """

    def __init__(self, reader: LineReader) -> None:
        self._reader = reader
        self.count = 0

    def __iter__(self) -> Iterator[str]:
        pending = False
        pushed_back: Optional[str] = None
        while True:
            if pushed_back is not None:
                line, pushed_back = pushed_back, None
            else:
                line = self._next_line()
            if line is None:
                break
            if not line:
                continue

            if not line.startswith("#"):
                if pending:
                    pending = False
                    self.count += 1
                    yield line
                continue

            name, value = split_tag(line)
            tag = Tag.lookup(name)
            if tag is Tag.EXT_X_ENDLIST:
                if pending:
                    raise MalformedLineError("#EXT-X-ENDLIST before the URI of the last segment", line)
                logging.debug("Reached %s after %s segments", name, self.count)
                return
            if tag is not Tag.EXTINF:
                continue
            if pending:
                raise MalformedLineError("#EXTINF without a segment URI before it", line)
            pending = True
            if not self._has_title(value, line):
                # Some encoders put the file name on the line right after
                # "#EXTINF:<duration>,"; read it now.
                ahead = self._next_line()
                if ahead and not ahead.startswith("#"):
                    pending = False
                    self.count += 1
                    yield ahead
                else:
                    pushed_back = ahead

        if pending:
            raise MalformedLineError("playlist ends before the URI of its last segment")

    def _next_line(self) -> Optional[str]:
        raw = self._reader.read_line()
        if raw is None:
            return None
        try:
            return raw.decode("utf-8").strip()
        except UnicodeDecodeError as exc:
            raise MalformedLineError("line is not valid UTF-8", repr(raw)) from exc

    @staticmethod
    def _has_title(value: str, line: str) -> bool:
        duration, sep, title = value.partition(",")
        if not sep or not duration.strip():
            raise MalformedLineError("#EXTINF needs '<duration>,[title]'", line)
        return bool(title.strip())


def iter_segment_references(reader: LineReader) -> Iterator[str]:
    return iter(SegmentExtractor(reader))
