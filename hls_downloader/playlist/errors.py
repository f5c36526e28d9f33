"""Errors raised while reading, parsing, and decoding playlists."""

from __future__ import annotations

from typing import Optional


class PlaylistError(Exception):
    """Base class for playlist decoding failures."""


class StreamError(PlaylistError):
    """Raised when the underlying byte stream fails for a reason other than EOF."""


class MalformedLineError(PlaylistError):
    """Raised when a playlist line violates the tag or attribute grammar."""

    def __init__(self, message: str, line: Optional[str] = None) -> None:
        if line is not None:
            message = f"{message}: {line!r}"
        super().__init__(message)
        self.line = line
