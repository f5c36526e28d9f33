"""URL helpers for playlist-relative segment references."""

from __future__ import annotations

import posixpath
from urllib.parse import urlparse, urlunparse


class ResolutionError(ValueError):
    """Raised when a segment reference cannot be turned into a usable URL."""


def playlist_base_url(playlist_url: str) -> str:
    """Returns the directory URL of ``playlist_url`` without a trailing slash."""

    parsed = urlparse(playlist_url)
    if not parsed.scheme or not parsed.netloc:
        raise ResolutionError(f"playlist URL is not absolute: {playlist_url}")
    directory = posixpath.dirname(parsed.path)
    return urlunparse((parsed.scheme, parsed.netloc, directory, "", "", "")).rstrip("/")


def resolve_reference(base_url: str, reference: str) -> str:
    """Resolves a segment reference found in a playlist.

    References with a scheme are used as they are. Anything else is appended
    to ``base_url``; a reference starting with ``/`` replaces the whole path.
    """

    try:
        parsed = urlparse(reference)
    except ValueError as exc:
        raise ResolutionError(f"cannot parse segment reference {reference!r}: {exc}") from exc
    if parsed.scheme:
        if not parsed.netloc:
            raise ResolutionError(f"segment URL has no host: {reference}")
        return reference
    if not reference:
        raise ResolutionError("empty segment reference")
    if reference.startswith("/"):
        base = urlparse(base_url)
        return urlunparse((base.scheme, base.netloc, "", "", "", "")) + reference
    return f"{base_url}/{reference}"


def segment_filename(url: str) -> str:
    """Local file name for a segment: the last path component of its URL."""

    try:
        path = urlparse(url).path
    except ValueError as exc:
        raise ResolutionError(f"cannot parse segment URL {url!r}: {exc}") from exc
    name = posixpath.basename(path)
    if not name or name in (".", ".."):
        raise ResolutionError(f"segment URL has no file name: {url}")
    return name
