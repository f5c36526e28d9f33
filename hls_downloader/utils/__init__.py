"""Utility helpers for HTTP, URLs, and filesystem operations."""

from .file_utils import ensure_directory, remove_partial_file
from .http_client import HttpClient, TransportError
from .url_utils import ResolutionError, playlist_base_url, resolve_reference, segment_filename

__all__ = [
    "HttpClient",
    "ResolutionError",
    "TransportError",
    "ensure_directory",
    "playlist_base_url",
    "remove_partial_file",
    "resolve_reference",
    "segment_filename",
]
