"""Data models for playlists, their tags, and download results."""

from .download_models import DownloadReport
from .playlist_models import (
    ByteRange,
    DateRange,
    IFrameStream,
    KeyInfo,
    MapInfo,
    MasterPlaylist,
    MediaPlaylist,
    MediaSegment,
    Rendition,
    SessionData,
    StartPoint,
    VariantStream,
)

__all__ = [
    "ByteRange",
    "DateRange",
    "DownloadReport",
    "IFrameStream",
    "KeyInfo",
    "MapInfo",
    "MasterPlaylist",
    "MediaPlaylist",
    "MediaSegment",
    "Rendition",
    "SessionData",
    "StartPoint",
    "VariantStream",
]
