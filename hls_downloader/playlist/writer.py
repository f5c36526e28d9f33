"""Encodes playlist models back into RFC 8216 text."""

from __future__ import annotations

import io
from typing import BinaryIO, Iterable, Optional, Tuple, Union

from pydantic import BaseModel

from ..models.playlist_models import MasterPlaylist, MediaPlaylist, MediaSegment
from .attributes import format_attribute_list
from .errors import PlaylistError
from .tags import (
    DATERANGE_ATTRIBUTES,
    DATERANGE_TRAILING_ATTRIBUTES,
    I_FRAME_STREAM_INF_ATTRIBUTES,
    KEY_ATTRIBUTES,
    MAP_ATTRIBUTES,
    MASTER_ORDER,
    MEDIA_ATTRIBUTES,
    MEDIA_HEADER_ORDER,
    SEGMENT_ORDER,
    SESSION_DATA_ATTRIBUTES,
    START_ATTRIBUTES,
    STREAM_INF_ATTRIBUTES,
    AttributeSpec,
    Tag,
)


def encode(playlist: Union[MediaPlaylist, MasterPlaylist], stream: BinaryIO) -> None:
    """Writes ``playlist`` to a binary stream in canonical tag order."""

    PlaylistWriter(stream).write(playlist)


def dumps(playlist: Union[MediaPlaylist, MasterPlaylist]) -> str:
    buffer = io.BytesIO()
    encode(playlist, buffer)
    return buffer.getvalue().decode("utf-8")


def _attribute_pairs(model: BaseModel, spec: AttributeSpec) -> Iterable[Tuple[str, Optional[str], bool]]:
    for name, field, quoted in spec:
        yield name, getattr(model, field), quoted


class PlaylistWriter:
    """Appends tags for one playlist to ``stream``.

    The writer holds no playlist state of its own: every call reads the model
    it is given and walks the order tables from :mod:`.tags`.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def write(self, playlist: Union[MediaPlaylist, MasterPlaylist]) -> None:
        if isinstance(playlist, MasterPlaylist):
            self.write_master(playlist)
        else:
            self.write_media(playlist)

    def write_media(self, playlist: MediaPlaylist) -> None:
        for tag in MEDIA_HEADER_ORDER:
            if tag is Tag.EXTM3U:
                self._tag(tag)
            elif tag is Tag.EXT_X_VERSION:
                self._scalar(tag, playlist.version)
            elif tag is Tag.EXT_X_TARGETDURATION:
                self._scalar(tag, playlist.target_duration)
            elif tag is Tag.EXT_X_MEDIA_SEQUENCE:
                self._scalar(tag, playlist.media_sequence)
            elif tag is Tag.EXT_X_DISCONTINUITY_SEQUENCE:
                self._scalar(tag, playlist.discontinuity_sequence)
            elif tag is Tag.EXT_X_PLAYLIST_TYPE:
                self._scalar(tag, playlist.playlist_type)
            elif tag is Tag.EXT_X_I_FRAMES_ONLY:
                self._flag(tag, playlist.i_frames_only)
            elif tag is Tag.EXT_X_INDEPENDENT_SEGMENTS:
                self._flag(tag, playlist.independent_segments)
            elif tag is Tag.EXT_X_START:
                self._attributes(tag, playlist.start, START_ATTRIBUTES)
        for segment in playlist.segments:
            self.write_segment(segment)
        if playlist.endlist:
            self._tag(Tag.EXT_X_ENDLIST)

    def write_segment(self, segment: MediaSegment) -> None:
        for tag in SEGMENT_ORDER:
            if tag is Tag.EXTINF:
                self._tag(tag, f"{segment.duration},{segment.title or ''}")
            elif tag is Tag.EXT_X_BYTERANGE and segment.byte_range is not None:
                byte_range = segment.byte_range
                value = byte_range.length
                if byte_range.offset:
                    value = f"{value}@{byte_range.offset}"
                self._tag(tag, value)
            elif tag is Tag.EXT_X_DISCONTINUITY:
                self._flag(tag, segment.discontinuity)
            elif tag is Tag.EXT_X_KEY:
                self._attributes(tag, segment.key, KEY_ATTRIBUTES)
            elif tag is Tag.EXT_X_MAP:
                self._attributes(tag, segment.map, MAP_ATTRIBUTES)
            elif tag is Tag.EXT_X_PROGRAM_DATE_TIME:
                self._scalar(tag, segment.program_date_time)
            elif tag is Tag.EXT_X_DATERANGE and segment.date_range is not None:
                date_range = segment.date_range
                pairs = list(_attribute_pairs(date_range, DATERANGE_ATTRIBUTES))
                pairs.extend((name, value, None) for name, value in date_range.client_attributes.items())
                pairs.extend(_attribute_pairs(date_range, DATERANGE_TRAILING_ATTRIBUTES))
                self._tag(tag, format_attribute_list(pairs))
        self._line(segment.uri)

    def write_master(self, playlist: MasterPlaylist) -> None:
        """Writes a master playlist.

        At least one master-only tag must be written, otherwise the output
        would decode as an (empty) media playlist; such models raise
        :class:`PlaylistError`.
        """

        if not (
            playlist.renditions
            or playlist.variants
            or playlist.i_frame_variants
            or playlist.session_data
            or playlist.session_keys
        ):
            raise PlaylistError("master playlist has no renditions, variant streams or session tags to write")
        for tag in MASTER_ORDER:
            if tag is Tag.EXTM3U:
                self._tag(tag)
            elif tag is Tag.EXT_X_VERSION:
                self._scalar(tag, playlist.version)
            elif tag is Tag.EXT_X_MEDIA:
                for rendition in playlist.renditions:
                    self._attributes(tag, rendition, MEDIA_ATTRIBUTES)
            elif tag is Tag.EXT_X_STREAM_INF:
                for variant in playlist.variants:
                    self._attributes(tag, variant, STREAM_INF_ATTRIBUTES)
                    self._line(variant.uri)
            elif tag is Tag.EXT_X_I_FRAME_STREAM_INF:
                for stream in playlist.i_frame_variants:
                    self._attributes(tag, stream, I_FRAME_STREAM_INF_ATTRIBUTES)
                    self._line(stream.uri)
            elif tag is Tag.EXT_X_SESSION_DATA:
                for data in playlist.session_data:
                    self._attributes(tag, data, SESSION_DATA_ATTRIBUTES)
            elif tag is Tag.EXT_X_SESSION_KEY:
                for key in playlist.session_keys:
                    self._attributes(tag, key, KEY_ATTRIBUTES)
            elif tag is Tag.EXT_X_INDEPENDENT_SEGMENTS:
                self._flag(tag, playlist.independent_segments)
            elif tag is Tag.EXT_X_START:
                self._attributes(tag, playlist.start, START_ATTRIBUTES)

    def _scalar(self, tag: Tag, value: Optional[str]) -> None:
        if value is not None and value != "":
            self._tag(tag, value)

    def _flag(self, tag: Tag, present: bool) -> None:
        if present:
            self._tag(tag)

    def _attributes(self, tag: Tag, model: Optional[BaseModel], spec: AttributeSpec) -> None:
        if model is None:
            return
        self._tag(tag, format_attribute_list(_attribute_pairs(model, spec)))

    def _tag(self, tag: Tag, value: Optional[str] = None) -> None:
        if value is None:
            self._line(tag.text)
        else:
            self._line(f"{tag.text}:{value}")

    def _line(self, text: str) -> None:
        self._stream.write(text.encode("utf-8") + b"\n")
