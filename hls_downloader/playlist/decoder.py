"""Builds :class:`MediaPlaylist` / :class:`MasterPlaylist` models from playlist text."""

from __future__ import annotations

import io
import logging
from typing import Any, BinaryIO, Callable, Dict, Optional, Type, Union

from pydantic import BaseModel

from ..models.playlist_models import (
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
from .attributes import parse_attribute_list, split_tag
from .errors import MalformedLineError, PlaylistError
from .reader import LineReader
from .tags import (
    DATERANGE_ATTRIBUTES,
    DATERANGE_TRAILING_ATTRIBUTES,
    I_FRAME_STREAM_INF_ATTRIBUTES,
    KEY_ATTRIBUTES,
    MAP_ATTRIBUTES,
    MASTER_ONLY_TAGS,
    MEDIA_ATTRIBUTES,
    MEDIA_ONLY_TAGS,
    SESSION_DATA_ATTRIBUTES,
    START_ATTRIBUTES,
    STREAM_INF_ATTRIBUTES,
    AttributeSpec,
    Tag,
)

Playlist = Union[MediaPlaylist, MasterPlaylist]


def decode(source: Union[BinaryIO, LineReader], strict: bool = True) -> Playlist:
    """Decodes a playlist from a binary stream (or an existing :class:`LineReader`).

    With ``strict`` set, playlists that break the target-duration or
    media-sequence rules raise :class:`PlaylistError`; otherwise the problems
    are logged as warnings and the playlist is returned as decoded.
    """

    reader = source if isinstance(source, LineReader) else LineReader(source)
    builder = _PlaylistBuilder()
    for raw_line in reader:
        try:
            line = raw_line.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedLineError("line is not valid UTF-8", repr(raw_line)) from exc
        builder.feed(line.strip())
    playlist = builder.finish()

    problems = playlist.check_invariants()
    if problems:
        if strict:
            raise PlaylistError("; ".join(problems))
        for problem in problems:
            logging.warning("Playlist check: %s", problem)
    return playlist


def loads(text: str, strict: bool = True) -> Playlist:
    return decode(io.BytesIO(text.encode("utf-8")), strict=strict)


def build_attribute_model(model_cls: Type[BaseModel], spec: AttributeSpec, attributes: Dict[str, str]) -> Any:
    fields = {name: field for name, field, _ in spec}
    values: Dict[str, str] = {}
    for name, value in attributes.items():
        field = fields.get(name)
        if field is None:
            logging.debug("Ignoring unsupported %s attribute %s", model_cls.__name__, name)
            continue
        values[field] = value
    return model_cls(**values)


class _PlaylistBuilder:
    """Feeds logical lines, one at a time, into the playlist models."""

    def __init__(self) -> None:
        self._media = MediaPlaylist()
        self._master = MasterPlaylist()
        self._kind: Optional[str] = None
        self._started = False
        self._ended = False
        self._version: Optional[str] = None
        self._independent_segments = False
        self._start: Optional[StartPoint] = None
        self._segment: Dict[str, Any] = {}
        self._variant: Optional[Union[VariantStream, IFrameStream]] = None
        self._handlers: Dict[Tag, Callable[[str, str], None]] = {
            Tag.EXTM3U: self._on_header,
            Tag.EXT_X_VERSION: self._on_version,
            Tag.EXTINF: self._on_extinf,
            Tag.EXT_X_BYTERANGE: self._on_byterange,
            Tag.EXT_X_DISCONTINUITY: self._on_discontinuity,
            Tag.EXT_X_KEY: self._on_key,
            Tag.EXT_X_MAP: self._on_map,
            Tag.EXT_X_PROGRAM_DATE_TIME: self._on_program_date_time,
            Tag.EXT_X_DATERANGE: self._on_daterange,
            Tag.EXT_X_TARGETDURATION: self._on_target_duration,
            Tag.EXT_X_MEDIA_SEQUENCE: self._on_media_sequence,
            Tag.EXT_X_DISCONTINUITY_SEQUENCE: self._on_discontinuity_sequence,
            Tag.EXT_X_ENDLIST: self._on_endlist,
            Tag.EXT_X_PLAYLIST_TYPE: self._on_playlist_type,
            Tag.EXT_X_I_FRAMES_ONLY: self._on_i_frames_only,
            Tag.EXT_X_MEDIA: self._on_media,
            Tag.EXT_X_STREAM_INF: self._on_stream_inf,
            Tag.EXT_X_I_FRAME_STREAM_INF: self._on_i_frame_stream_inf,
            Tag.EXT_X_SESSION_DATA: self._on_session_data,
            Tag.EXT_X_SESSION_KEY: self._on_session_key,
            Tag.EXT_X_INDEPENDENT_SEGMENTS: self._on_independent_segments,
            Tag.EXT_X_START: self._on_start,
        }

    def feed(self, line: str) -> None:
        if not self._started:
            if not line:
                return
            if line.startswith("\ufeff"):
                line = line[1:]
            if line != Tag.EXTM3U.text:
                raise MalformedLineError("playlist does not start with #EXTM3U", line)
            self._started = True
            return

        if not line:
            return
        if line.startswith("#") and not line.startswith("#EXT"):
            return
        if self._ended:
            raise MalformedLineError("content after #EXT-X-ENDLIST", line)

        if not line.startswith("#"):
            self._on_uri(line)
            return

        name, value = split_tag(line)
        tag = Tag.lookup(name)
        if tag is None:
            logging.debug("Skipping unsupported tag %s", name)
            return
        if self._variant is not None:
            raise MalformedLineError(f"{name} found where a variant URI was expected", line)
        self._claim_kind(tag)
        self._handlers[tag](value, line)

    def finish(self) -> Union[MediaPlaylist, MasterPlaylist]:
        if not self._started:
            raise MalformedLineError("playlist is empty or missing #EXTM3U")
        if self._segment:
            raise MalformedLineError("playlist ends before the URI of its last segment")
        if self._variant is not None:
            raise MalformedLineError("playlist ends before the URI of its last variant stream")

        playlist: Union[MediaPlaylist, MasterPlaylist]
        playlist = self._master if self._kind == "master" else self._media
        playlist.version = self._version
        playlist.independent_segments = self._independent_segments
        playlist.start = self._start
        return playlist

    def _claim_kind(self, tag: Tag) -> None:
        if tag in MEDIA_ONLY_TAGS:
            kind = "media"
        elif tag in MASTER_ONLY_TAGS:
            kind = "master"
        else:
            return
        if self._kind is None:
            self._kind = kind
        elif self._kind != kind:
            raise PlaylistError(f"{tag.text} cannot appear in a {self._kind} playlist")

    # basic and shared tags

    def _on_header(self, value: str, line: str) -> None:
        raise MalformedLineError("duplicate #EXTM3U", line)

    def _on_version(self, value: str, line: str) -> None:
        self._version = value

    def _on_independent_segments(self, value: str, line: str) -> None:
        self._independent_segments = True

    def _on_start(self, value: str, line: str) -> None:
        self._start = build_attribute_model(StartPoint, START_ATTRIBUTES, parse_attribute_list(value))

    # media segment tags

    def _on_extinf(self, value: str, line: str) -> None:
        if "duration" in self._segment:
            raise MalformedLineError("#EXTINF without a segment URI before it", line)
        duration, sep, title = value.partition(",")
        if not sep or not duration.strip():
            raise MalformedLineError("#EXTINF needs '<duration>,[title]'", line)
        self._segment["duration"] = duration.strip()
        self._segment["title"] = title or None

    def _on_byterange(self, value: str, line: str) -> None:
        length, _, offset = value.partition("@")
        if not length:
            raise MalformedLineError("#EXT-X-BYTERANGE needs a length", line)
        self._segment["byte_range"] = ByteRange(length=length, offset=offset or None)

    def _on_discontinuity(self, value: str, line: str) -> None:
        self._segment["discontinuity"] = True

    def _on_key(self, value: str, line: str) -> None:
        self._segment["key"] = build_attribute_model(KeyInfo, KEY_ATTRIBUTES, parse_attribute_list(value))

    def _on_map(self, value: str, line: str) -> None:
        self._segment["map"] = build_attribute_model(MapInfo, MAP_ATTRIBUTES, parse_attribute_list(value))

    def _on_program_date_time(self, value: str, line: str) -> None:
        self._segment["program_date_time"] = value

    def _on_daterange(self, value: str, line: str) -> None:
        attributes = parse_attribute_list(value)
        client = {name: attr for name, attr in attributes.items() if name.startswith("X-")}
        known = {name: attr for name, attr in attributes.items() if not name.startswith("X-")}
        date_range = build_attribute_model(DateRange, DATERANGE_ATTRIBUTES + DATERANGE_TRAILING_ATTRIBUTES, known)
        date_range.client_attributes = client
        self._segment["date_range"] = date_range

    # media playlist tags

    def _on_target_duration(self, value: str, line: str) -> None:
        self._media.target_duration = value

    def _on_media_sequence(self, value: str, line: str) -> None:
        self._media.media_sequence = value

    def _on_discontinuity_sequence(self, value: str, line: str) -> None:
        self._media.discontinuity_sequence = value

    def _on_endlist(self, value: str, line: str) -> None:
        if self._segment:
            raise MalformedLineError("#EXT-X-ENDLIST before the URI of the last segment", line)
        self._media.endlist = True
        self._ended = True

    def _on_playlist_type(self, value: str, line: str) -> None:
        self._media.playlist_type = value

    def _on_i_frames_only(self, value: str, line: str) -> None:
        self._media.i_frames_only = True

    # master playlist tags

    def _on_media(self, value: str, line: str) -> None:
        rendition = build_attribute_model(Rendition, MEDIA_ATTRIBUTES, parse_attribute_list(value))
        self._master.renditions.append(rendition)

    def _on_stream_inf(self, value: str, line: str) -> None:
        self._variant = build_attribute_model(VariantStream, STREAM_INF_ATTRIBUTES, parse_attribute_list(value))

    def _on_i_frame_stream_inf(self, value: str, line: str) -> None:
        attributes = parse_attribute_list(value)
        uri = attributes.pop("URI", None)
        stream = build_attribute_model(IFrameStream, I_FRAME_STREAM_INF_ATTRIBUTES, attributes)
        if uri:
            stream.uri = uri
            self._master.i_frame_variants.append(stream)
        else:
            self._variant = stream

    def _on_session_data(self, value: str, line: str) -> None:
        data = build_attribute_model(SessionData, SESSION_DATA_ATTRIBUTES, parse_attribute_list(value))
        self._master.session_data.append(data)

    def _on_session_key(self, value: str, line: str) -> None:
        key = build_attribute_model(KeyInfo, KEY_ATTRIBUTES, parse_attribute_list(value))
        self._master.session_keys.append(key)

    # URI lines

    def _on_uri(self, line: str) -> None:
        if self._variant is not None:
            self._variant.uri = line
            if isinstance(self._variant, IFrameStream):
                self._master.i_frame_variants.append(self._variant)
            else:
                self._master.variants.append(self._variant)
            self._variant = None
            return
        if "duration" not in self._segment:
            raise MalformedLineError("segment URI without a preceding #EXTINF", line)
        self._media.segments.append(MediaSegment(uri=line, **self._segment))
        self._segment = {}
