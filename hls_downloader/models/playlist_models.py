"""Pydantic models for media and master playlists.

Numeric-looking values (durations, sequence numbers, bandwidths) are kept as
the exact strings found in the playlist so that re-encoding never changes
their formatting.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class ByteRange(BaseModel):
    """``<n>[@<o>]`` sub-range of a resource."""

    length: str
    offset: Optional[str] = None


class KeyInfo(BaseModel):
    """EXT-X-KEY / EXT-X-SESSION-KEY attributes."""

    method: Optional[str] = None
    uri: Optional[str] = None
    iv: Optional[str] = None
    keyformat: Optional[str] = None
    keyformatversions: Optional[str] = None


class MapInfo(BaseModel):
    """EXT-X-MAP media initialization section."""

    uri: Optional[str] = None
    byterange: Optional[str] = None


class DateRange(BaseModel):
    """EXT-X-DATERANGE attributes; ``X-`` prefixed attributes go to ``client_attributes``."""

    id: Optional[str] = None
    class_: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    duration: Optional[str] = None
    planned_duration: Optional[str] = None
    client_attributes: Dict[str, str] = Field(default_factory=dict)
    scte35_cmd: Optional[str] = None
    scte35_out: Optional[str] = None
    scte35_in: Optional[str] = None
    end_on_next: Optional[str] = None


class StartPoint(BaseModel):
    time_offset: Optional[str] = None
    precise: Optional[str] = None


class Rendition(BaseModel):
    """An EXT-X-MEDIA alternative rendition."""

    type: Optional[str] = None
    uri: Optional[str] = None
    group_id: Optional[str] = None
    language: Optional[str] = None
    assoc_language: Optional[str] = None
    name: Optional[str] = None
    default: Optional[str] = None
    autoselect: Optional[str] = None
    forced: Optional[str] = None
    instream_id: Optional[str] = None
    characteristics: Optional[str] = None
    channels: Optional[str] = None


class VariantStream(BaseModel):
    """An EXT-X-STREAM-INF entry and the URI on the line after it."""

    bandwidth: Optional[str] = None
    average_bandwidth: Optional[str] = None
    codecs: Optional[str] = None
    resolution: Optional[str] = None
    frame_rate: Optional[str] = None
    hdcp_level: Optional[str] = None
    audio: Optional[str] = None
    video: Optional[str] = None
    subtitles: Optional[str] = None
    closed_captions: Optional[str] = None
    uri: str = ""


class IFrameStream(BaseModel):
    """An EXT-X-I-FRAME-STREAM-INF entry."""

    bandwidth: Optional[str] = None
    average_bandwidth: Optional[str] = None
    codecs: Optional[str] = None
    resolution: Optional[str] = None
    hdcp_level: Optional[str] = None
    video: Optional[str] = None
    uri: str = ""


class SessionData(BaseModel):
    data_id: Optional[str] = None
    value: Optional[str] = None
    uri: Optional[str] = None
    language: Optional[str] = None


class MediaSegment(BaseModel):
    """One segment: its EXTINF line, the tags attached to it, and its URI."""

    duration: str
    title: Optional[str] = None
    byte_range: Optional[ByteRange] = None
    discontinuity: bool = False
    key: Optional[KeyInfo] = None
    map: Optional[MapInfo] = None
    program_date_time: Optional[str] = None
    date_range: Optional[DateRange] = None
    uri: str

    @field_validator("title")
    @classmethod
    def _empty_title_is_none(cls, value: Optional[str]) -> Optional[str]:
        # An empty title and no title are written identically.
        return value or None


class MediaPlaylist(BaseModel):
    """Ordered list of media segments plus playlist-level tags."""

    version: Optional[str] = None
    target_duration: Optional[str] = None
    media_sequence: Optional[str] = None
    discontinuity_sequence: Optional[str] = None
    playlist_type: Optional[str] = None
    i_frames_only: bool = False
    independent_segments: bool = False
    start: Optional[StartPoint] = None
    segments: List[MediaSegment] = Field(default_factory=list)
    endlist: bool = False

    @property
    def is_variant(self) -> bool:
        return False

    def sequence_numbers(self) -> List[int]:
        """Media sequence number of every segment, counting up from the declared base.

        A missing or non-integer EXT-X-MEDIA-SEQUENCE counts from 0;
        :meth:`check_invariants` reports the bad value.
        """

        base = int(self.media_sequence) if self.media_sequence and self.media_sequence.isdigit() else 0
        return [base + index for index in range(len(self.segments))]

    def total_duration(self) -> Decimal:
        total = Decimal(0)
        for segment in self.segments:
            try:
                total += Decimal(segment.duration)
            except InvalidOperation:
                continue
        return total

    def check_invariants(self) -> List[str]:
        """Returns a description of every invariant the playlist violates."""

        problems: List[str] = []
        if self.media_sequence is not None and not self.media_sequence.isdigit():
            problems.append(f"EXT-X-MEDIA-SEQUENCE is not an integer: {self.media_sequence!r}")

        target: Optional[int] = None
        if self.target_duration is not None:
            if self.target_duration.isdigit():
                target = int(self.target_duration)
            else:
                problems.append(f"EXT-X-TARGETDURATION is not an integer: {self.target_duration!r}")

        for index, segment in enumerate(self.segments):
            try:
                duration = Decimal(segment.duration)
            except InvalidOperation:
                problems.append(f"segment {index} has an invalid duration {segment.duration!r}")
                continue
            if target is None:
                continue
            rounded = duration.quantize(Decimal(1), rounding=ROUND_HALF_UP)
            if rounded > target:
                problems.append(
                    f"segment {index} ({segment.uri}) lasts {segment.duration}s, "
                    f"above the target duration {target}s"
                )
        return problems


class MasterPlaylist(BaseModel):
    """Variant streams and renditions offered for one presentation."""

    version: Optional[str] = None
    renditions: List[Rendition] = Field(default_factory=list)
    variants: List[VariantStream] = Field(default_factory=list)
    i_frame_variants: List[IFrameStream] = Field(default_factory=list)
    session_data: List[SessionData] = Field(default_factory=list)
    session_keys: List[KeyInfo] = Field(default_factory=list)
    independent_segments: bool = False
    start: Optional[StartPoint] = None

    @property
    def is_variant(self) -> bool:
        return True

    def check_invariants(self) -> List[str]:
        return [f"variant {index} has no URI" for index, variant in enumerate(self.variants) if not variant.uri]
