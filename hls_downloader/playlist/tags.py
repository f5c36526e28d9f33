"""Tag vocabulary of RFC 8216 playlists.

Every tag the decoder and writer understand is a member of :class:`Tag`. The
static tables below give each tag the shape of its value and, for tags that
carry an attribute-list, the canonical order in which attributes are written.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple

CONTENT_TYPE = "application/vnd.apple.mpegurl"


class ValueShape(Enum):
    NONE = "none"
    SCALAR = "scalar"
    ATTRIBUTES = "attributes"
    ATTRIBUTES_AND_URI = "attributes+uri"


class Tag(Enum):
    # basic tags
    EXTM3U = "#EXTM3U"
    EXT_X_VERSION = "#EXT-X-VERSION"
    # media segment tags
    EXTINF = "#EXTINF"
    EXT_X_BYTERANGE = "#EXT-X-BYTERANGE"
    EXT_X_DISCONTINUITY = "#EXT-X-DISCONTINUITY"
    EXT_X_KEY = "#EXT-X-KEY"
    EXT_X_MAP = "#EXT-X-MAP"
    EXT_X_PROGRAM_DATE_TIME = "#EXT-X-PROGRAM-DATE-TIME"
    EXT_X_DATERANGE = "#EXT-X-DATERANGE"
    # media playlist tags
    EXT_X_TARGETDURATION = "#EXT-X-TARGETDURATION"
    EXT_X_MEDIA_SEQUENCE = "#EXT-X-MEDIA-SEQUENCE"
    EXT_X_DISCONTINUITY_SEQUENCE = "#EXT-X-DISCONTINUITY-SEQUENCE"
    EXT_X_ENDLIST = "#EXT-X-ENDLIST"
    EXT_X_PLAYLIST_TYPE = "#EXT-X-PLAYLIST-TYPE"
    EXT_X_I_FRAMES_ONLY = "#EXT-X-I-FRAMES-ONLY"
    # master playlist tags
    EXT_X_MEDIA = "#EXT-X-MEDIA"
    EXT_X_STREAM_INF = "#EXT-X-STREAM-INF"
    EXT_X_I_FRAME_STREAM_INF = "#EXT-X-I-FRAME-STREAM-INF"
    EXT_X_SESSION_DATA = "#EXT-X-SESSION-DATA"
    EXT_X_SESSION_KEY = "#EXT-X-SESSION-KEY"
    # media or master playlist tags
    EXT_X_INDEPENDENT_SEGMENTS = "#EXT-X-INDEPENDENT-SEGMENTS"
    EXT_X_START = "#EXT-X-START"

    @property
    def text(self) -> str:
        return self.value

    @property
    def shape(self) -> ValueShape:
        return TAG_SHAPES[self]

    @classmethod
    def lookup(cls, text: str) -> Optional["Tag"]:
        """Returns the tag whose canonical text is ``text`` or ``None``."""

        return _TAGS_BY_TEXT.get(text)


_TAGS_BY_TEXT: Dict[str, Tag] = {tag.value: tag for tag in Tag}

TAG_SHAPES: Dict[Tag, ValueShape] = {
    Tag.EXTM3U: ValueShape.NONE,
    Tag.EXT_X_VERSION: ValueShape.SCALAR,
    Tag.EXTINF: ValueShape.SCALAR,
    Tag.EXT_X_BYTERANGE: ValueShape.SCALAR,
    Tag.EXT_X_DISCONTINUITY: ValueShape.NONE,
    Tag.EXT_X_KEY: ValueShape.ATTRIBUTES,
    Tag.EXT_X_MAP: ValueShape.ATTRIBUTES,
    Tag.EXT_X_PROGRAM_DATE_TIME: ValueShape.SCALAR,
    Tag.EXT_X_DATERANGE: ValueShape.ATTRIBUTES,
    Tag.EXT_X_TARGETDURATION: ValueShape.SCALAR,
    Tag.EXT_X_MEDIA_SEQUENCE: ValueShape.SCALAR,
    Tag.EXT_X_DISCONTINUITY_SEQUENCE: ValueShape.SCALAR,
    Tag.EXT_X_ENDLIST: ValueShape.NONE,
    Tag.EXT_X_PLAYLIST_TYPE: ValueShape.SCALAR,
    Tag.EXT_X_I_FRAMES_ONLY: ValueShape.NONE,
    Tag.EXT_X_MEDIA: ValueShape.ATTRIBUTES,
    Tag.EXT_X_STREAM_INF: ValueShape.ATTRIBUTES_AND_URI,
    Tag.EXT_X_I_FRAME_STREAM_INF: ValueShape.ATTRIBUTES_AND_URI,
    Tag.EXT_X_SESSION_DATA: ValueShape.ATTRIBUTES,
    Tag.EXT_X_SESSION_KEY: ValueShape.ATTRIBUTES,
    Tag.EXT_X_INDEPENDENT_SEGMENTS: ValueShape.NONE,
    Tag.EXT_X_START: ValueShape.ATTRIBUTES,
}

# Canonical write order. The writer walks these tuples; nothing else decides
# where a tag lands in the output.
MEDIA_HEADER_ORDER: Tuple[Tag, ...] = (
    Tag.EXTM3U,
    Tag.EXT_X_VERSION,
    Tag.EXT_X_TARGETDURATION,
    Tag.EXT_X_MEDIA_SEQUENCE,
    Tag.EXT_X_DISCONTINUITY_SEQUENCE,
    Tag.EXT_X_PLAYLIST_TYPE,
    Tag.EXT_X_I_FRAMES_ONLY,
    Tag.EXT_X_INDEPENDENT_SEGMENTS,
    Tag.EXT_X_START,
)

SEGMENT_ORDER: Tuple[Tag, ...] = (
    Tag.EXTINF,
    Tag.EXT_X_BYTERANGE,
    Tag.EXT_X_DISCONTINUITY,
    Tag.EXT_X_KEY,
    Tag.EXT_X_MAP,
    Tag.EXT_X_PROGRAM_DATE_TIME,
    Tag.EXT_X_DATERANGE,
)

MASTER_ORDER: Tuple[Tag, ...] = (
    Tag.EXTM3U,
    Tag.EXT_X_VERSION,
    Tag.EXT_X_MEDIA,
    Tag.EXT_X_STREAM_INF,
    Tag.EXT_X_I_FRAME_STREAM_INF,
    Tag.EXT_X_SESSION_DATA,
    Tag.EXT_X_SESSION_KEY,
    Tag.EXT_X_INDEPENDENT_SEGMENTS,
    Tag.EXT_X_START,
)

SEGMENT_TAGS = frozenset(SEGMENT_ORDER)
MEDIA_ONLY_TAGS = frozenset(
    SEGMENT_ORDER
    + (
        Tag.EXT_X_TARGETDURATION,
        Tag.EXT_X_MEDIA_SEQUENCE,
        Tag.EXT_X_DISCONTINUITY_SEQUENCE,
        Tag.EXT_X_ENDLIST,
        Tag.EXT_X_PLAYLIST_TYPE,
        Tag.EXT_X_I_FRAMES_ONLY,
    )
)
MASTER_ONLY_TAGS = frozenset(
    (
        Tag.EXT_X_MEDIA,
        Tag.EXT_X_STREAM_INF,
        Tag.EXT_X_I_FRAME_STREAM_INF,
        Tag.EXT_X_SESSION_DATA,
        Tag.EXT_X_SESSION_KEY,
    )
)

# (attribute name, model field, written as quoted-string)
AttributeSpec = Tuple[Tuple[str, str, bool], ...]

KEY_ATTRIBUTES: AttributeSpec = (
    ("METHOD", "method", False),
    ("URI", "uri", True),
    ("IV", "iv", False),
    ("KEYFORMAT", "keyformat", True),
    ("KEYFORMATVERSIONS", "keyformatversions", True),
)

MAP_ATTRIBUTES: AttributeSpec = (
    ("URI", "uri", True),
    ("BYTERANGE", "byterange", True),
)

# Client-defined X-* attributes are written between PLANNED-DURATION and
# SCTE35-CMD.
DATERANGE_ATTRIBUTES: AttributeSpec = (
    ("ID", "id", True),
    ("CLASS", "class_", True),
    ("START-DATE", "start_date", True),
    ("END-DATE", "end_date", True),
    ("DURATION", "duration", False),
    ("PLANNED-DURATION", "planned_duration", False),
)

DATERANGE_TRAILING_ATTRIBUTES: AttributeSpec = (
    ("SCTE35-CMD", "scte35_cmd", False),
    ("SCTE35-OUT", "scte35_out", False),
    ("SCTE35-IN", "scte35_in", False),
    ("END-ON-NEXT", "end_on_next", False),
)

MEDIA_ATTRIBUTES: AttributeSpec = (
    ("TYPE", "type", False),
    ("URI", "uri", True),
    ("GROUP-ID", "group_id", True),
    ("LANGUAGE", "language", True),
    ("ASSOC-LANGUAGE", "assoc_language", True),
    ("NAME", "name", True),
    ("DEFAULT", "default", False),
    ("AUTOSELECT", "autoselect", False),
    ("FORCED", "forced", False),
    ("INSTREAM-ID", "instream_id", True),
    ("CHARACTERISTICS", "characteristics", True),
    ("CHANNELS", "channels", True),
)

STREAM_INF_ATTRIBUTES: AttributeSpec = (
    ("BANDWIDTH", "bandwidth", False),
    ("AVERAGE-BANDWIDTH", "average_bandwidth", False),
    ("CODECS", "codecs", True),
    ("RESOLUTION", "resolution", False),
    ("FRAME-RATE", "frame_rate", False),
    ("HDCP-LEVEL", "hdcp_level", False),
    ("AUDIO", "audio", True),
    ("VIDEO", "video", True),
    ("SUBTITLES", "subtitles", True),
    ("CLOSED-CAPTIONS", "closed_captions", True),
)

I_FRAME_STREAM_INF_ATTRIBUTES: AttributeSpec = (
    ("BANDWIDTH", "bandwidth", False),
    ("AVERAGE-BANDWIDTH", "average_bandwidth", False),
    ("CODECS", "codecs", True),
    ("RESOLUTION", "resolution", False),
    ("HDCP-LEVEL", "hdcp_level", False),
    ("VIDEO", "video", True),
)

SESSION_DATA_ATTRIBUTES: AttributeSpec = (
    ("DATA-ID", "data_id", True),
    ("VALUE", "value", True),
    ("URI", "uri", True),
    ("LANGUAGE", "language", True),
)

START_ATTRIBUTES: AttributeSpec = (
    ("TIME-OFFSET", "time_offset", False),
    ("PRECISE", "precise", False),
)
