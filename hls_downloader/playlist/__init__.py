"""Reading, parsing, decoding, and encoding of HLS playlists."""

from .attributes import format_attribute_list, parse_attribute_list, split_tag
from .decoder import decode, loads
from .errors import MalformedLineError, PlaylistError, StreamError
from .reader import LineReader
from .tags import CONTENT_TYPE, Tag, ValueShape
from .writer import PlaylistWriter, dumps, encode

__all__ = [
    "CONTENT_TYPE",
    "LineReader",
    "MalformedLineError",
    "PlaylistError",
    "PlaylistWriter",
    "StreamError",
    "Tag",
    "ValueShape",
    "decode",
    "dumps",
    "encode",
    "format_attribute_list",
    "loads",
    "parse_attribute_list",
    "split_tag",
]
