"""Tag splitting and attribute-list grammar."""

from __future__ import annotations

import re
from typing import Dict, Iterable, Optional, Tuple

from .errors import MalformedLineError

_UNQUOTED_CLIENT_VALUE = re.compile(r"^(0[xX][0-9A-Fa-f]+|-?\d+(\.\d+)?)$")


def split_tag(line: str) -> Tuple[str, str]:
    """Splits ``#TAG:value`` on the first colon.

    A line without a colon is a presence-only tag and yields an empty value.
    """

    name, sep, value = line.partition(":")
    if not sep:
        return line, ""
    return name, value


def parse_attribute_list(value: str) -> Dict[str, str]:
    """Parses ``NAME=VALUE,NAME="quoted, value"`` into a dict.

    Quoted values end at the first double quote that is not escaped with a
    backslash; the surrounding quotes are dropped and ``\\"`` / ``\\\\`` are
    unescaped. Unquoted values end at the next comma.
    """

    attributes: Dict[str, str] = {}
    pos = 0
    end = len(value)
    if end == 0:
        return attributes

    while True:
        eq = value.find("=", pos)
        comma = value.find(",", pos)
        if eq < 0 or (0 <= comma < eq):
            raise MalformedLineError("attribute without '='", value)
        name = value[pos:eq]
        if not name or '"' in name:
            raise MalformedLineError("empty or invalid attribute name", value)
        if name in attributes:
            raise MalformedLineError(f"duplicate attribute {name}", value)

        pos = eq + 1
        if pos < end and value[pos] == '"':
            attr_value, pos = _scan_quoted(value, pos + 1)
            if pos < end and value[pos] != ",":
                raise MalformedLineError("unexpected text after quoted value", value)
        else:
            comma = value.find(",", pos)
            if comma < 0:
                comma = end
            attr_value = value[pos:comma]
            pos = comma
        attributes[name] = attr_value

        if pos >= end:
            return attributes
        # value[pos] is a comma; another NAME= must follow it.
        pos += 1
        if pos >= end:
            raise MalformedLineError("trailing ',' in attribute list", value)


def _scan_quoted(value: str, pos: int) -> Tuple[str, int]:
    chars = []
    escaped = False
    for index in range(pos, len(value)):
        char = value[index]
        if escaped:
            if char not in ('"', "\\"):
                chars.append("\\")
            chars.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"':
            return "".join(chars), index + 1
        else:
            chars.append(char)
    raise MalformedLineError("unterminated quoted attribute value", value)


def quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def needs_quotes(name: str, value: str, quoted: Optional[bool] = None) -> bool:
    """Decides whether ``value`` is written as a quoted-string."""

    if name == "CLOSED-CAPTIONS" and value == "NONE":
        return False
    if quoted is not None:
        return quoted
    # Client attributes: numbers stay bare, anything else is a string.
    return not _UNQUOTED_CLIENT_VALUE.match(value)


def format_attribute_list(pairs: Iterable[Tuple[str, Optional[str], Optional[bool]]]) -> str:
    """Renders ``(name, value, quoted)`` triples; ``None`` values are omitted."""

    rendered = []
    for name, value, quoted in pairs:
        if value is None:
            continue
        if needs_quotes(name, value, quoted):
            value = quote(value)
        rendered.append(f"{name}={value}")
    return ",".join(rendered)
