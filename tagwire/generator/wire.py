"""Wire format rules shared by every code generator.

Every field is written as a 4 byte header followed by its payload. The
header packs the field tag and a wire type, ``(tag << 3) | wire_type``. The
wire type says how the payload is framed:

    0  fixed 4 bytes (int32, float)
    1  fixed 8 bytes (int64, double)
    2  4 byte length, then that many bytes (string, nested message)

All fixed width values, headers and lengths included, are little-endian.
"""

from dataclasses import dataclass
from enum import IntEnum

from .types import FieldKind, ProtoField, ProtoMessage


class UnsupportedFeatureError(RuntimeError):
    """Raised when a field uses a feature the generators do not support."""


class WireType(IntEnum):
    """Payload framing of a field on the wire."""

    FIXED32 = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2


HEADER_SIZE = 4
LENGTH_SIZE = 4
WIRE_TYPE_BITS = 3
WIRE_TYPE_MASK = (1 << WIRE_TYPE_BITS) - 1

# struct format for headers and length prefixes
HEADER_FORMAT = "<I"
LENGTH_FORMAT = "<I"


@dataclass(frozen=True)
class Codec:
    """How one field kind is framed on the wire."""

    wire_type: WireType
    size: int | None  # fixed payload size, None when length-delimited
    format_char: str | None  # struct format character for fixed payloads
    by_value: bool  # numeric values are copied, strings and messages referenced

    @property
    def is_fixed(self) -> bool:
        return self.size is not None


CODECS: dict[FieldKind, Codec] = {
    FieldKind.INT32: Codec(WireType.FIXED32, 4, "i", True),
    FieldKind.SINGLE: Codec(WireType.FIXED32, 4, "f", True),
    FieldKind.INT64: Codec(WireType.FIXED64, 8, "q", True),
    FieldKind.DOUBLE: Codec(WireType.FIXED64, 8, "d", True),
    FieldKind.STRING: Codec(WireType.LENGTH_DELIMITED, None, None, False),
    FieldKind.MESSAGE: Codec(WireType.LENGTH_DELIMITED, None, None, False),
}


def codec_for(field: ProtoField) -> Codec:
    """Return the codec for a field, rejecting unsupported field shapes."""
    if field.repeated:
        raise UnsupportedFeatureError(f"{field.name}: repeated fields not supported yet")
    if field.kind == FieldKind.MAP:
        raise UnsupportedFeatureError(f"{field.name}: map fields not supported yet")
    if field.kind == FieldKind.ENUM:
        raise UnsupportedFeatureError(f"{field.name}: enum fields not supported yet")
    if field.kind not in CODECS:
        raise UnsupportedFeatureError(f"{field.name}: unresolved type {field.type.name}")
    return CODECS[field.kind]


def make_header(tag: int, wire_type: int) -> int:
    """Combine a tag and wire type into a header value."""
    return (tag << WIRE_TYPE_BITS) | wire_type


def split_header(header: int) -> tuple[int, int]:
    """Split a header value into (tag, wire_type)."""
    return header >> WIRE_TYPE_BITS, header & WIRE_TYPE_MASK


def field_header(field: ProtoField) -> int:
    """Header written in front of a field's payload."""
    return make_header(field.tag, codec_for(field).wire_type)


def check_message(message: ProtoMessage) -> None:
    """Make sure every field of a message can be generated."""
    for field in message.fields:
        codec_for(field)
