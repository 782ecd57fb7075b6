"""Serialization and deserialization support for generated message types."""

import struct
from typing import Self

_U32 = struct.Struct("<I")

# Fixed payload size for wire types 0 and 1
_FIXED_SIZES = {0: 4, 1: 8}
_LENGTH_DELIMITED = 2


class SerializationError(RuntimeError):
    """Raised when serialization or deserialization fails."""


def read_u32(data: bytes, offset: int) -> tuple[int, int]:
    """Read a little-endian uint32 (header or length).

    Returns:
        Tuple of (value, new offset).
    """
    if len(data) - offset < 4:
        raise SerializationError(f"truncated input at offset {offset}")
    return _U32.unpack_from(data, offset)[0], offset + 4


def read_fixed(data: bytes, offset: int, fmt: str, size: int) -> tuple[int | float, int]:
    """Read one fixed width value with the given struct format."""
    if len(data) - offset < size:
        raise SerializationError(f"truncated input at offset {offset}")
    return struct.unpack_from(fmt, data, offset)[0], offset + size


def read_bytes(data: bytes, offset: int) -> tuple[bytes, int]:
    """Read a length-prefixed byte run."""
    length, offset = read_u32(data, offset)
    if len(data) - offset < length:
        raise SerializationError(f"truncated input at offset {offset}: need {length} bytes")
    return data[offset : offset + length], offset + length


def read_string(data: bytes, offset: int) -> tuple[str, int]:
    """Read a length-prefixed UTF-8 string."""
    raw, offset = read_bytes(data, offset)
    try:
        return raw.decode("utf-8"), offset
    except UnicodeDecodeError as e:
        raise SerializationError(f"invalid string at offset {offset - len(raw)}") from e


def skip_field(data: bytes, offset: int, wire_type: int) -> int:
    """Skip the payload of a field nobody declares, using its wire type.

    Returns:
        Offset just past the skipped payload.
    """
    if wire_type in _FIXED_SIZES:
        size = _FIXED_SIZES[wire_type]
        if len(data) - offset < size:
            raise SerializationError(f"truncated input at offset {offset}")
        return offset + size
    if wire_type == _LENGTH_DELIMITED:
        _, offset = read_bytes(data, offset)
        return offset
    raise SerializationError(f"unknown wire type {wire_type} at offset {offset - 4}")


class Message:
    """Base class for generated message types.

    Subclasses are @dataclass decorated and implement dump(), serialize()
    and parse().

    Example:
        @dataclass
        class Person(Message):
            name: str = ""
            age: int = 0
    """

    def dump(self) -> str:
        """Render field values as text. Generated code overrides this."""
        raise NotImplementedError("dump() must be implemented by generated code")

    def serialize(self) -> bytes:
        """Serialize this message to bytes. Generated code overrides this."""
        raise NotImplementedError("serialize() must be implemented by generated code")

    def parse(self, data: bytes | bytearray | memoryview) -> bool:
        """Populate fields from bytes. Generated code overrides this.

        Returns:
            True if the whole input was read, False if it is malformed.
        """
        raise NotImplementedError("parse() must be implemented by generated code")

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> Self:
        """Create a message from bytes, raising SerializationError on bad input."""
        instance = cls()
        if not instance.parse(data):
            raise SerializationError(f"malformed {cls.__name__}")
        return instance

    def __str__(self) -> str:
        return self.dump()
