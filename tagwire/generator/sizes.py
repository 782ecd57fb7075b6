"""Serialized size calculation for messages."""

from dataclasses import dataclass
from enum import StrEnum, auto

from .types import ProtoField, Schema
from .wire import HEADER_SIZE, LENGTH_SIZE, codec_for


class SizeKind(StrEnum):
    """Classification of size characteristics."""

    FIXED = auto()  # Min == Max, only fixed width fields
    UNBOUNDED = auto()  # Contains a string, directly or through a nested message


@dataclass(frozen=True)
class SizeInfo:
    """Size information for a field or message."""

    min_size: int
    max_size: int | None  # None means unbounded
    kind: SizeKind

    @property
    def is_fixed(self) -> bool:
        return self.kind == SizeKind.FIXED


@dataclass(frozen=True)
class MessageSizeInfo:
    """Complete size information for a message."""

    name: str
    size: SizeInfo


@dataclass(frozen=True)
class SchemaSizeInfo:
    """Size information for an entire schema."""

    messages: dict[str, MessageSizeInfo]
    min_message_size: int
    max_message_size: int | None  # None if any message is unbounded


class SizeCalculator:
    """Calculate serialized sizes for schema messages."""

    def __init__(self, schema: Schema):
        self.messages = {m.name: m for m in schema.messages}
        self._cache: dict[str, SizeInfo] = {}

    def calc_field_size(self, field: ProtoField) -> SizeInfo:
        """Calculate size for a field, header included."""
        codec = codec_for(field)

        if codec.size is not None:
            size = HEADER_SIZE + codec.size
            return SizeInfo(size, size, SizeKind.FIXED)

        prefix = HEADER_SIZE + LENGTH_SIZE
        if field.is_message:
            nested = self.calc_message_size(field.type.name).size
            max_size = prefix + nested.max_size if nested.max_size is not None else None
            return SizeInfo(prefix + nested.min_size, max_size, nested.kind)

        # string: empty at least, no upper bound
        return SizeInfo(prefix, None, SizeKind.UNBOUNDED)

    def calc_message_size(self, name: str) -> MessageSizeInfo:
        """Calculate size for a message (with caching)."""
        if name in self._cache:
            return MessageSizeInfo(name, self._cache[name])

        message = self.messages[name]

        total_min = 0
        total_max: int | None = 0
        overall_kind = SizeKind.FIXED

        for field in message.fields:
            size = self.calc_field_size(field)

            total_min += size.min_size
            if total_max is not None and size.max_size is not None:
                total_max += size.max_size
            else:
                total_max = None

            if size.kind == SizeKind.UNBOUNDED:
                overall_kind = SizeKind.UNBOUNDED

        message_size = SizeInfo(total_min, total_max, overall_kind)
        self._cache[name] = message_size

        return MessageSizeInfo(name, message_size)

    def calc_schema_info(self) -> SchemaSizeInfo:
        """Calculate size information for every message."""
        infos = {name: self.calc_message_size(name) for name in self.messages}

        if infos:
            min_msg = min(s.size.min_size for s in infos.values())
            max_sizes = [s.size.max_size for s in infos.values()]
            if all(m is not None for m in max_sizes):
                max_msg: int | None = max(m for m in max_sizes if m is not None)
            else:
                max_msg = None
        else:
            min_msg = 0
            max_msg = 0

        return SchemaSizeInfo(messages=infos, min_message_size=min_msg, max_message_size=max_msg)


def calculate_sizes(schema: Schema) -> SchemaSizeInfo:
    """Calculate size information for a schema."""
    calc = SizeCalculator(schema)
    return calc.calc_schema_info()
