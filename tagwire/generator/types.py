"""Type definitions for schema loading and code generation."""

from dataclasses import dataclass, field
from enum import StrEnum

from dataclasses_json import DataClassJsonMixin


class FieldKind(StrEnum):
    """Classification of a field's declared type."""

    INT32 = "int32"
    INT64 = "int64"
    SINGLE = "float"
    DOUBLE = "double"
    STRING = "string"
    MESSAGE = "message"
    ENUM = "enum"
    MAP = "map"


@dataclass
class ProtoType(DataClassJsonMixin):
    """Represents a primitive or user-defined type.

    For user-defined types `name` is the referenced message or enum.
    `kind` is None until the loader resolves the reference.
    """

    name: str
    kind: FieldKind | None = None


@dataclass
class ProtoField(DataClassJsonMixin):
    """Represents a tagged field of a message."""

    type: ProtoType
    name: str
    tag: int
    repeated: bool = False

    @property
    def kind(self) -> FieldKind | None:
        return self.type.kind

    @property
    def is_message(self) -> bool:
        return self.type.kind == FieldKind.MESSAGE


@dataclass
class ProtoMessage(DataClassJsonMixin):
    """Represents a message type definition."""

    name: str
    fields: list[ProtoField]
    namespace: str | None = None


@dataclass
class ProtoEnumValue(DataClassJsonMixin):
    """Represents a single enum value."""

    name: str
    value: int


@dataclass
class ProtoEnum(DataClassJsonMixin):
    """Represents an enum type definition."""

    name: str
    values: list[ProtoEnumValue]


@dataclass
class Schema(DataClassJsonMixin):
    """Represents a complete schema file."""

    namespace: str | None
    messages: list[ProtoMessage] = field(default_factory=list)
    enums: list[ProtoEnum] = field(default_factory=list)

    def message(self, name: str) -> ProtoMessage:
        """Look up a message by name."""
        for message in self.messages:
            if message.name == name:
                return message
        raise KeyError(name)


PRIMITIVE_KINDS: dict[str, FieldKind] = {
    "int32": FieldKind.INT32,
    "int64": FieldKind.INT64,
    "float": FieldKind.SINGLE,
    "double": FieldKind.DOUBLE,
    "string": FieldKind.STRING,
}
