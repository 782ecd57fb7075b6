"""Schema definition loader and validator using Lark."""

import logging
import os
from dataclasses import dataclass
from typing import Any, TypeVar

from lark import Lark, Token
from lark.exceptions import UnexpectedInput
from lark.visitors import Transformer

from .types import (
    PRIMITIVE_KINDS,
    FieldKind,
    ProtoEnum,
    ProtoEnumValue,
    ProtoField,
    ProtoMessage,
    ProtoType,
    Schema,
)

logger = logging.getLogger(__name__)

_g_parser: Lark | None = None

# The header keeps three bits for the wire type in a 32 bit word
MAX_TAG = (1 << 29) - 1


class SchemaCompileError(RuntimeError):
    """Raised when schema text cannot be parsed."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        super().__init__(message)
        self.line = line
        self.column = column


class SchemaValidationError(RuntimeError):
    """Raised when schema validation fails."""


@dataclass
class _Namespace:
    value: str


TFilter = TypeVar("TFilter", bound=object)


def _filter(args: list[Any], class_type: type[TFilter]) -> list[TFilter]:
    return [v for v in args if isinstance(v, class_type)]


def _find_many(args: list[Any], class_type: type[TFilter]) -> list[TFilter]:
    return _filter(args, class_type)


class TreeTransformer(Transformer):
    """Transform parse tree into schema types."""

    def namespace(self, args: list[Any]) -> _Namespace:
        return _Namespace(value=args[0])

    def qualified_name(self, args: list[Token]) -> str:
        return ".".join(str(arg) for arg in args)

    def message(self, args: list[Any]) -> ProtoMessage:
        return ProtoMessage(name=str(args[0]), fields=_find_many(args[1:], ProtoField))

    def field(self, args: list[Any]) -> ProtoField:
        repeated, proto_type, name, tag = args
        return ProtoField(
            type=proto_type,
            name=str(name),
            tag=int(tag),
            repeated=repeated is not None,
        )

    def map_type(self, args: list[Token]) -> ProtoType:
        return ProtoType(name=f"map<{args[0]}, {args[1]}>", kind=FieldKind.MAP)

    def type(self, args: list[Token]) -> ProtoType:
        return ProtoType(name=str(args[0]))

    def enum(self, args: list[Any]) -> ProtoEnum:
        return ProtoEnum(name=str(args[0]), values=_find_many(args[1:], ProtoEnumValue))

    def enum_value(self, args: list[Token]) -> ProtoEnumValue:
        return ProtoEnumValue(name=str(args[0]), value=int(args[1]))


def _resolve(field: ProtoField, messages: set[str], enums: set[str]) -> None:
    t = field.type
    if t.kind is not None:
        return
    if t.name in PRIMITIVE_KINDS:
        t.kind = PRIMITIVE_KINDS[t.name]
    elif t.name in messages:
        t.kind = FieldKind.MESSAGE
    elif t.name in enums:
        t.kind = FieldKind.ENUM
    else:
        raise SchemaValidationError(f"{field.name} has unknown type {t.name}")


def _check_containment(schema: Schema) -> None:
    """Reject messages that contain themselves by value, directly or not."""
    embeds = {
        message.name: [f.type.name for f in message.fields if f.is_message and not f.repeated]
        for message in schema.messages
    }
    done: set[str] = set()

    def visit(name: str, path: list[str]) -> None:
        if name in path:
            cycle = " -> ".join(path[path.index(name) :] + [name])
            raise SchemaValidationError(f"Message {name} contains itself: {cycle}")
        if name in done:
            return
        for child in embeds[name]:
            visit(child, path + [name])
        done.add(name)

    for message in schema.messages:
        visit(message.name, [])


def validate(schema: Schema) -> Schema:
    """Resolve type references and validate a parsed schema."""
    if not schema.namespace:
        raise SchemaValidationError("Schema does not declare a namespace")

    declared: set[str] = set()
    for item in [*schema.messages, *schema.enums]:
        if item.name in declared:
            raise SchemaValidationError(f"{item.name} declared more than once")
        if item.name in PRIMITIVE_KINDS:
            raise SchemaValidationError(f"{item.name} is a reserved type name")
        declared.add(item.name)

    message_names = {message.name for message in schema.messages}
    enum_names = {enum.name for enum in schema.enums}

    for message in schema.messages:
        message.namespace = schema.namespace
        names: set[str] = set()
        tags: dict[int, str] = {}

        for field in message.fields:
            if field.name in names:
                raise SchemaValidationError(f"{message.name}.{field.name} declared more than once")
            names.add(field.name)

            if field.tag <= 0:
                raise SchemaValidationError(f"{message.name}.{field.name} tag must be positive")
            if field.tag > MAX_TAG:
                raise SchemaValidationError(
                    f"{message.name}.{field.name} tag {field.tag} exceeds maximum {MAX_TAG}"
                )
            if field.tag in tags:
                raise SchemaValidationError(
                    f"{message.name}.{field.name} reuses tag {field.tag} of {tags[field.tag]}"
                )
            tags[field.tag] = field.name

            _resolve(field, message_names, enum_names)

    _check_containment(schema)

    return schema


def parse(text: str) -> Schema:
    """Parse and validate a schema definition file."""
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/schema.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar, parser="lalr")

    try:
        tree = _g_parser.parse(text)
    except UnexpectedInput as e:
        raise SchemaCompileError(
            f"Syntax error at line {e.line}, column {e.column}", line=e.line, column=e.column
        ) from e

    items = TreeTransformer().transform(tree).children

    namespaces = _find_many(items, _Namespace)
    if len(namespaces) > 1:
        raise SchemaValidationError("Namespace declared more than once")

    schema = Schema(
        namespace=namespaces[0].value if namespaces else None,
        messages=_find_many(items, ProtoMessage),
        enums=_find_many(items, ProtoEnum),
    )
    logger.debug(
        "Parsed namespace %s: %d messages, %d enums",
        schema.namespace,
        len(schema.messages),
        len(schema.enums),
    )

    return validate(schema)
