"""C++ code generator for tagwire schemas."""

import re
from dataclasses import dataclass

from jinja2 import Environment, PackageLoader

from .types import FieldKind, ProtoField, ProtoMessage, Schema
from .wire import (
    WIRE_TYPE_BITS,
    WIRE_TYPE_MASK,
    UnsupportedFeatureError,
    check_message,
    codec_for,
    field_header,
)

OUTPUT_SUFFIX = ".pb.h"

env = Environment(
    loader=PackageLoader("tagwire.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("cpp.h.j2")

WIRE = "::tagwire::wire"


@dataclass(frozen=True)
class _CppRule:
    type_name: str
    raw_type: str | None = None
    to_raw: str = ""  # expression converting {value} to raw bits
    from_raw: str = ""  # expression converting {raw} back to the field type


PRIMITIVE_RULES = {
    FieldKind.INT32: _CppRule(
        "int32_t", "uint32_t", "static_cast<uint32_t>({value})", "static_cast<int32_t>({raw})"
    ),
    FieldKind.INT64: _CppRule(
        "int64_t", "uint64_t", "static_cast<uint64_t>({value})", "static_cast<int64_t>({raw})"
    ),
    FieldKind.SINGLE: _CppRule(
        "float",
        "uint32_t",
        WIRE + "::BitCast<uint32_t>({value})",
        WIRE + "::BitCast<float>({raw})",
    ),
    FieldKind.DOUBLE: _CppRule(
        "double",
        "uint64_t",
        WIRE + "::BitCast<uint64_t>({value})",
        WIRE + "::BitCast<double>({raw})",
    ),
    FieldKind.STRING: _CppRule("std::string"),
}

FIXED_IO = {
    4: ("WriteFixed32", "ReadFixed32"),
    8: ("WriteFixed64", "ReadFixed64"),
}

CPP_KEYWORDS = frozenset(
    """
    alignas alignof and and_eq asm auto bitand bitor bool break case catch char
    char8_t char16_t char32_t class compl concept const consteval constexpr
    constinit const_cast continue co_await co_return co_yield decltype default
    delete do double dynamic_cast else enum explicit export extern false float for
    friend goto if inline int long mutable namespace new noexcept not not_eq
    nullptr operator or or_eq private protected public register reinterpret_cast
    requires return short signed sizeof static static_assert static_cast struct
    switch template this thread_local throw true try typedef typeid typename union
    unsigned using virtual void volatile wchar_t while xor xor_eq
    """.split()
)

# Methods every generated class defines
MEMBER_NAMES = frozenset({"DebugString", "SerializeAsString", "ParseFromString"})


def _map_type(f: ProtoField) -> str:
    """Map a field to its C++ type."""
    if f.kind in PRIMITIVE_RULES:
        return PRIMITIVE_RULES[f.kind].type_name
    return f.type.name


def _accessors(f: ProtoField) -> str:
    """Getter, setter and, for strings and messages, a mutable accessor."""
    codec = codec_for(f)
    t = _map_type(f)
    name = f.name

    if codec.by_value:
        return (
            f"  {t} {name}() const {{ return {name}_; }}\n"
            f"  void set_{name}({t} val) {{ {name}_ = val; }}"
        )
    return (
        f"  const {t}& {name}() const {{ return {name}_; }}\n"
        f"  void set_{name}(const {t}& val) {{ {name}_ = val; }}\n"
        f"  {t}* mutable_{name}() {{ return &{name}_; }}"
    )


def _member(f: ProtoField) -> str:
    """Private data member, annotated with its tag."""
    initializer = " = 0" if codec_for(f).by_value else ""
    return f"  {_map_type(f)} {f.name}_{initializer};  // = {f.tag}"


def _dump(f: ProtoField) -> str:
    name = f.name

    if f.is_message:
        return (
            f'    out << "{name} {{\\n";\n'
            f"    {{\n"
            f"      std::istringstream nested({name}_.DebugString());\n"
            "      std::string line;\n"
            f"      while (std::getline(nested, line)) {{\n"
            f'        out << "  " << line << "\\n";\n'
            f"      }}\n"
            f"    }}\n"
            f'    out << "}}\\n";'
        )
    if f.kind == FieldKind.STRING:
        return f'    out << "{name}: \\"" << {name}_ << "\\"\\n";'
    return f'    out << "{name}: " << {name}_ << "\\n";'


def _write(f: ProtoField) -> str:
    codec = codec_for(f)
    name = f.name
    header = f"    {WIRE}::WriteFixed32(&out, 0x{field_header(f):02X}u);"

    if codec.is_fixed:
        rule = PRIMITIVE_RULES[f.kind]
        write_fn, _ = FIXED_IO[codec.size]
        raw = rule.to_raw.format(value=f"{name}_")
        return f"{header}\n    {WIRE}::{write_fn}(&out, {raw});"

    if f.is_message:
        return (
            f"{header}\n"
            f"    {{\n"
            f"      const std::string nested = {name}_.SerializeAsString();\n"
            f"      {WIRE}::WriteFixed32(&out, static_cast<uint32_t>(nested.size()));\n"
            "      out.append(nested);\n"
            f"    }}"
        )
    return (
        f"{header}\n"
        f"    {WIRE}::WriteFixed32(&out, static_cast<uint32_t>({name}_.size()));\n"
        f"    out.append({name}_);"
    )


def _read(f: ProtoField) -> str:
    codec = codec_for(f)
    name = f.name

    if codec.is_fixed:
        rule = PRIMITIVE_RULES[f.kind]
        _, read_fn = FIXED_IO[codec.size]
        value = rule.from_raw.format(raw="raw")
        return (
            f"        {rule.raw_type} raw;\n"
            f"        if (!{WIRE}::{read_fn}(data, &pos, &raw)) return false;\n"
            f"        {name}_ = {value};"
        )

    if f.is_message:
        return (
            "        std::string nested;\n"
            f"        if (!{WIRE}::ReadLengthDelimited(data, &pos, &nested)) return false;\n"
            f"        if (!{name}_.ParseFromString(nested)) return false;"
        )
    return f"        if (!{WIRE}::ReadLengthDelimited(data, &pos, &{name}_)) return false;"


def _declared_names(f: ProtoField) -> list[str]:
    """Class members a field adds: accessors and the data member."""
    names = [f.name, f"set_{f.name}", f"{f.name}_"]
    if not codec_for(f).by_value:
        names.append(f"mutable_{f.name}")
    return names


def _check_names(schema: Schema) -> None:
    """Reject names the generated header cannot declare."""
    for part in (schema.namespace or "").split("."):
        if part in CPP_KEYWORDS:
            raise UnsupportedFeatureError(f"{schema.namespace}: {part} is a C++ keyword")

    message_names = {message.name for message in schema.messages}
    for message in schema.messages:
        if message.name in CPP_KEYWORDS:
            raise UnsupportedFeatureError(f"{message.name}: message name is a C++ keyword")

        declared = set(MEMBER_NAMES)
        for f in message.fields:
            if f.name in CPP_KEYWORDS:
                raise UnsupportedFeatureError(
                    f"{message.name}.{f.name}: field name is a C++ keyword"
                )
            if f.name in message_names:
                raise UnsupportedFeatureError(
                    f"{message.name}.{f.name}: field name matches a message name"
                )
            for member in _declared_names(f):
                if member in declared:
                    raise UnsupportedFeatureError(
                        f"{message.name}.{f.name}: {member} clashes with another member"
                    )
                declared.add(member)


def _guard(stem: str) -> str:
    """Include guard derived from the schema file's base name."""
    return "_" + re.sub(r"\W", "_", stem.upper()) + "_"


def _ordered(messages: list[ProtoMessage]) -> list[ProtoMessage]:
    """Schema order, moving a message after any message it embeds by value."""
    by_name = {message.name: message for message in messages}
    result: list[ProtoMessage] = []
    emitted: set[str] = set()

    def emit(message: ProtoMessage) -> None:
        if message.name in emitted:
            return
        emitted.add(message.name)
        for f in message.fields:
            if f.is_message:
                emit(by_name[f.type.name])
        result.append(message)

    for message in messages:
        emit(message)
    return result


def render(schema: Schema, stem: str) -> str:
    """Render a schema to a C++ header."""
    for message in schema.messages:
        check_message(message)
    _check_names(schema)

    return template.render(
        messages=_ordered(schema.messages),
        namespace=(schema.namespace or "").replace(".", "::"),
        guard=_guard(stem),
        accessors=_accessors,
        member=_member,
        dump=_dump,
        write=_write,
        read=_read,
        wire_type_bits=WIRE_TYPE_BITS,
        wire_type_mask=f"0x{WIRE_TYPE_MASK:X}",
    )
