"""Python code generator for tagwire schemas."""

import keyword
from importlib import resources

from jinja2 import Environment, PackageLoader

from .types import FieldKind, ProtoField, ProtoMessage, Schema
from .wire import (
    HEADER_FORMAT,
    LENGTH_FORMAT,
    WIRE_TYPE_MASK,
    UnsupportedFeatureError,
    check_message,
    codec_for,
    field_header,
)

RUNTIME_FILES = [
    "__init__.py",
    "serialization.py",
]

OUTPUT_SUFFIX = "_pb.py"

env = Environment(
    loader=PackageLoader("tagwire.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("python.py.j2")

# Map field kinds to Python type annotations
PRIMITIVE_TYPE_MAP = {
    FieldKind.INT32: "int",
    FieldKind.INT64: "int",
    FieldKind.SINGLE: "float",
    FieldKind.DOUBLE: "float",
    FieldKind.STRING: "str",
}

DEFAULT_VALUES = {
    FieldKind.INT32: "0",
    FieldKind.INT64: "0",
    FieldKind.SINGLE: "0.0",
    FieldKind.DOUBLE: "0.0",
    FieldKind.STRING: '""',
}

# Module level names bound by the generated code
MODULE_NAMES = frozenset(
    {
        "NAMESPACE",
        "Message",
        "SerializationError",
        "dataclass",
        "read_bytes",
        "read_fixed",
        "read_string",
        "read_u32",
        "skip_field",
    }
)

# Methods every generated message class defines or inherits
MEMBER_NAMES = frozenset({"dump", "serialize", "parse", "from_bytes"})


def _check_names(message: ProtoMessage) -> None:
    """Reject message and field names the generated module cannot use."""
    name = message.name
    if keyword.iskeyword(name) or name in MODULE_NAMES or name.startswith("_"):
        raise UnsupportedFeatureError(f"{name}: message name is reserved in Python")

    for f in message.fields:
        if keyword.iskeyword(f.name):
            raise UnsupportedFeatureError(f"{name}.{f.name}: field name is a Python keyword")
        if f.name in MEMBER_NAMES or f.name.startswith("_"):
            raise UnsupportedFeatureError(
                f"{name}.{f.name}: field name clashes with a generated member"
            )


def _map_type(f: ProtoField) -> str:
    """Map a field to a Python type annotation."""
    return PRIMITIVE_TYPE_MAP.get(f.kind, f.type.name)


def _default_value(f: ProtoField) -> str:
    """Default value expression for a dataclass field."""
    if f.is_message:
        # Deferred so a message may embed one declared further down
        return f"_field(default_factory=lambda: {f.type.name}())"
    return DEFAULT_VALUES[f.kind]


def _gen_dump_field(f: ProtoField) -> str:
    """Generate dump code for a field."""
    name = f.name

    if f.is_message:
        return (
            f'_out.append("{name} {{\\n")\n'
            f'_out.extend(f"  {{_line}}\\n" for _line in self.{name}.dump().splitlines())\n'
            f'_out.append("}}\\n")'
        )
    if f.kind == FieldKind.STRING:
        return f"_out.append(f'{name}: \"{{self.{name}}}\"\\n')"
    return f'_out.append(f"{name}: {{self.{name}}}\\n")'


def _gen_serialize_field(f: ProtoField) -> str:
    """Generate serialize code for a field: header, then payload."""
    codec = codec_for(f)
    name = f.name
    header = f"0x{field_header(f):02X}"

    if codec.is_fixed:
        fmt = HEADER_FORMAT + codec.format_char
        return f'_buf += _struct.pack("{fmt}", {header}, self.{name})'

    if f.is_message:
        encode = f"_enc_{name} = self.{name}.serialize()"
    else:
        encode = f'_enc_{name} = self.{name}.encode("utf-8")'
    fmt = HEADER_FORMAT + LENGTH_FORMAT[1:]
    return (
        f"{encode}\n"
        f'_buf += _struct.pack("{fmt}", {header}, len(_enc_{name}))\n'
        f"_buf += _enc_{name}"
    )


def _gen_parse_field(f: ProtoField) -> str:
    """Generate parse code for a field, run once its tag has been read."""
    codec = codec_for(f)
    name = f.name

    if codec.is_fixed:
        return f'self.{name}, _o = read_fixed(_data, _o, "<{codec.format_char}", {codec.size})'

    if f.is_message:
        return (
            f"_raw, _o = read_bytes(_data, _o)\n"
            f"if not self.{name}.parse(_raw):\n"
            f"    return False"
        )
    return f"self.{name}, _o = read_string(_data, _o)"


def render(schema: Schema, stem: str, runtime_import: str = "tagwire_runtime") -> str:
    """Render a schema to Python source code."""
    for message in schema.messages:
        check_message(message)
        _check_names(message)

    return template.render(
        schema=schema,
        stem=stem,
        map_type=_map_type,
        default_value=_default_value,
        gen_dump_field=_gen_dump_field,
        gen_serialize_field=_gen_serialize_field,
        gen_parse_field=_gen_parse_field,
        wire_type_mask=f"0x{WIRE_TYPE_MASK:X}",
        runtime_import=runtime_import,
    )


def runtime() -> dict[str, str]:
    """Return the Python runtime files as a dict of filename -> content."""
    result: dict[str, str] = {}
    for filename in RUNTIME_FILES:
        content = resources.files("tagwire.proto").joinpath(filename).read_text()
        result[filename] = content
    return result
