"""Tests for schema parser."""

import pytest

from tagwire.generator import FieldKind, parse
from tagwire.generator.parser import MAX_TAG, SchemaCompileError, SchemaValidationError


def describe_parse_namespace():
    def parses_dotted_namespace(expect):
        schema = parse("namespace demo.people;")
        expect(schema.namespace) == "demo.people"
        expect(schema.messages) == []

    def accepts_package_keyword(expect):
        schema = parse("package demo;")
        expect(schema.namespace) == "demo"

    def assigns_namespace_to_messages(expect):
        schema = parse(
            """
            namespace demo;
            message Empty {}
        """
        )
        expect(schema.messages[0].namespace) == "demo"


def describe_parse_message():
    def parses_fields_in_declaration_order(expect):
        schema = parse(
            """
            namespace demo;
            message Person {
                string name = 2;
                int32 age = 1;
            }
        """
        )
        person = schema.message("Person")
        expect([f.name for f in person.fields]) == ["name", "age"]
        expect([f.tag for f in person.fields]) == [2, 1]

    def classifies_primitive_types(expect):
        schema = parse(
            """
            namespace demo;
            message AllTypes {
                int32 a = 1;
                int64 b = 2;
                float c = 3;
                double d = 4;
                string e = 5;
            }
        """
        )
        kinds = [f.kind for f in schema.messages[0].fields]
        expect(kinds) == [
            FieldKind.INT32,
            FieldKind.INT64,
            FieldKind.SINGLE,
            FieldKind.DOUBLE,
            FieldKind.STRING,
        ]

    def resolves_message_references_in_any_order(expect):
        schema = parse(
            """
            namespace demo;
            message Outer { Inner inner = 1; }
            message Inner { int32 value = 1; }
        """
        )
        inner = schema.message("Outer").fields[0]
        expect(inner.kind) == FieldKind.MESSAGE
        expect(inner.is_message) == True
        expect(inner.type.name) == "Inner"

    def parses_unsupported_shapes(expect):
        schema = parse(
            """
            namespace demo;
            enum Color { RED = 0; GREEN = 1; }
            message Shapes {
                repeated int32 values = 1;
                map<string, int32> lookup = 2;
                Color color = 3;
            }
        """
        )
        values, lookup, color = schema.messages[0].fields
        expect(values.repeated) == True
        expect(values.kind) == FieldKind.INT32
        expect(lookup.kind) == FieldKind.MAP
        expect(lookup.type.name) == "map<string, int32>"
        expect(color.kind) == FieldKind.ENUM
        expect(schema.enums[0].values[1].value) == 1

    def ignores_comments(expect):
        schema = parse(
            """
            // line comment
            namespace demo;
            /* block
               comment */
            message Note { string text = 1; } // trailing
        """
        )
        expect(len(schema.messages)) == 1

    def serializes_to_json(expect):
        schema = parse("namespace demo; message Point { int32 x = 1; }")
        data = schema.to_dict()
        expect(data["messages"][0]["fields"][0]["type"]["kind"]) == "int32"


def describe_validation():
    def requires_namespace(expect):
        with pytest.raises(SchemaValidationError) as exc:
            parse("message Point { int32 x = 1; }")
        expect(str(exc.value)).includes("namespace")

    def rejects_second_namespace(expect):
        with pytest.raises(SchemaValidationError):
            parse("namespace a; namespace b;")

    def rejects_duplicate_tags(expect):
        with pytest.raises(SchemaValidationError) as exc:
            parse("namespace demo; message Point { int32 x = 1; int32 y = 1; }")
        expect(str(exc.value)).includes("reuses tag 1 of x")

    def rejects_duplicate_field_names(expect):
        with pytest.raises(SchemaValidationError):
            parse("namespace demo; message Point { int32 x = 1; int64 x = 2; }")

    def rejects_zero_tag(expect):
        with pytest.raises(SchemaValidationError) as exc:
            parse("namespace demo; message Point { int32 x = 0; }")
        expect(str(exc.value)).includes("positive")

    def rejects_tags_that_do_not_fit_the_header(expect):
        parse(f"namespace demo; message Point {{ int32 x = {MAX_TAG}; }}")
        with pytest.raises(SchemaValidationError):
            parse(f"namespace demo; message Point {{ int32 x = {MAX_TAG + 1}; }}")

    def rejects_unknown_types(expect):
        with pytest.raises(SchemaValidationError) as exc:
            parse("namespace demo; message Point { Missing x = 1; }")
        expect(str(exc.value)).includes("unknown type Missing")

    def rejects_duplicate_messages(expect):
        with pytest.raises(SchemaValidationError):
            parse("namespace demo; message A {} message A {}")

    def rejects_direct_self_embedding(expect):
        with pytest.raises(SchemaValidationError) as exc:
            parse("namespace demo; message Node { Node next = 1; }")
        expect(str(exc.value)).includes("Node -> Node")

    def rejects_indirect_cycles(expect):
        with pytest.raises(SchemaValidationError) as exc:
            parse(
                """
                namespace demo;
                message A { B b = 1; }
                message B { C c = 1; }
                message C { A a = 1; }
            """
            )
        expect(str(exc.value)).includes("contains itself")

    def allows_shared_nested_messages(expect):
        schema = parse(
            """
            namespace demo;
            message Leaf { int32 v = 1; }
            message Left { Leaf leaf = 1; }
            message Root { Left left = 1; Leaf leaf = 2; }
        """
        )
        expect(len(schema.messages)) == 3


def describe_parse_errors():
    def rejects_invalid_syntax(expect):
        with pytest.raises(SchemaCompileError):
            parse("this is not valid syntax")

    def reports_error_position(expect):
        with pytest.raises(SchemaCompileError) as exc:
            parse("namespace demo;\nmessage Point {\n    int32 x 1;\n}")
        expect(exc.value.line) == 3

    def rejects_unclosed_brace(expect):
        with pytest.raises(SchemaCompileError):
            parse(
                """
                namespace demo;
                message Broken {
                    int32 x = 1;
            """
            )

    def rejects_negative_tag(expect):
        with pytest.raises(SchemaCompileError):
            parse("namespace demo; message Point { int32 x = -1; }")
