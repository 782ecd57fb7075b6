"""Tests for the module emitter."""

import os

import pytest

from tagwire.generator import UnsupportedFeatureError, emitter
from tagwire.generator.parser import SchemaCompileError

FILE_DIR = os.path.dirname(os.path.realpath(__file__))


def describe_output_path():
    def appends_fixed_suffix_to_stem(expect):
        expect(str(emitter.output_path("a/b/people.schema", "out", "cpp"))) == "out/people.pb.h"
        expect(str(emitter.output_path("people.schema", "out", "python"))) == "out/people_pb.py"


def describe_generate():
    def writes_cpp_header(expect, tmp_path):
        target = emitter.generate(f"{FILE_DIR}/people.schema", tmp_path, "cpp")

        expect(target) == tmp_path / "people.pb.h"
        expect(target.read_text()).includes("class Wrapper {")

    def writes_python_module(expect, tmp_path):
        target = emitter.generate(
            f"{FILE_DIR}/people.schema", tmp_path, "python", runtime_import="tagwire.proto"
        )

        expect(target) == tmp_path / "people_pb.py"
        expect(target.read_text()).includes("from tagwire.proto.serialization import (")

    def creates_output_directory(expect, tmp_path):
        target = emitter.generate(f"{FILE_DIR}/people.schema", tmp_path / "nested" / "dir", "cpp")
        expect(target.exists()) == True

    def overwrites_existing_artifact(expect, tmp_path):
        stale = tmp_path / "people.pb.h"
        stale.write_text("stale")

        emitter.generate(f"{FILE_DIR}/people.schema", tmp_path, "cpp")

        expect(stale.read_text()).includes("#ifndef _PEOPLE_")
        expect(sorted(p.name for p in tmp_path.iterdir())) == ["people.pb.h"]

    def leaves_no_artifact_on_unsupported_feature(expect, tmp_path):
        with pytest.raises(UnsupportedFeatureError):
            emitter.generate(f"{FILE_DIR}/unsupported.schema", tmp_path, "cpp")

        expect(list(tmp_path.iterdir())) == []

    def keeps_previous_artifact_on_failure(expect, tmp_path):
        schema = tmp_path / "broken.schema"
        schema.write_text("namespace demo; message Broken {")
        previous = tmp_path / "broken.pb.h"
        previous.write_text("previous")

        with pytest.raises(SchemaCompileError):
            emitter.generate(schema, tmp_path, "cpp")

        expect(previous.read_text()) == "previous"
        expect(sorted(p.name for p in tmp_path.iterdir())) == ["broken.pb.h", "broken.schema"]

    def rejects_unknown_language(expect, tmp_path):
        with pytest.raises(ValueError):
            emitter.generate(f"{FILE_DIR}/people.schema", tmp_path, "cobol")


def describe_write_atomic():
    def cleans_up_temporary_file_on_error(expect, tmp_path):
        target = tmp_path / "out.txt"

        with pytest.raises(TypeError):
            emitter.write_atomic(target, None)

        expect(list(tmp_path.iterdir())) == []
