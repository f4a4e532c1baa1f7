# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.

"""Tests for canonical IDL writing."""

import dataclasses
import json

import pytest

from thrift_compiler import from_json, parse, write
from thrift_compiler.ast import (
    Comment,
    Common,
    Const,
    ConstList,
    ConstMap,
    Document,
    Location,
    MapType,
    NodeType,
    Span,
    Typedef,
)
from thrift_compiler.errors import SerializationError
from thrift_compiler.writer import ThriftWriter, quote_string

LOC = Location(Span(1, 1, 0), Span(1, 1, 0))


def ident(value):
    return Common(NodeType.IDENTIFIER, value, LOC)


def i32():
    return Common(NodeType.I32_KEYWORD, "i32", LOC)


def document_of(*members):
    return Document(members=members, loc=LOC)


MESSY_SOURCE = """namespace py example.service
include "shared.thrift"
// The user record
struct User {
  1: required string id;
  2: optional list<string> tags = ["a", "b"] (python.type = "list")
  i32 age
} (final = "true")
enum Color { RED, GREEN = 5 }
service Users extends shared.Base {
  User get(1: string id) throws (1: shared.NotFound nf),
  oneway void ping()
}
"""

CANONICAL = """namespace py example.service

include "shared.thrift"

// The user record
struct User {
  1: required string id,
  2: optional list<string> tags = ["a", "b"] (python.type = "list"),
  i32 age,
} (final = "true")

enum Color {
  RED,
  GREEN = 5,
}

service Users extends shared.Base {
  User get(1: string id) throws (1: shared.NotFound nf),
  oneway void ping(),
}
"""


def test_canonical_output():
    assert write(parse(MESSY_SOURCE)) == CANONICAL


def test_canonical_output_is_a_fixpoint():
    once = write(parse(MESSY_SOURCE))
    assert write(parse(once)) == once


def test_namespace_from_json():
    document = {
        "kind": "ThriftDocument",
        "members": [
            {
                "kind": "NamespaceDefinition",
                "scope": {
                    "kind": "Identifier",
                    "value": "js",
                    "loc": {
                        "start": {"line": 1, "column": 11, "index": 10},
                        "end": {"line": 1, "column": 13, "index": 12},
                    },
                },
                "name": {
                    "kind": "Identifier",
                    "value": "example",
                    "loc": {
                        "start": {"line": 1, "column": 14, "index": 13},
                        "end": {"line": 1, "column": 21, "index": 20},
                    },
                },
                "comments": [],
                "annotations": None,
                "loc": {
                    "start": {"line": 1, "column": 1, "index": 0},
                    "end": {"line": 1, "column": 21, "index": 20},
                },
            }
        ],
        "comments": [],
        "loc": {
            "start": {"line": 1, "column": 1, "index": 0},
            "end": {"line": 1, "column": 21, "index": 20},
        },
    }
    assert write(from_json(json.dumps(document))).strip() == "namespace js example"


def test_empty_document():
    assert write(parse("")) == ""


def test_empty_bodies():
    source = "struct A {}\nenum E {}\nservice S {}\n"
    assert write(parse(source)) == "struct A {}\n\nenum E {}\n\nservice S {}\n"


def test_commented_params_render_one_per_line():
    source = "service S {\n  void f(\n    // the id\n    1: string id\n  )\n}\n"
    expected = "service S {\n  void f(\n    // the id\n    1: string id,\n  ),\n}\n"
    assert write(parse(source)) == expected
    assert write(parse(expected)) == expected


def test_comments_are_written_verbatim():
    source = "/*\n * Block\n */\n# hash\nconst i32 X = 1 // end\n"
    expected = "/*\n * Block\n */\n# hash\nconst i32 X = 1\n\n// end\n"
    assert write(parse(source)) == expected


def test_strings_are_reescaped_with_double_quotes():
    source = r"""const string S = 'say "hi"\n'"""
    assert write(parse(source)) == 'const string S = "say \\"hi\\"\\n"\n'


def test_quote_string_escapes_control_characters():
    assert quote_string("a\\b\x01") == '"a\\\\b\\u0001"'


def test_numbers_are_written_verbatim():
    source = "const list<double> L = [0x1F, 1.50, 2E+3, -0]"
    assert write(parse(source)) == "const list<double> L = [0x1F, 1.50, 2E+3, -0]\n"


def test_field_type_nesting():
    source = "typedef map<string,list<set<i64>>> Index"
    assert write(parse(source)) == "typedef map<string, list<set<i64>>> Index\n"


class TestSerializationErrors:
    def test_map_without_value_type(self):
        map_type = MapType(value="map", key_type=i32(), value_type=None, loc=LOC)
        document = document_of(Typedef(name=ident("M"), field_type=map_type, loc=LOC))
        with pytest.raises(SerializationError) as exc_info:
            write(document)
        assert exc_info.value.code == "writer::missing_node"
        assert "valueType" in exc_info.value.message

    def test_literal_that_does_not_relex(self):
        value = Common(NodeType.INTEGER_LITERAL, "12abc", LOC)
        document = document_of(Const(name=ident("X"), field_type=i32(), value=value, loc=LOC))
        with pytest.raises(SerializationError) as exc_info:
            write(document)
        assert exc_info.value.code == "writer::invalid_literal"

    def test_keyword_as_type_name(self):
        document = document_of(Typedef(name=ident("T"), field_type=ident("struct"), loc=LOC))
        with pytest.raises(SerializationError):
            write(document)

    def test_list_value_for_map_type(self):
        const = parse("const map<i32, i32> M = {}").members[0]
        bad = dataclasses.replace(const, value=ConstList(elements=(), loc=LOC))
        with pytest.raises(SerializationError):
            write(document_of(bad))

    def test_map_value_for_list_type(self):
        const = parse("const list<i32> L = []").members[0]
        bad = dataclasses.replace(const, value=ConstMap(properties=(), loc=LOC))
        with pytest.raises(SerializationError):
            write(document_of(bad))

    def test_list_value_for_scalar_type(self):
        const = parse("const i32 X = 1").members[0]
        bad = dataclasses.replace(const, value=ConstList(elements=(), loc=LOC))
        with pytest.raises(SerializationError):
            write(document_of(bad))

    def test_malformed_comment(self):
        const = parse("const i32 X = 1").members[0]
        comment = Comment(NodeType.COMMENT_LINE, "not a comment", LOC)
        bad = dataclasses.replace(const, comments=(comment,))
        with pytest.raises(SerializationError):
            write(document_of(bad))

    def test_not_a_document(self):
        with pytest.raises(SerializationError):
            ThriftWriter("struct A {}").emit()

    def test_scalar_value_for_list_type(self):
        with pytest.raises(SerializationError) as exc_info:
            write(parse("const list<i32> X = 5"))
        assert exc_info.value.code == "writer::invalid_shape"

    def test_scalar_value_for_map_type(self):
        with pytest.raises(SerializationError):
            write(parse('const map<string, i32> X = "m"'))

    def test_identifier_value_for_container_type(self):
        source = "const list<i32> X = OTHER_LIST\n"
        assert write(parse(source)) == source

    def test_members_none(self):
        struct = parse("struct A {}").members[0]
        with pytest.raises(SerializationError) as exc_info:
            write(document_of(dataclasses.replace(struct, members=None)))
        assert exc_info.value.code == "writer::missing_node"

    def test_comments_none(self):
        const = parse("const i32 X = 1").members[0]
        with pytest.raises(SerializationError) as exc_info:
            write(document_of(dataclasses.replace(const, comments=None)))
        assert exc_info.value.code == "writer::missing_node"

    def test_members_not_a_sequence(self):
        enum = parse("enum E { A }").members[0]
        with pytest.raises(SerializationError) as exc_info:
            write(document_of(dataclasses.replace(enum, members=42)))
        assert exc_info.value.code == "writer::invalid_shape"

    def test_value_nested_too_deep(self):
        value = ConstList(elements=(), loc=LOC)
        for _ in range(500):
            value = ConstList(elements=(value,), loc=LOC)
        list_type = parse("typedef list<i32> L").members[0].field_type
        document = document_of(Const(name=ident("X"), field_type=list_type, value=value, loc=LOC))
        with pytest.raises(SerializationError) as exc_info:
            write(document)
        assert "nested" in exc_info.value.message
