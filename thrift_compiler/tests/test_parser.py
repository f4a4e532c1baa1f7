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

"""Tests for the Thrift parser."""

import pytest

from thrift_compiler import parse
from thrift_compiler.ast import (
    CollectionType,
    ConstList,
    ConstMap,
    Enum,
    Include,
    MapType,
    Namespace,
    NodeType,
    Service,
    Span,
    Struct,
    ThriftException,
    Typedef,
    Union,
    enum_values,
    iter_nodes,
)
from thrift_compiler.errors import LexError, ParseError
from thrift_compiler.frontend.parser import Parser


def test_namespace_and_struct():
    source = "namespace js example\nstruct User { 1: required string id }"
    document = parse(source)

    namespace, struct = document.members
    assert isinstance(namespace, Namespace)
    assert namespace.kind == NodeType.NAMESPACE_DEFINITION
    assert namespace.scope.value == "js"
    assert namespace.name.value == "example"
    assert namespace.loc.start == Span(1, 1, 0)
    assert namespace.loc.end == Span(1, 21, 20)

    assert isinstance(struct, Struct)
    field = struct.members[0]
    assert field.field_id.value == "1"
    assert field.field_id.kind == NodeType.FIELD_ID
    assert field.required_type == "required"
    assert field.field_type.value == "string"
    assert field.field_type.kind == NodeType.STRING_KEYWORD
    assert field.name.value == "id"
    assert struct.loc.start == Span(2, 1, 21)
    assert struct.loc.end == Span(2, 38, 58)


def test_document_loc_covers_source():
    source = "// only a comment\n"
    document = parse(source)
    assert document.members == ()
    assert document.loc.start == Span(1, 1, 0)
    assert document.loc.end.index == len(source)
    assert [c.value for c in document.comments] == ["// only a comment"]


def test_every_loc_is_within_source_bounds():
    source = """
    include "shared.thrift"
    const map<string, list<i32>> M = {"a": [1, 2], "b": []}
    enum Color { RED, GREEN = 5 }
    service S extends shared.Base {
      oneway void ping(),
      i32 add(1: i32 a, i32 b) throws (1: shared.Oops e)
    }
    """
    document = parse(source)
    count = 0
    for node in iter_nodes(document):
        count += 1
        assert 0 <= node.loc.start.index <= node.loc.end.index <= len(source)
    assert count > 30


class TestDeclarations:
    def test_include(self):
        include = parse('include "shared.thrift"').members[0]
        assert isinstance(include, Include)
        assert include.name.kind == NodeType.STRING_LITERAL
        assert include.name.value == "shared.thrift"

    def test_namespace_star_scope(self):
        namespace = parse("namespace * foo.bar").members[0]
        assert namespace.scope.value == "*"
        assert namespace.name.value == "foo.bar"

    def test_typedef(self):
        typedef = parse("typedef list<string> Names").members[0]
        assert isinstance(typedef, Typedef)
        assert isinstance(typedef.field_type, CollectionType)
        assert typedef.field_type.kind == NodeType.LIST_TYPE
        assert typedef.field_type.value_type.kind == NodeType.STRING_KEYWORD

    def test_const_map_of_lists(self):
        const = parse('const map<string, list<i32>> M = {"a": [1, 2], "b": []}').members[0]
        assert isinstance(const.field_type, MapType)
        assert const.field_type.key_type.kind == NodeType.STRING_KEYWORD
        assert const.field_type.value_type.kind == NodeType.LIST_TYPE
        assert isinstance(const.value, ConstMap)
        first = const.value.properties[0]
        assert first.name.kind == NodeType.STRING_LITERAL
        assert first.name.value == "a"
        assert isinstance(first.value, ConstList)
        assert [e.value for e in first.value.elements] == ["1", "2"]

    def test_literal_kinds(self):
        source = "const list<double> L = [1, 0x10, 1.5, 2e3, true, 'x', Color.RED]"
        elements = parse(source).members[0].value.elements
        assert [e.kind for e in elements] == [
            NodeType.INTEGER_LITERAL,
            NodeType.HEX_LITERAL,
            NodeType.FLOAT_LITERAL,
            NodeType.EXPONENTIAL_LITERAL,
            NodeType.BOOLEAN_LITERAL,
            NodeType.STRING_LITERAL,
            NodeType.IDENTIFIER,
        ]
        assert [e.value for e in elements] == ["1", "0x10", "1.5", "2e3", "true", "x", "Color.RED"]

    def test_enum_values(self):
        enum = parse("enum Color { RED, GREEN = 5, BLUE; HEX = 0x10 }").members[0]
        assert isinstance(enum, Enum)
        assert enum.members[1].initializer.kind == NodeType.INT_CONSTANT
        assert enum_values(enum) == [("RED", 0), ("GREEN", 5), ("BLUE", 6), ("HEX", 16)]

    def test_struct_union_exception(self):
        document = parse("struct A {} union B {} exception C { 1: string message }")
        assert [type(m) for m in document.members] == [Struct, Union, ThriftException]
        assert [m.kind for m in document.members] == [
            NodeType.STRUCT_DEFINITION,
            NodeType.UNION_DEFINITION,
            NodeType.EXCEPTION_DEFINITION,
        ]

    def test_service(self):
        source = """
        service Calculator extends shared.Base {
          oneway void ping(),
          i32 add(1: i32 a, 2: i32 b) throws (1: Oops ouch);
        }
        """
        service = parse(source).members[0]
        assert isinstance(service, Service)
        assert service.extends.value == "shared.Base"
        ping, add = service.members
        assert ping.oneway is True
        assert ping.return_type.kind == NodeType.VOID_KEYWORD
        assert ping.params == ()
        assert ping.throws is None
        assert add.oneway is False
        assert [p.name.value for p in add.params] == ["a", "b"]
        assert add.throws[0].field_type.value == "Oops"

    def test_field_defaults_and_requiredness(self):
        source = "struct A { 1: optional i32 x = 3, 2: bool flag, 3: list<i8> l = [] }"
        x, flag, items = parse(source).members[0].members
        assert x.required_type == "optional"
        assert x.default_value.value == "3"
        assert flag.required_type == "default"
        assert flag.default_value is None
        assert isinstance(items.default_value, ConstList)

    def test_annotations(self):
        source = 'struct A { 1: i32 x (python.type = "int", deprecated) } (final = "true")'
        struct = parse(source).members[0]
        annotations = struct.members[0].annotations
        assert annotations.kind == NodeType.ANNOTATIONS
        assert [a.name.value for a in annotations.members] == ["python.type", "deprecated"]
        assert annotations.members[0].value.value == "int"
        assert annotations.members[1].value is None
        assert struct.annotations.members[0].name.value == "final"

    def test_soft_keywords_as_field_names(self):
        source = "struct A { 1: string namespace, 2: list<i32> list, 3: bool required }"
        names = [f.name.value for f in parse(source).members[0].members]
        assert names == ["namespace", "list", "required"]

    def test_separators_are_optional(self):
        source = "enum E { A B; C, } struct S { 1: i32 a 2: i32 b; }; const i32 X = 1,"
        document = parse(source)
        assert len(document.members) == 3
        assert len(document.members[1].members) == 2


class TestFieldIds:
    def test_implicit_ids_count_down(self):
        struct = parse("struct A { i32 a; i32 b; 5: i32 c }").members[0]
        a, b, c = struct.members
        assert a.field_id.kind == NodeType.IMPLICIT_FIELD_ID
        assert (a.id, b.id, c.id) == (-1, -2, 5)
        assert a.implicit_id and not c.implicit_id
        assert a.field_id.loc.start == a.field_id.loc.end == a.loc.start

    def test_implicit_ids_restart_per_field_list(self):
        source = "service S { void f(i32 a, i32 b) throws (Err e) }"
        function = parse(source).members[0].members[0]
        assert [p.id for p in function.params] == [-1, -2]
        assert [t.id for t in function.throws] == [-1]

    def test_duplicate_field_id(self):
        with pytest.raises(ParseError) as exc_info:
            parse("struct A { 1: i32 a, 1: i32 b }")
        error = exc_info.value
        assert error.code == "parser::duplicate_field_id"
        assert error.line == 1
        assert error.column == 22

    def test_same_id_in_different_structs_is_fine(self):
        document = parse("struct A { 1: i32 a } struct B { 1: i32 a }")
        assert len(document.members) == 2


class TestComments:
    def test_comments_attach_to_following_node(self):
        source = """// leading
/* block */
struct A {
  // field comment
  1: i32 x
}
// trailing
"""
        document = parse(source)
        struct = document.members[0]
        assert [c.value for c in struct.comments] == ["// leading", "/* block */"]
        assert [c.kind for c in struct.comments] == [
            NodeType.COMMENT_LINE,
            NodeType.COMMENT_BLOCK,
        ]
        assert [c.value for c in struct.members[0].comments] == ["// field comment"]
        assert [c.value for c in document.comments] == ["// trailing"]

    def test_comment_inside_construct_carries_forward(self):
        source = "struct A { 1: i32 x // after x\n}\nstruct B {}"
        document = parse(source)
        assert document.members[0].members[0].comments == ()
        assert [c.value for c in document.members[1].comments] == ["// after x"]

    def test_enum_member_and_function_comments(self):
        source = """
        enum E {
          # first
          A
        }
        service S {
          /** docs */
          void f()
        }
        """
        document = parse(source)
        assert [c.value for c in document.members[0].members[0].comments] == ["# first"]
        assert [c.value for c in document.members[1].members[0].comments] == ["/** docs */"]


class TestErrors:
    @pytest.mark.parametrize(
        "source,code",
        [
            ("foo bar", "parser::unexpected_token"),
            ("struct A {", "parser::unexpected_eof"),
            ("struct A { 1: i32 }", "parser::invalid_field_name"),
            ("struct A { 1: 42 x }", "parser::unsupported_type"),
            ("struct A { 1.5: i32 x }", "parser::invalid_field_id"),
            ("const i32 X = )", "parser::invalid_value"),
            ("service S { 42 f() }", "parser::invalid_return_type"),
            ('struct A { 1: string s = "abc }', "lexer::unterminated_string"),
        ],
    )
    def test_error_codes(self, source, code):
        with pytest.raises(ParseError) as exc_info:
            parse(source)
        error = exc_info.value
        assert error.code == code
        assert error.kind == "ParseError"
        assert 1 <= error.line <= source.count("\n") + 1
        assert 0 <= error.start.index <= error.end.index <= len(source)

    def test_eof_error_points_at_end(self):
        with pytest.raises(ParseError) as exc_info:
            parse("struct A {")
        assert exc_info.value.start == Span(1, 11, 10)

    def test_grammar_error_wins_over_later_lex_error(self):
        with pytest.raises(ParseError) as exc_info:
            parse("struct } 12abc")
        assert not isinstance(exc_info.value, LexError)
        assert exc_info.value.code == "parser::unexpected_token"

    def test_parser_from_source(self):
        document = Parser.from_source("typedef i64 Timestamp", "t.thrift").parse()
        assert document.members[0].name.value == "Timestamp"

    def test_non_ascii_digit_field_id(self):
        with pytest.raises(ParseError) as exc_info:
            parse("struct A { ²: string a }")
        assert exc_info.value.code == "lexer::unrecognized_character"

    def test_deeply_nested_value(self):
        source = "const list<i32> X = " + "[" * 2000 + "]" * 2000
        with pytest.raises(ParseError) as exc_info:
            parse(source)
        assert exc_info.value.code == "parser::nesting_too_deep"

    def test_deeply_nested_map_value(self):
        source = "const map<i32, i32> X = " + "{1: " * 2000 + "1" + "}" * 2000
        with pytest.raises(ParseError) as exc_info:
            parse(source)
        assert exc_info.value.code == "parser::nesting_too_deep"

    def test_deeply_nested_type(self):
        source = "typedef " + "list<" * 2000 + "i32" + ">" * 2000 + " T"
        with pytest.raises(ParseError) as exc_info:
            parse(source)
        assert exc_info.value.code == "parser::nesting_too_deep"

    def test_nesting_limit(self):
        document = parse("typedef " + "list<" * 64 + "i32" + ">" * 64 + " T")
        field_type = document.members[0].field_type
        for _ in range(64):
            field_type = field_type.value_type
        assert field_type.value == "i32"
        with pytest.raises(ParseError):
            parse("typedef " + "list<" * 65 + "i32" + ">" * 65 + " T")


def test_property_assignment_loc_spans_key_and_value():
    source = 'const map<string, i32> M = {"a" : 1}'
    prop = parse(source).members[0].value.properties[0]
    assert source[prop.loc.start.index : prop.loc.end.index] == '"a" : 1'
