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

"""Tests for the Thrift lexer."""

import pytest

from thrift_compiler.ast.types import Span
from thrift_compiler.errors import LexError, ParseError
from thrift_compiler.frontend.lexer import Lexer, TokenType


def token_types(source):
    return [t.type for t in Lexer(source).tokenize()]


class TestKeywordsAndIdentifiers:
    def test_keywords(self):
        tokens = Lexer("struct User").tokenize()
        assert [t.type for t in tokens] == [
            TokenType.STRUCT,
            TokenType.IDENT,
            TokenType.EOF,
        ]
        assert tokens[1].value == "User"

    def test_base_types_share_a_token_type(self):
        types = token_types("bool byte i8 i16 i32 i64 double string binary uuid")
        assert types[:-1] == [TokenType.BASE_TYPE] * 10

    def test_dotted_identifier_is_one_token(self):
        tokens = Lexer("shared.Type").tokenize()
        assert tokens[0].type == TokenType.IDENT
        assert tokens[0].value == "shared.Type"

    def test_dotted_keyword_segments_stay_an_identifier(self):
        tokens = Lexer("com.example.service").tokenize()
        assert tokens[0].type == TokenType.IDENT
        assert tokens[0].value == "com.example.service"

    def test_spans_are_end_exclusive(self):
        tokens = Lexer("struct User").tokenize()
        assert tokens[0].start == Span(1, 1, 0)
        assert tokens[0].end == Span(1, 7, 6)
        assert tokens[1].start == Span(1, 8, 7)

    def test_spans_track_lines(self):
        tokens = Lexer("a\n  b").tokenize()
        assert tokens[1].start == Span(2, 3, 4)

    def test_punctuation(self):
        assert token_types("{}[]()<>,;:=.*")[:-1] == [
            TokenType.LBRACE,
            TokenType.RBRACE,
            TokenType.LBRACKET,
            TokenType.RBRACKET,
            TokenType.LPAREN,
            TokenType.RPAREN,
            TokenType.LANGLE,
            TokenType.RANGLE,
            TokenType.COMMA,
            TokenType.SEMI,
            TokenType.COLON,
            TokenType.EQUALS,
            TokenType.DOT,
            TokenType.STAR,
        ]


class TestNumbers:
    def test_number_kinds(self):
        tokens = Lexer("1 -2 0x1F 1.5 1e10 -2.5E-3 .5 +7").tokenize()
        assert [(t.type, t.text) for t in tokens[:-1]] == [
            (TokenType.INTEGER, "1"),
            (TokenType.INTEGER, "-2"),
            (TokenType.HEX, "0x1F"),
            (TokenType.FLOAT, "1.5"),
            (TokenType.EXPONENTIAL, "1e10"),
            (TokenType.EXPONENTIAL, "-2.5E-3"),
            (TokenType.FLOAT, ".5"),
            (TokenType.INTEGER, "+7"),
        ]

    @pytest.mark.parametrize("source", ["12abc", "0x", "0xZZ", "1.", "1e", "1.2.3"])
    def test_malformed_numbers(self, source):
        with pytest.raises(LexError) as exc_info:
            Lexer(source).tokenize()
        assert exc_info.value.code == "lexer::malformed_number"
        assert exc_info.value.start == Span(1, 1, 0)


class TestStrings:
    def test_double_and_single_quotes(self):
        tokens = Lexer("\"a.thrift\" 'b.thrift'").tokenize()
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == "a.thrift"
        assert tokens[1].value == "b.thrift"

    def test_escapes_are_decoded(self):
        tokens = Lexer(r'"a\nb\t\"q\" \\ A"').tokenize()
        assert tokens[0].value == 'a\nb\t"q" \\ A'
        assert tokens[0].text == r'"a\nb\t\"q\" \\ A"'

    def test_unterminated_string(self):
        with pytest.raises(LexError) as exc_info:
            Lexer('"abc').tokenize()
        assert exc_info.value.code == "lexer::unterminated_string"
        assert exc_info.value.line == 1
        assert exc_info.value.column == 1

    def test_string_cannot_span_lines(self):
        with pytest.raises(LexError) as exc_info:
            Lexer('"abc\ndef"').tokenize()
        assert exc_info.value.code == "lexer::unterminated_string"

    def test_invalid_escape(self):
        with pytest.raises(LexError) as exc_info:
            Lexer(r'"\q"').tokenize()
        assert exc_info.value.code == "lexer::invalid_escape"
        assert exc_info.value.start == Span(1, 2, 1)

    def test_short_unicode_escape(self):
        with pytest.raises(LexError) as exc_info:
            Lexer(r'"\u12"').tokenize()
        assert exc_info.value.code == "lexer::invalid_escape"


class TestComments:
    def test_comments_are_trivia_tokens(self):
        tokens = Lexer("// line\n# hash\n/* block\n */ x").tokenize()
        assert [(t.type, t.text) for t in tokens] == [
            (TokenType.LINE_COMMENT, "// line"),
            (TokenType.LINE_COMMENT, "# hash"),
            (TokenType.BLOCK_COMMENT, "/* block\n */"),
            (TokenType.IDENT, "x"),
            (TokenType.EOF, ""),
        ]

    def test_unterminated_block_comment(self):
        with pytest.raises(LexError) as exc_info:
            Lexer("x /* never closed").tokenize()
        assert exc_info.value.code == "lexer::unterminated_comment"
        assert exc_info.value.column == 3


def test_unrecognized_character():
    with pytest.raises(ParseError) as exc_info:
        Lexer("struct @").tokenize()
    error = exc_info.value
    assert isinstance(error, LexError)
    assert error.kind == "ParseError"
    assert error.code == "lexer::unrecognized_character"
    assert error.column == 8


@pytest.mark.parametrize("digit", ["²", "٣", "１"])
def test_non_ascii_digits_are_not_numbers(digit):
    with pytest.raises(LexError) as exc_info:
        Lexer(f"struct A {{ {digit}: string a }}").tokenize()
    assert exc_info.value.code == "lexer::unrecognized_character"
    assert exc_info.value.column == 12


def test_non_ascii_digit_after_a_number():
    with pytest.raises(LexError) as exc_info:
        Lexer("1²").tokenize()
    assert exc_info.value.code == "lexer::malformed_number"


def test_tokens_are_produced_lazily():
    tokens = Lexer("struct @").tokens()
    assert next(tokens).type == TokenType.STRUCT
    with pytest.raises(LexError):
        next(tokens)


def test_empty_source_yields_eof():
    tokens = Lexer("").tokenize()
    assert len(tokens) == 1
    assert tokens[0].type == TokenType.EOF
    assert tokens[0].start == Span(1, 1, 0)
