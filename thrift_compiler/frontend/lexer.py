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

"""Hand-written lexer for Thrift IDL."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, List

from thrift_compiler.ast.types import Location, Span
from thrift_compiler.errors import LexError


class TokenType(Enum):
    """Token types for Thrift IDL."""

    # Keywords
    NAMESPACE = auto()
    INCLUDE = auto()
    CONST = auto()
    TYPEDEF = auto()
    ENUM = auto()
    STRUCT = auto()
    UNION = auto()
    EXCEPTION = auto()
    SERVICE = auto()
    EXTENDS = auto()
    THROWS = auto()
    ONEWAY = auto()
    VOID = auto()
    REQUIRED = auto()
    OPTIONAL = auto()
    LIST = auto()
    SET = auto()
    MAP = auto()
    TRUE = auto()
    FALSE = auto()
    BASE_TYPE = auto()  # bool, byte, i8 ... uuid

    # Literals
    IDENT = auto()
    INTEGER = auto()
    HEX = auto()
    FLOAT = auto()
    EXPONENTIAL = auto()
    STRING = auto()  # value holds the unescaped text

    # Punctuation
    LBRACE = auto()  # {
    RBRACE = auto()  # }
    LBRACKET = auto()  # [
    RBRACKET = auto()  # ]
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    LANGLE = auto()  # <
    RANGLE = auto()  # >
    SEMI = auto()  # ;
    COMMA = auto()  # ,
    COLON = auto()  # :
    EQUALS = auto()  # =
    DOT = auto()  # .
    STAR = auto()  # *

    # Trivia
    LINE_COMMENT = auto()
    BLOCK_COMMENT = auto()

    EOF = auto()


COMMENT_TYPES = (TokenType.LINE_COMMENT, TokenType.BLOCK_COMMENT)


@dataclass
class Token:
    """A token produced by the lexer.

    ``text`` is the exact source slice; ``value`` equals it except for
    string literals, where it is the unescaped content.
    """

    type: TokenType
    value: str
    text: str
    start: Span
    end: Span

    @property
    def loc(self) -> Location:
        return Location(self.start, self.end)

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.text!r}, {self.start.line}:{self.start.column})"


ESCAPES = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "/": "/",
}

HEX_DIGITS = "0123456789abcdefABCDEF"


class Lexer:
    """Hand-written tokenizer for Thrift IDL."""

    KEYWORDS = {
        "namespace": TokenType.NAMESPACE,
        "include": TokenType.INCLUDE,
        "const": TokenType.CONST,
        "typedef": TokenType.TYPEDEF,
        "enum": TokenType.ENUM,
        "struct": TokenType.STRUCT,
        "union": TokenType.UNION,
        "exception": TokenType.EXCEPTION,
        "service": TokenType.SERVICE,
        "extends": TokenType.EXTENDS,
        "throws": TokenType.THROWS,
        "oneway": TokenType.ONEWAY,
        "void": TokenType.VOID,
        "required": TokenType.REQUIRED,
        "optional": TokenType.OPTIONAL,
        "list": TokenType.LIST,
        "set": TokenType.SET,
        "map": TokenType.MAP,
        "true": TokenType.TRUE,
        "false": TokenType.FALSE,
        "bool": TokenType.BASE_TYPE,
        "byte": TokenType.BASE_TYPE,
        "i8": TokenType.BASE_TYPE,
        "i16": TokenType.BASE_TYPE,
        "i32": TokenType.BASE_TYPE,
        "i64": TokenType.BASE_TYPE,
        "double": TokenType.BASE_TYPE,
        "string": TokenType.BASE_TYPE,
        "binary": TokenType.BASE_TYPE,
        "uuid": TokenType.BASE_TYPE,
    }

    PUNCTUATION = {
        "{": TokenType.LBRACE,
        "}": TokenType.RBRACE,
        "[": TokenType.LBRACKET,
        "]": TokenType.RBRACKET,
        "(": TokenType.LPAREN,
        ")": TokenType.RPAREN,
        "<": TokenType.LANGLE,
        ">": TokenType.RANGLE,
        ";": TokenType.SEMI,
        ",": TokenType.COMMA,
        ":": TokenType.COLON,
        "=": TokenType.EQUALS,
        ".": TokenType.DOT,
        "*": TokenType.STAR,
    }

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

    def at_end(self) -> bool:
        """Check if we've reached the end of input."""
        return self.pos >= len(self.source)

    def peek(self, offset: int = 0) -> str:
        """Peek at a character without consuming it."""
        pos = self.pos + offset
        if pos >= len(self.source):
            return "\0"
        return self.source[pos]

    def advance(self) -> str:
        """Consume and return the current character."""
        if self.at_end():
            return "\0"
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def span(self) -> Span:
        return Span(self.line, self.column, self.pos)

    def make_token(self, token_type: TokenType, start: Span, value: str = None) -> Token:
        text = self.source[start.index : self.pos]
        return Token(token_type, text if value is None else value, text, start, self.span())

    def skip_whitespace(self):
        """Skip whitespace characters."""
        while not self.at_end() and self.peek() in " \t\r\n\f\v":
            self.advance()

    def read_line_comment(self, start: Span) -> Token:
        """Read a // or # comment up to, not including, the newline."""
        while not self.at_end() and self.peek() not in "\r\n":
            self.advance()
        return self.make_token(TokenType.LINE_COMMENT, start)

    def read_block_comment(self, start: Span) -> Token:
        """Read a /* */ comment."""
        self.advance()  # consume /
        self.advance()  # consume *
        while not self.at_end():
            if self.peek() == "*" and self.peek(1) == "/":
                self.advance()  # consume *
                self.advance()  # consume /
                return self.make_token(TokenType.BLOCK_COMMENT, start)
            self.advance()
        raise LexError(
            "Unterminated block comment",
            "lexer::unterminated_comment",
            start=start,
            end=Span(start.line, start.column + 2, start.index + 2),
        )

    @staticmethod
    def is_digit(ch: str) -> bool:
        # str.isdigit() also accepts digits like "²" that int() rejects.
        return "0" <= ch <= "9" and ch != ""

    @staticmethod
    def is_ident_start(ch: str) -> bool:
        return ch.isalpha() or ch == "_"

    @staticmethod
    def is_ident_part(ch: str) -> bool:
        return ch.isalnum() or ch == "_"

    def read_identifier(self, start: Span) -> Token:
        """Read an identifier, keyword, or dotted name like ``shared.Type``."""
        while self.is_ident_part(self.peek()):
            self.advance()
        dotted = False
        while self.peek() == "." and self.is_ident_start(self.peek(1)):
            dotted = True
            self.advance()  # consume .
            while self.is_ident_part(self.peek()):
                self.advance()
        text = self.source[start.index : self.pos]
        token_type = TokenType.IDENT if dotted else self.KEYWORDS.get(text, TokenType.IDENT)
        return self.make_token(token_type, start)

    def malformed_number(self, start: Span) -> LexError:
        # Extend the error span over the rest of the word.
        while self.is_ident_part(self.peek()) or self.peek() == ".":
            self.advance()
        return LexError(
            f"Malformed numeric literal: {self.source[start.index : self.pos]}",
            "lexer::malformed_number",
            start=start,
            end=self.span(),
        )

    def read_digits(self) -> int:
        count = 0
        while self.is_digit(self.peek()):
            self.advance()
            count += 1
        return count

    def read_number(self, start: Span) -> Token:
        """Read an integer, hex, float or exponential literal."""
        if self.peek() in "+-":
            self.advance()

        if self.peek() == "0" and self.peek(1) in "xX":
            self.advance()
            self.advance()
            count = 0
            while self.peek() in HEX_DIGITS and not self.at_end():
                self.advance()
                count += 1
            if count == 0 or self.is_ident_part(self.peek()) or self.peek() == ".":
                raise self.malformed_number(start)
            return self.make_token(TokenType.HEX, start)

        token_type = TokenType.INTEGER
        digits = self.read_digits()
        if self.peek() == ".":
            self.advance()
            if self.read_digits() == 0:
                raise self.malformed_number(start)
            token_type = TokenType.FLOAT
        elif digits == 0:
            raise self.malformed_number(start)

        if self.peek() in "eE":
            self.advance()
            if self.peek() in "+-":
                self.advance()
            if self.read_digits() == 0:
                raise self.malformed_number(start)
            token_type = TokenType.EXPONENTIAL

        if self.is_ident_part(self.peek()) or self.peek() == ".":
            raise self.malformed_number(start)
        return self.make_token(token_type, start)

    def read_escape(self) -> str:
        """Read the character(s) after a backslash and return the decoded text."""
        escape_start = Span(self.line, self.column - 1, self.pos - 1)
        ch = self.peek()
        if ch in ESCAPES:
            self.advance()
            return ESCAPES[ch]
        if ch == "u":
            self.advance()
            digits = ""
            while len(digits) < 4 and self.peek() in HEX_DIGITS and not self.at_end():
                digits += self.advance()
            if len(digits) == 4:
                return chr(int(digits, 16))
        elif ch not in "\r\n" and not self.at_end():
            self.advance()
        raise LexError(
            f"Invalid escape sequence: {self.source[escape_start.index : self.pos]}",
            "lexer::invalid_escape",
            start=escape_start,
            end=self.span(),
        )

    def read_string(self, start: Span) -> Token:
        """Read a quoted string literal."""
        quote_char = self.advance()  # consume opening quote
        result = []

        while not self.at_end():
            ch = self.peek()
            if ch == quote_char:
                self.advance()  # consume closing quote
                return self.make_token(TokenType.STRING, start, "".join(result))
            elif ch == "\\":
                self.advance()  # consume backslash
                result.append(self.read_escape())
            elif ch in "\r\n":
                break
            else:
                result.append(self.advance())

        raise LexError(
            "Unterminated string literal",
            "lexer::unterminated_string",
            start=start,
            end=self.span(),
        )

    def next_token(self) -> Token:
        """Read the next token, comments included."""
        self.skip_whitespace()
        start = self.span()

        if self.at_end():
            return Token(TokenType.EOF, "", "", start, start)

        ch = self.peek()

        if ch == "/" and self.peek(1) == "/":
            return self.read_line_comment(start)
        if ch == "#":
            return self.read_line_comment(start)
        if ch == "/" and self.peek(1) == "*":
            return self.read_block_comment(start)

        if ch == '"' or ch == "'":
            return self.read_string(start)

        if self.is_ident_start(ch):
            return self.read_identifier(start)

        if self.is_digit(ch):
            return self.read_number(start)
        if ch in "+-" and (self.is_digit(self.peek(1)) or self.peek(1) == "."):
            return self.read_number(start)
        if ch == "." and self.is_digit(self.peek(1)):
            return self.read_number(start)

        if ch in self.PUNCTUATION:
            self.advance()
            return self.make_token(self.PUNCTUATION[ch], start)

        self.advance()
        raise LexError(
            f"Unexpected character: {ch!r}",
            "lexer::unrecognized_character",
            start=start,
            end=self.span(),
        )

    def tokens(self) -> Iterator[Token]:
        """Lazily yield tokens, ending with a single EOF token."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                return

    def tokenize(self) -> List[Token]:
        """Tokenize the entire input and return a list of tokens."""
        return list(self.tokens())


# Keywords that may still be used as names of fields, functions and
# annotations, where the grammar position is unambiguous.
SOFT_KEYWORDS = frozenset(
    {
        "namespace",
        "include",
        "list",
        "map",
        "set",
        "oneway",
        "required",
        "optional",
        "throws",
        "extends",
        "bool",
    }
)
