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

"""Recursive descent parser for Thrift IDL."""

import logging
from contextlib import contextmanager
from typing import Callable, Iterable, List, Optional, Set, Tuple

from thrift_compiler.ast.nodes import (
    Annotation,
    Annotations,
    CollectionType,
    Comment,
    Common,
    Const,
    ConstList,
    ConstMap,
    Document,
    Enum,
    EnumMember,
    Field,
    FieldType,
    FieldValue,
    Function,
    Include,
    Initializer,
    MapType,
    Namespace,
    PropertyAssignment,
    Service,
    Struct,
    ThriftException,
    Typedef,
    Union,
)
from thrift_compiler.ast.types import (
    BASE_TYPES,
    MAX_NESTING_DEPTH,
    Location,
    NodeType,
    Span,
)
from thrift_compiler.errors import ParseError
from thrift_compiler.frontend.lexer import (
    COMMENT_TYPES,
    SOFT_KEYWORDS,
    Lexer,
    Token,
    TokenType,
)

logger = logging.getLogger(__name__)

LITERAL_TOKENS = {
    TokenType.STRING: NodeType.STRING_LITERAL,
    TokenType.INTEGER: NodeType.INTEGER_LITERAL,
    TokenType.HEX: NodeType.HEX_LITERAL,
    TokenType.FLOAT: NodeType.FLOAT_LITERAL,
    TokenType.EXPONENTIAL: NodeType.EXPONENTIAL_LITERAL,
    TokenType.TRUE: NodeType.BOOLEAN_LITERAL,
    TokenType.FALSE: NodeType.BOOLEAN_LITERAL,
    TokenType.IDENT: NodeType.IDENTIFIER,
}

NUMBER_TOKENS = (
    TokenType.INTEGER,
    TokenType.HEX,
    TokenType.FLOAT,
    TokenType.EXPONENTIAL,
)

TYPE_START_TOKENS = (
    TokenType.BASE_TYPE,
    TokenType.IDENT,
    TokenType.LIST,
    TokenType.SET,
    TokenType.MAP,
)

SEPARATORS = (TokenType.COMMA, TokenType.SEMI)


class Parser:
    """Recursive descent parser for Thrift IDL.

    Tokens are pulled lazily from the lexer, so a lexical error past a
    grammar error is never reported. Comment tokens are collected as they
    are passed over and handed to the next node that can own comments.
    """

    def __init__(self, tokens: Iterable[Token], filename: str = "<input>"):
        self.tokens = iter(tokens)
        self.filename = filename
        self.buffer: List[Token] = []
        self.leading: List[List[Token]] = []
        self.pos = 0
        self.claimed = 0
        self.depth = 0
        self.pending_comments: List[Comment] = []

    @classmethod
    def from_source(cls, source: str, filename: str = "<input>") -> "Parser":
        """Create a parser from source code."""
        return cls(Lexer(source).tokens(), filename)

    def fill(self, pos: int):
        """Pull tokens until ``pos`` is buffered or EOF is reached."""
        while len(self.buffer) <= pos:
            if self.buffer and self.buffer[-1].type == TokenType.EOF:
                return
            comments = []
            token = next(self.tokens)
            while token.type in COMMENT_TYPES:
                comments.append(token)
                token = next(self.tokens)
            self.buffer.append(token)
            self.leading.append(comments)

    def current(self) -> Token:
        """Get the current token, claiming the comments that precede it."""
        self.fill(self.pos)
        pos = min(self.pos, len(self.buffer) - 1)
        while self.claimed <= pos:
            for token in self.leading[self.claimed]:
                kind = (
                    NodeType.COMMENT_LINE
                    if token.type == TokenType.LINE_COMMENT
                    else NodeType.COMMENT_BLOCK
                )
                self.pending_comments.append(Comment(kind, token.text, token.loc))
            self.claimed += 1
        return self.buffer[pos]

    def peek(self, offset: int = 0) -> Token:
        """Peek at a token without consuming it or its comments."""
        pos = self.pos + offset
        self.fill(pos)
        return self.buffer[min(pos, len(self.buffer) - 1)]

    def previous(self) -> Token:
        """Get the previous token."""
        return self.buffer[self.pos - 1]

    def at_end(self) -> bool:
        """Check if we've reached the end of tokens."""
        return self.current().type == TokenType.EOF

    def check(self, *types: TokenType) -> bool:
        """Check if the current token has one of the given types."""
        return self.current().type in types

    def match(self, *types: TokenType) -> bool:
        """If current token matches any of the types, consume and return True."""
        if self.check(*types):
            self.advance()
            return True
        return False

    def advance(self) -> Token:
        """Consume and return the current token."""
        token = self.current()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def consume(
        self,
        token_type: TokenType,
        message: str = None,
        code: str = "parser::unexpected_token",
    ) -> Token:
        """Consume a token of the expected type, or raise an error."""
        if self.check(token_type):
            return self.advance()
        if message is None:
            message = f"Expected {token_type.name}, got {self.current().type.name}"
        raise self.error(message, code)

    def error(self, message: str, code: str = "parser::unexpected_token") -> ParseError:
        """Create a parse error spanning the current token."""
        token = self.current()
        if token.type == TokenType.EOF:
            return ParseError(
                f"Unexpected end of input: {message}",
                "parser::unexpected_eof",
                start=token.start,
                end=token.end,
            )
        return ParseError(message, code, start=token.start, end=token.end)

    def take_comments(self) -> Tuple[Comment, ...]:
        """Hand all comments seen so far to the node being started."""
        self.current()
        comments = tuple(self.pending_comments)
        self.pending_comments.clear()
        return comments

    def location(self, start: Span) -> Location:
        """Location from ``start`` to the end of the last consumed token."""
        return Location(start, self.previous().end)

    def skip_separator(self):
        self.match(*SEPARATORS)

    @contextmanager
    def nested(self, what: str):
        """Track container nesting; too deep is a ParseError, not a RecursionError."""
        if self.depth >= MAX_NESTING_DEPTH:
            raise self.error(
                f"{what} nested more than {MAX_NESTING_DEPTH} levels deep",
                "parser::nesting_too_deep",
            )
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    def describe(self, token: Token) -> str:
        if token.type == TokenType.EOF:
            return "end of input"
        return repr(token.text)

    def parse(self) -> Document:
        """Parse the entire input and return a Document."""
        start = Span(1, 1, 0)
        members = []
        while not self.at_end():
            members.append(self.parse_definition())
            self.skip_separator()
        eof = self.current()
        logger.debug("Parsed %d definitions from %s", len(members), self.filename)
        return Document(
            members=tuple(members),
            loc=Location(start, eof.end),
            comments=self.take_comments(),
        )

    def parse_definition(self):
        """Dispatch on the keyword that starts a top-level definition."""
        parsers = {
            TokenType.NAMESPACE: self.parse_namespace,
            TokenType.INCLUDE: self.parse_include,
            TokenType.CONST: self.parse_const,
            TokenType.TYPEDEF: self.parse_typedef,
            TokenType.ENUM: self.parse_enum,
            TokenType.STRUCT: self.parse_struct,
            TokenType.UNION: self.parse_union,
            TokenType.EXCEPTION: self.parse_exception,
            TokenType.SERVICE: self.parse_service,
        }
        parser = parsers.get(self.current().type)
        if parser is None:
            raise self.error(
                f"Unexpected token {self.describe(self.current())}, "
                "expected a definition"
            )
        return parser()

    def leaf(self, kind: NodeType, token: Token, value: str = None) -> Common:
        return Common(kind, token.value if value is None else value, token.loc)

    def parse_identifier(self, message: str) -> Common:
        """Parse a plain or dotted identifier."""
        token = self.consume(TokenType.IDENT, message)
        return self.leaf(NodeType.IDENTIFIER, token)

    def parse_name(self, what: str, code: str = "parser::unexpected_token") -> Common:
        """Parse a declared name; soft keywords are accepted."""
        token = self.current()
        if token.type == TokenType.IDENT or token.text in SOFT_KEYWORDS:
            self.advance()
            return self.leaf(NodeType.IDENTIFIER, token, token.text)
        raise self.error(f"Expected {what}, got {self.describe(token)}", code)

    def parse_namespace(self) -> Namespace:
        """Parse ``namespace <scope> <name>``."""
        comments = self.take_comments()
        start = self.consume(TokenType.NAMESPACE).start
        if self.check(TokenType.STAR):
            star = self.advance()
            scope = self.leaf(NodeType.IDENTIFIER, star)
        else:
            scope = self.parse_name("namespace scope")
        name = self.parse_name("namespace name")
        annotations = self.parse_annotations()
        return Namespace(
            scope=scope,
            name=name,
            loc=self.location(start),
            comments=comments,
            annotations=annotations,
        )

    def parse_include(self) -> Include:
        """Parse ``include "path.thrift"``."""
        comments = self.take_comments()
        start = self.consume(TokenType.INCLUDE).start
        path = self.consume(TokenType.STRING, "Expected include path string")
        annotations = self.parse_annotations()
        return Include(
            name=self.leaf(NodeType.STRING_LITERAL, path),
            loc=self.location(start),
            comments=comments,
            annotations=annotations,
        )

    def parse_const(self) -> Const:
        """Parse ``const <type> <name> = <value>``."""
        comments = self.take_comments()
        start = self.consume(TokenType.CONST).start
        field_type = self.parse_field_type()
        name = self.parse_name("constant name")
        self.consume(TokenType.EQUALS, "Expected '=' after constant name")
        value = self.parse_value()
        annotations = self.parse_annotations()
        return Const(
            name=name,
            field_type=field_type,
            value=value,
            loc=self.location(start),
            comments=comments,
            annotations=annotations,
        )

    def parse_typedef(self) -> Typedef:
        """Parse ``typedef <type> <name>``."""
        comments = self.take_comments()
        start = self.consume(TokenType.TYPEDEF).start
        field_type = self.parse_field_type()
        name = self.parse_name("typedef name")
        annotations = self.parse_annotations()
        return Typedef(
            name=name,
            field_type=field_type,
            loc=self.location(start),
            comments=comments,
            annotations=annotations,
        )

    def parse_enum(self) -> Enum:
        """Parse ``enum Name { A, B = 2, ... }``."""
        comments = self.take_comments()
        start = self.consume(TokenType.ENUM).start
        name = self.parse_name("enum name")
        self.consume(TokenType.LBRACE, "Expected '{' after enum name")
        members = []
        while not self.check(TokenType.RBRACE):
            members.append(self.parse_enum_member())
            self.skip_separator()
        self.consume(TokenType.RBRACE, "Expected '}' after enum members")
        annotations = self.parse_annotations()
        return Enum(
            name=name,
            members=tuple(members),
            loc=self.location(start),
            comments=comments,
            annotations=annotations,
        )

    def parse_enum_member(self) -> EnumMember:
        comments = self.take_comments()
        start = self.current().start
        name = self.parse_name("enum member name")
        initializer = None
        if self.match(TokenType.EQUALS):
            token = self.current()
            if token.type not in (TokenType.INTEGER, TokenType.HEX):
                raise self.error(
                    f"Enum values must be integers, got {self.describe(token)}",
                    "parser::invalid_value",
                )
            self.advance()
            kind = LITERAL_TOKENS[token.type]
            initializer = Initializer(value=self.leaf(kind, token), loc=token.loc)
        annotations = self.parse_annotations()
        return EnumMember(
            name=name,
            loc=self.location(start),
            initializer=initializer,
            comments=comments,
            annotations=annotations,
        )

    def parse_struct_like(self, keyword: TokenType, node_class: Callable):
        comments = self.take_comments()
        start = self.consume(keyword).start
        name = self.parse_name(f"{keyword.name.lower()} name")
        self.consume(TokenType.LBRACE, f"Expected '{{' after {keyword.name.lower()} name")
        members = self.parse_fields(TokenType.RBRACE)
        self.consume(TokenType.RBRACE, "Expected '}' after fields")
        annotations = self.parse_annotations()
        return node_class(
            name=name,
            members=members,
            loc=self.location(start),
            comments=comments,
            annotations=annotations,
        )

    def parse_struct(self) -> Struct:
        return self.parse_struct_like(TokenType.STRUCT, Struct)

    def parse_union(self) -> Union:
        return self.parse_struct_like(TokenType.UNION, Union)

    def parse_exception(self) -> ThriftException:
        return self.parse_struct_like(TokenType.EXCEPTION, ThriftException)

    def parse_fields(self, closing: TokenType) -> Tuple[Field, ...]:
        """Parse fields up to ``closing``, numbering those without an ID.

        Implicit IDs count down from -1 within one field list.
        """
        fields = []
        seen: Set[int] = set()
        next_implicit = -1
        while not self.check(closing):
            field = self.parse_field(next_implicit)
            if field.implicit_id:
                next_implicit -= 1
            if field.id in seen:
                raise ParseError(
                    f"Duplicate field ID {field.id} for field '{field.name.value}'",
                    "parser::duplicate_field_id",
                    start=field.field_id.loc.start,
                    end=field.field_id.loc.end,
                )
            seen.add(field.id)
            fields.append(field)
            self.skip_separator()
        return tuple(fields)

    def parse_field(self, implicit_id: int) -> Field:
        """Parse ``[N:] [required|optional] <type> <name> [= value] [(annotations)]``."""
        comments = self.take_comments()
        start = self.current().start

        if self.check(*NUMBER_TOKENS) and self.peek(1).type == TokenType.COLON:
            token = self.current()
            if token.type != TokenType.INTEGER:
                raise self.error(
                    f"Invalid field ID {token.text}", "parser::invalid_field_id"
                )
            self.advance()
            self.advance()  # consume :
            field_id = self.leaf(NodeType.FIELD_ID, token)
        elif self.check(*NUMBER_TOKENS):
            self.advance()
            raise self.error("Expected ':' after field ID", "parser::invalid_field_id")
        else:
            field_id = Common(
                NodeType.IMPLICIT_FIELD_ID, str(implicit_id), Location.empty_at(start)
            )

        required_type = "default"
        if self.check(TokenType.REQUIRED, TokenType.OPTIONAL):
            required_type = self.advance().text

        field_type = self.parse_field_type()
        name = self.parse_name("field name", "parser::invalid_field_name")

        default_value = None
        if self.match(TokenType.EQUALS):
            default_value = self.parse_value()

        annotations = self.parse_annotations()
        return Field(
            name=name,
            field_id=field_id,
            field_type=field_type,
            required_type=required_type,
            loc=self.location(start),
            default_value=default_value,
            comments=comments,
            annotations=annotations,
        )

    def parse_field_type(self) -> FieldType:
        """Parse a base type, a type name, or a container type."""
        token = self.current()
        if token.type == TokenType.BASE_TYPE:
            self.advance()
            return self.leaf(BASE_TYPES[token.text], token)
        if token.type == TokenType.IDENT:
            self.advance()
            return self.leaf(NodeType.IDENTIFIER, token)
        if token.type in (TokenType.LIST, TokenType.SET):
            self.advance()
            self.consume(TokenType.LANGLE, f"Expected '<' after {token.text}")
            with self.nested("Container type"):
                value_type = self.parse_field_type()
            self.consume(TokenType.RANGLE, f"Expected '>' to close {token.text}")
            kind = NodeType.LIST_TYPE if token.type == TokenType.LIST else NodeType.SET_TYPE
            return CollectionType(
                kind=kind,
                value=token.text,
                value_type=value_type,
                loc=self.location(token.start),
            )
        if token.type == TokenType.MAP:
            self.advance()
            self.consume(TokenType.LANGLE, "Expected '<' after map")
            with self.nested("Container type"):
                key_type = self.parse_field_type()
                self.consume(TokenType.COMMA, "Expected ',' between map key and value types")
                value_type = self.parse_field_type()
            self.consume(TokenType.RANGLE, "Expected '>' to close map")
            return MapType(
                value="map",
                key_type=key_type,
                value_type=value_type,
                loc=self.location(token.start),
            )
        raise self.error(
            f"Expected a field type, got {self.describe(token)}",
            "parser::unsupported_type",
        )

    def parse_value(self) -> FieldValue:
        """Parse a constant value: literal, identifier, list or map."""
        token = self.current()
        if token.type in LITERAL_TOKENS:
            self.advance()
            return self.leaf(LITERAL_TOKENS[token.type], token)
        if token.type == TokenType.LBRACKET:
            self.advance()
            elements = []
            while not self.check(TokenType.RBRACKET):
                if self.at_end():
                    raise self.error("Expected ']' to close list")
                with self.nested("Const value"):
                    elements.append(self.parse_value())
                self.skip_separator()
            self.advance()
            return ConstList(elements=tuple(elements), loc=self.location(token.start))
        if token.type == TokenType.LBRACE:
            self.advance()
            properties = []
            while not self.check(TokenType.RBRACE):
                if self.at_end():
                    raise self.error("Expected '}' to close map")
                with self.nested("Const value"):
                    key = self.parse_value()
                    self.consume(TokenType.COLON, "Expected ':' after map key")
                    value = self.parse_value()
                properties.append(
                    PropertyAssignment(
                        name=key,
                        value=value,
                        loc=Location.between(key.loc, value.loc),
                    )
                )
                self.skip_separator()
            self.advance()
            return ConstMap(properties=tuple(properties), loc=self.location(token.start))
        raise self.error(
            f"Expected a value, got {self.describe(token)}", "parser::invalid_value"
        )

    def parse_annotations(self) -> Optional[Annotations]:
        """Parse an optional ``(name = "value", ...)`` block."""
        if not self.check(TokenType.LPAREN):
            return None
        start = self.advance().start
        members = []
        while not self.check(TokenType.RPAREN):
            member_start = self.current().start
            name = self.parse_name("annotation name")
            value = None
            if self.match(TokenType.EQUALS):
                token = self.consume(TokenType.STRING, "Annotation values must be strings")
                value = self.leaf(NodeType.STRING_LITERAL, token)
            members.append(Annotation(name=name, loc=self.location(member_start), value=value))
            self.skip_separator()
        self.advance()
        return Annotations(members=tuple(members), loc=self.location(start))

    def parse_service(self) -> Service:
        """Parse ``service Name [extends Base] { functions }``."""
        comments = self.take_comments()
        start = self.consume(TokenType.SERVICE).start
        name = self.parse_name("service name")
        extends = None
        if self.match(TokenType.EXTENDS):
            extends = self.parse_identifier("Expected service name after 'extends'")
        self.consume(TokenType.LBRACE, "Expected '{' after service name")
        members = []
        while not self.check(TokenType.RBRACE):
            members.append(self.parse_function())
            self.skip_separator()
        self.consume(TokenType.RBRACE, "Expected '}' after service functions")
        annotations = self.parse_annotations()
        return Service(
            name=name,
            members=tuple(members),
            loc=self.location(start),
            extends=extends,
            comments=comments,
            annotations=annotations,
        )

    def parse_function(self) -> Function:
        """Parse ``[oneway] <return type> name(params) [throws (fields)]``."""
        comments = self.take_comments()
        start = self.current().start
        oneway = self.match(TokenType.ONEWAY)

        token = self.current()
        if token.type == TokenType.VOID:
            self.advance()
            return_type = self.leaf(NodeType.VOID_KEYWORD, token)
        elif token.type in TYPE_START_TOKENS:
            return_type = self.parse_field_type()
        else:
            raise self.error(
                f"Expected a return type, got {self.describe(token)}",
                "parser::invalid_return_type",
            )

        name = self.parse_name("function name")
        self.consume(TokenType.LPAREN, "Expected '(' after function name")
        params = self.parse_fields(TokenType.RPAREN)
        self.consume(TokenType.RPAREN, "Expected ')' after parameters")

        throws = None
        if self.match(TokenType.THROWS):
            self.consume(TokenType.LPAREN, "Expected '(' after 'throws'")
            throws = self.parse_fields(TokenType.RPAREN)
            self.consume(TokenType.RPAREN, "Expected ')' after throws list")

        annotations = self.parse_annotations()
        return Function(
            name=name,
            return_type=return_type,
            params=params,
            loc=self.location(start),
            throws=throws,
            oneway=oneway,
            comments=comments,
            annotations=annotations,
        )
