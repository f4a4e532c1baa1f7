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

"""Node kinds and source positions for the Thrift AST."""

from dataclasses import dataclass
from enum import Enum as PyEnum


class NodeType(PyEnum):
    """Discriminator carried by every AST node as its ``kind``."""

    THRIFT_DOCUMENT = "ThriftDocument"

    IDENTIFIER = "Identifier"
    FIELD_ID = "FieldID"
    IMPLICIT_FIELD_ID = "ImplicitFieldID"

    # Definitions
    NAMESPACE_DEFINITION = "NamespaceDefinition"
    INCLUDE_DEFINITION = "IncludeDefinition"
    CONST_DEFINITION = "ConstDefinition"
    TYPEDEF_DEFINITION = "TypedefDefinition"
    ENUM_DEFINITION = "EnumDefinition"
    STRUCT_DEFINITION = "StructDefinition"
    UNION_DEFINITION = "UnionDefinition"
    EXCEPTION_DEFINITION = "ExceptionDefinition"
    SERVICE_DEFINITION = "ServiceDefinition"

    FIELD_DEFINITION = "FieldDefinition"
    FUNCTION_DEFINITION = "FunctionDefinition"
    ENUM_MEMBER = "EnumMember"
    INT_CONSTANT = "IntConstant"

    # Field types
    LIST_TYPE = "ListType"
    SET_TYPE = "SetType"
    MAP_TYPE = "MapType"
    BOOL_KEYWORD = "BoolKeyword"
    BYTE_KEYWORD = "ByteKeyword"
    I8_KEYWORD = "I8Keyword"
    I16_KEYWORD = "I16Keyword"
    I32_KEYWORD = "I32Keyword"
    I64_KEYWORD = "I64Keyword"
    DOUBLE_KEYWORD = "DoubleKeyword"
    STRING_KEYWORD = "StringKeyword"
    BINARY_KEYWORD = "BinaryKeyword"
    UUID_KEYWORD = "UuidKeyword"
    VOID_KEYWORD = "VoidKeyword"

    # Values
    CONST_LIST = "ConstList"
    CONST_MAP = "ConstMap"
    PROPERTY_ASSIGNMENT = "PropertyAssignment"
    STRING_LITERAL = "StringLiteral"
    INTEGER_LITERAL = "IntegerLiteral"
    HEX_LITERAL = "HexLiteral"
    FLOAT_LITERAL = "FloatLiteral"
    EXPONENTIAL_LITERAL = "ExponentialLiteral"
    BOOLEAN_LITERAL = "BooleanLiteral"

    # Trivia and metadata
    COMMENT_LINE = "CommentLine"
    COMMENT_BLOCK = "CommentBlock"
    ANNOTATION = "Annotation"
    ANNOTATIONS = "Annotations"


# Base type keyword text -> node kind
BASE_TYPES = {
    "bool": NodeType.BOOL_KEYWORD,
    "byte": NodeType.BYTE_KEYWORD,
    "i8": NodeType.I8_KEYWORD,
    "i16": NodeType.I16_KEYWORD,
    "i32": NodeType.I32_KEYWORD,
    "i64": NodeType.I64_KEYWORD,
    "double": NodeType.DOUBLE_KEYWORD,
    "string": NodeType.STRING_KEYWORD,
    "binary": NodeType.BINARY_KEYWORD,
    "uuid": NodeType.UUID_KEYWORD,
}

BASE_TYPE_KINDS = frozenset(BASE_TYPES.values())

NUMBER_LITERAL_KINDS = frozenset(
    {
        NodeType.INTEGER_LITERAL,
        NodeType.HEX_LITERAL,
        NodeType.FLOAT_LITERAL,
        NodeType.EXPONENTIAL_LITERAL,
    }
)

LITERAL_KINDS = NUMBER_LITERAL_KINDS | {
    NodeType.STRING_LITERAL,
    NodeType.BOOLEAN_LITERAL,
    NodeType.IDENTIFIER,
}

FIELD_ID_KINDS = frozenset({NodeType.FIELD_ID, NodeType.IMPLICIT_FIELD_ID})

COMMENT_KINDS = frozenset({NodeType.COMMENT_LINE, NodeType.COMMENT_BLOCK})

REQUIRED_TYPES = ("required", "optional", "default")

# Deepest nesting of container types or const values the parser accepts.
MAX_NESTING_DEPTH = 64


@dataclass(frozen=True)
class Span:
    """A position in the source text."""

    line: int
    column: int
    index: int

    def __repr__(self) -> str:
        return f"{self.line}:{self.column}@{self.index}"


@dataclass(frozen=True)
class Location:
    """Source extent of a node, end exclusive."""

    start: Span
    end: Span

    @classmethod
    def between(cls, start: "Location", end: "Location") -> "Location":
        """Location spanning from the start of one extent to the end of another."""
        return cls(start.start, end.end)

    @classmethod
    def empty_at(cls, span: Span) -> "Location":
        """Zero-width location at a position."""
        return cls(span, span)

    def __repr__(self) -> str:
        return f"Location({self.start!r}-{self.end!r})"


__all__ = [
    "NodeType",
    "BASE_TYPES",
    "BASE_TYPE_KINDS",
    "NUMBER_LITERAL_KINDS",
    "LITERAL_KINDS",
    "FIELD_ID_KINDS",
    "COMMENT_KINDS",
    "REQUIRED_TYPES",
    "MAX_NESTING_DEPTH",
    "Span",
    "Location",
]
