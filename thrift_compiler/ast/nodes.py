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

"""AST node definitions for Thrift IDL.

Nodes are frozen dataclasses and sequences are tuples, so a parsed document
is an immutable ownership tree. Every node carries its ``kind`` and ``loc``;
declarations also own the comments that preceded them and an optional
trailing annotation block.
"""

from dataclasses import dataclass, fields
from typing import ClassVar, Iterator, List, Optional, Tuple, Union as TypingUnion

from thrift_compiler.ast.types import NodeType, Location


@dataclass(frozen=True)
class Common:
    """A leaf node: identifier, field ID, literal, or scalar/named type."""

    kind: NodeType
    value: str
    loc: Location

    def __repr__(self) -> str:
        return f"Common({self.kind.value}, {self.value!r})"


@dataclass(frozen=True)
class Comment:
    """A line or block comment, kept verbatim including its marker."""

    kind: NodeType
    value: str
    loc: Location


@dataclass(frozen=True)
class Annotation:
    """A single ``name = "value"`` pair; the value may be omitted."""

    kind: ClassVar[NodeType] = NodeType.ANNOTATION

    name: Common
    loc: Location
    value: Optional[Common] = None


@dataclass(frozen=True)
class Annotations:
    """A parenthesized annotation block trailing a declaration."""

    kind: ClassVar[NodeType] = NodeType.ANNOTATIONS

    members: Tuple[Annotation, ...]
    loc: Location


@dataclass(frozen=True)
class CollectionType:
    """``list<T>`` or ``set<T>``."""

    kind: NodeType
    value: str
    value_type: "FieldType"
    loc: Location

    def __repr__(self) -> str:
        return f"CollectionType({self.value}<{self.value_type!r}>)"


@dataclass(frozen=True)
class MapType:
    """``map<K, V>``."""

    kind: ClassVar[NodeType] = NodeType.MAP_TYPE

    value: str
    key_type: "FieldType"
    value_type: "FieldType"
    loc: Location

    def __repr__(self) -> str:
        return f"MapType({self.key_type!r}, {self.value_type!r})"


FieldType = TypingUnion[Common, CollectionType, MapType]


@dataclass(frozen=True)
class ConstList:
    """``[a, b, c]``."""

    kind: ClassVar[NodeType] = NodeType.CONST_LIST

    elements: Tuple["FieldValue", ...]
    loc: Location


@dataclass(frozen=True)
class PropertyAssignment:
    """One ``key: value`` entry of a const map."""

    kind: ClassVar[NodeType] = NodeType.PROPERTY_ASSIGNMENT

    name: "FieldValue"
    value: "FieldValue"
    loc: Location


@dataclass(frozen=True)
class ConstMap:
    """``{k1: v1, k2: v2}``."""

    kind: ClassVar[NodeType] = NodeType.CONST_MAP

    properties: Tuple[PropertyAssignment, ...]
    loc: Location


FieldValue = TypingUnion[Common, ConstList, ConstMap]


@dataclass(frozen=True)
class Namespace:
    kind: ClassVar[NodeType] = NodeType.NAMESPACE_DEFINITION

    scope: Common
    name: Common
    loc: Location
    comments: Tuple[Comment, ...] = ()
    annotations: Optional[Annotations] = None


@dataclass(frozen=True)
class Include:
    kind: ClassVar[NodeType] = NodeType.INCLUDE_DEFINITION

    name: Common
    loc: Location
    comments: Tuple[Comment, ...] = ()
    annotations: Optional[Annotations] = None


@dataclass(frozen=True)
class Const:
    kind: ClassVar[NodeType] = NodeType.CONST_DEFINITION

    name: Common
    field_type: FieldType
    value: FieldValue
    loc: Location
    comments: Tuple[Comment, ...] = ()
    annotations: Optional[Annotations] = None


@dataclass(frozen=True)
class Typedef:
    kind: ClassVar[NodeType] = NodeType.TYPEDEF_DEFINITION

    name: Common
    field_type: FieldType
    loc: Location
    comments: Tuple[Comment, ...] = ()
    annotations: Optional[Annotations] = None


@dataclass(frozen=True)
class Initializer:
    """Explicit enum member value."""

    kind: ClassVar[NodeType] = NodeType.INT_CONSTANT

    value: Common
    loc: Location


@dataclass(frozen=True)
class EnumMember:
    kind: ClassVar[NodeType] = NodeType.ENUM_MEMBER

    name: Common
    loc: Location
    initializer: Optional[Initializer] = None
    comments: Tuple[Comment, ...] = ()
    annotations: Optional[Annotations] = None


@dataclass(frozen=True)
class Enum:
    kind: ClassVar[NodeType] = NodeType.ENUM_DEFINITION

    name: Common
    members: Tuple[EnumMember, ...]
    loc: Location
    comments: Tuple[Comment, ...] = ()
    annotations: Optional[Annotations] = None


@dataclass(frozen=True)
class Field:
    """A struct/union/exception member, function parameter, or throws entry.

    ``required_type`` is one of ``required``, ``optional`` or ``default``.
    Fields declared without an ``N:`` prefix carry an ``ImplicitFieldID``.
    """

    kind: ClassVar[NodeType] = NodeType.FIELD_DEFINITION

    name: Common
    field_id: Common
    field_type: FieldType
    required_type: str
    loc: Location
    default_value: Optional[FieldValue] = None
    comments: Tuple[Comment, ...] = ()
    annotations: Optional[Annotations] = None

    @property
    def id(self) -> int:
        return parse_int(self.field_id.value)

    @property
    def implicit_id(self) -> bool:
        return self.field_id.kind == NodeType.IMPLICIT_FIELD_ID


@dataclass(frozen=True)
class Struct:
    kind: ClassVar[NodeType] = NodeType.STRUCT_DEFINITION

    name: Common
    members: Tuple[Field, ...]
    loc: Location
    comments: Tuple[Comment, ...] = ()
    annotations: Optional[Annotations] = None


@dataclass(frozen=True)
class Union:
    kind: ClassVar[NodeType] = NodeType.UNION_DEFINITION

    name: Common
    members: Tuple[Field, ...]
    loc: Location
    comments: Tuple[Comment, ...] = ()
    annotations: Optional[Annotations] = None


@dataclass(frozen=True)
class ThriftException:
    kind: ClassVar[NodeType] = NodeType.EXCEPTION_DEFINITION

    name: Common
    members: Tuple[Field, ...]
    loc: Location
    comments: Tuple[Comment, ...] = ()
    annotations: Optional[Annotations] = None


@dataclass(frozen=True)
class Function:
    kind: ClassVar[NodeType] = NodeType.FUNCTION_DEFINITION

    name: Common
    return_type: FieldType
    params: Tuple[Field, ...]
    loc: Location
    throws: Optional[Tuple[Field, ...]] = None
    oneway: bool = False
    comments: Tuple[Comment, ...] = ()
    annotations: Optional[Annotations] = None


@dataclass(frozen=True)
class Service:
    """A service; ``extends`` is a by-name reference and is never resolved."""

    kind: ClassVar[NodeType] = NodeType.SERVICE_DEFINITION

    name: Common
    members: Tuple[Function, ...]
    loc: Location
    extends: Optional[Common] = None
    comments: Tuple[Comment, ...] = ()
    annotations: Optional[Annotations] = None


DocumentMember = TypingUnion[
    Namespace,
    Include,
    Const,
    Typedef,
    Enum,
    Struct,
    Union,
    ThriftException,
    Service,
]


@dataclass(frozen=True)
class Document:
    """Root node. ``comments`` holds trailing comments no declaration follows."""

    kind: ClassVar[NodeType] = NodeType.THRIFT_DOCUMENT

    members: Tuple[DocumentMember, ...]
    loc: Location
    comments: Tuple[Comment, ...] = ()

    def __repr__(self) -> str:
        return f"Document({len(self.members)} members)"


def parse_int(text: str) -> int:
    """Convert integer or hex literal text to an int."""
    body = text.lstrip("+-")
    if body[:2] in ("0x", "0X"):
        return int(text, 16)
    return int(text, 10)


def enum_values(enum: Enum) -> List[Tuple[str, int]]:
    """Resolve enum member values.

    A member without an initializer takes the previous member's value plus
    one; the first member defaults to 0.
    """
    result = []
    next_value = 0
    for member in enum.members:
        if member.initializer is not None:
            next_value = parse_int(member.initializer.value.value)
        result.append((member.name.value, next_value))
        next_value += 1
    return result


def iter_nodes(node) -> Iterator[object]:
    """Yield a node and all of its descendants depth-first, in field order."""
    yield node
    for f in fields(node):
        child = getattr(node, f.name)
        if isinstance(child, tuple):
            for item in child:
                yield from iter_nodes(item)
        elif hasattr(child, "loc"):
            yield from iter_nodes(child)


__all__ = [
    "Common",
    "Comment",
    "Annotation",
    "Annotations",
    "CollectionType",
    "MapType",
    "FieldType",
    "ConstList",
    "PropertyAssignment",
    "ConstMap",
    "FieldValue",
    "Namespace",
    "Include",
    "Const",
    "Typedef",
    "Initializer",
    "EnumMember",
    "Enum",
    "Field",
    "Struct",
    "Union",
    "ThriftException",
    "Function",
    "Service",
    "DocumentMember",
    "Document",
    "parse_int",
    "enum_values",
    "iter_nodes",
]
