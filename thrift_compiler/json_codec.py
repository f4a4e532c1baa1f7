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

"""Lossless JSON transcoding of the document AST.

Every node becomes an object with its ``kind`` discriminator, its fields in
camelCase, and its ``loc``. Optional fields are written as ``null`` so a
document round-trips field for field. Decoding is strict: unknown kinds,
unknown keys, missing scalar keys and wrong JSON types are rejected with
DeserializationError. Child nodes that are absent or ``null`` decode to
None; the writer rejects such incomplete shapes.
"""

import json
import logging
from typing import Any, Dict, FrozenSet, Optional, Union as TypingUnion

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
    BASE_TYPE_KINDS,
    COMMENT_KINDS,
    FIELD_ID_KINDS,
    LITERAL_KINDS,
    MAX_NESTING_DEPTH,
    Location,
    NodeType,
    Span,
)
from thrift_compiler.errors import DeserializationError

logger = logging.getLogger(__name__)

# Field shapes
NODE = "node"  # a child node, or null
NODES = "nodes"  # a list of child nodes
NODES_OR_NULL = "nodes?"  # a list of child nodes, or null
TEXT = "text"
FLAG = "flag"

DEFINITION_KINDS = frozenset(
    {
        NodeType.NAMESPACE_DEFINITION,
        NodeType.INCLUDE_DEFINITION,
        NodeType.CONST_DEFINITION,
        NodeType.TYPEDEF_DEFINITION,
        NodeType.ENUM_DEFINITION,
        NodeType.STRUCT_DEFINITION,
        NodeType.UNION_DEFINITION,
        NodeType.EXCEPTION_DEFINITION,
        NodeType.SERVICE_DEFINITION,
    }
)
FIELD_TYPE_KINDS = BASE_TYPE_KINDS | {
    NodeType.IDENTIFIER,
    NodeType.LIST_TYPE,
    NodeType.SET_TYPE,
    NodeType.MAP_TYPE,
}
RETURN_TYPE_KINDS = FIELD_TYPE_KINDS | {NodeType.VOID_KEYWORD}
VALUE_KINDS = LITERAL_KINDS | {NodeType.CONST_LIST, NodeType.CONST_MAP}
IDENTIFIER = frozenset({NodeType.IDENTIFIER})
STRING = frozenset({NodeType.STRING_LITERAL})
INT_LITERAL = frozenset({NodeType.INTEGER_LITERAL, NodeType.HEX_LITERAL})

# Each const map level is two objects deep (the map, then its entry), and a
# document needs a few levels above its deepest type or value.
MAX_NODE_DEPTH = 2 * (MAX_NESTING_DEPTH + 1) + 8


def _only(kind: NodeType) -> FrozenSet[NodeType]:
    return frozenset({kind})


COMMENTS = ("comments", "comments", NODES, COMMENT_KINDS)
ANNOTATIONS = ("annotations", "annotations", NODE, _only(NodeType.ANNOTATIONS))
FIELDS = ("members", "members", NODES, _only(NodeType.FIELD_DEFINITION))

# Per class: (json key, attribute, shape, allowed child kinds)
SCHEMA = {
    Common: (("value", "value", TEXT, None),),
    Comment: (("value", "value", TEXT, None),),
    Annotation: (
        ("name", "name", NODE, IDENTIFIER),
        ("value", "value", NODE, STRING),
    ),
    Annotations: (("members", "members", NODES, _only(NodeType.ANNOTATION)),),
    CollectionType: (
        ("value", "value", TEXT, None),
        ("valueType", "value_type", NODE, FIELD_TYPE_KINDS),
    ),
    MapType: (
        ("value", "value", TEXT, None),
        ("keyType", "key_type", NODE, FIELD_TYPE_KINDS),
        ("valueType", "value_type", NODE, FIELD_TYPE_KINDS),
    ),
    ConstList: (("elements", "elements", NODES, VALUE_KINDS),),
    ConstMap: (
        ("properties", "properties", NODES, _only(NodeType.PROPERTY_ASSIGNMENT)),
    ),
    PropertyAssignment: (
        ("name", "name", NODE, VALUE_KINDS),
        ("value", "value", NODE, VALUE_KINDS),
    ),
    Namespace: (
        ("scope", "scope", NODE, IDENTIFIER),
        ("name", "name", NODE, IDENTIFIER),
        COMMENTS,
        ANNOTATIONS,
    ),
    Include: (("name", "name", NODE, STRING), COMMENTS, ANNOTATIONS),
    Const: (
        ("name", "name", NODE, IDENTIFIER),
        ("fieldType", "field_type", NODE, FIELD_TYPE_KINDS),
        ("value", "value", NODE, VALUE_KINDS),
        COMMENTS,
        ANNOTATIONS,
    ),
    Typedef: (
        ("name", "name", NODE, IDENTIFIER),
        ("fieldType", "field_type", NODE, FIELD_TYPE_KINDS),
        COMMENTS,
        ANNOTATIONS,
    ),
    Initializer: (("value", "value", NODE, INT_LITERAL),),
    EnumMember: (
        ("name", "name", NODE, IDENTIFIER),
        ("initializer", "initializer", NODE, _only(NodeType.INT_CONSTANT)),
        COMMENTS,
        ANNOTATIONS,
    ),
    Enum: (
        ("name", "name", NODE, IDENTIFIER),
        ("members", "members", NODES, _only(NodeType.ENUM_MEMBER)),
        COMMENTS,
        ANNOTATIONS,
    ),
    Field: (
        ("name", "name", NODE, IDENTIFIER),
        ("fieldID", "field_id", NODE, FIELD_ID_KINDS),
        ("fieldType", "field_type", NODE, FIELD_TYPE_KINDS),
        ("requiredType", "required_type", TEXT, None),
        ("defaultValue", "default_value", NODE, VALUE_KINDS),
        COMMENTS,
        ANNOTATIONS,
    ),
    Struct: (("name", "name", NODE, IDENTIFIER), FIELDS, COMMENTS, ANNOTATIONS),
    Union: (("name", "name", NODE, IDENTIFIER), FIELDS, COMMENTS, ANNOTATIONS),
    ThriftException: (
        ("name", "name", NODE, IDENTIFIER),
        FIELDS,
        COMMENTS,
        ANNOTATIONS,
    ),
    Function: (
        ("name", "name", NODE, IDENTIFIER),
        ("returnType", "return_type", NODE, RETURN_TYPE_KINDS),
        ("params", "params", NODES, _only(NodeType.FIELD_DEFINITION)),
        ("throws", "throws", NODES_OR_NULL, _only(NodeType.FIELD_DEFINITION)),
        ("oneway", "oneway", FLAG, None),
        COMMENTS,
        ANNOTATIONS,
    ),
    Service: (
        ("name", "name", NODE, IDENTIFIER),
        ("extends", "extends", NODE, IDENTIFIER),
        ("members", "members", NODES, _only(NodeType.FUNCTION_DEFINITION)),
        COMMENTS,
        ANNOTATIONS,
    ),
    Document: (
        ("members", "members", NODES, DEFINITION_KINDS),
        COMMENTS,
    ),
}

# Classes whose kind is a fixed class attribute.
CLASS_BY_KIND = {
    cls.kind: cls
    for cls in SCHEMA
    if cls not in (Common, Comment, CollectionType)
}
for _kind in LITERAL_KINDS | FIELD_ID_KINDS | BASE_TYPE_KINDS | {NodeType.VOID_KEYWORD}:
    CLASS_BY_KIND[_kind] = Common
for _kind in COMMENT_KINDS:
    CLASS_BY_KIND[_kind] = Comment
for _kind in (NodeType.LIST_TYPE, NodeType.SET_TYPE):
    CLASS_BY_KIND[_kind] = CollectionType

KIND_BY_NAME = {kind.value: kind for kind in NodeType}


def _span_to_dict(span: Span) -> Dict[str, int]:
    return {"line": span.line, "column": span.column, "index": span.index}


def _loc_to_dict(loc: Location) -> Dict[str, Any]:
    return {"start": _span_to_dict(loc.start), "end": _span_to_dict(loc.end)}


def node_to_dict(node) -> Dict[str, Any]:
    """Convert an AST node to a JSON-compatible dict."""
    schema = SCHEMA.get(type(node))
    if schema is None:
        raise TypeError(f"Not an AST node: {type(node).__name__}")
    result: Dict[str, Any] = {"kind": node.kind.value}
    for key, attr, shape, _ in schema:
        value = getattr(node, attr)
        if shape == NODE:
            result[key] = None if value is None else node_to_dict(value)
        elif shape in (NODES, NODES_OR_NULL):
            result[key] = None if value is None else [node_to_dict(v) for v in value]
        else:
            result[key] = value
    result["loc"] = _loc_to_dict(node.loc)
    return result


def document_to_dict(document: Document) -> Dict[str, Any]:
    """Convert a Document to a JSON-compatible dict."""
    return node_to_dict(document)


class _Decoder:
    """Strict dict-to-AST conversion that reports the JSON path of errors."""

    def __init__(self):
        self.depth = 0

    def fail(self, message: str, code: str, path: str) -> DeserializationError:
        where = path or "<root>"
        return DeserializationError(f"{message} at {where}", code)

    def expect_dict(self, data, path: str) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise self.fail(
                f"Expected an object, got {_json_type(data)}",
                "json::type_mismatch",
                path,
            )
        return data

    def check_keys(self, data: Dict[str, Any], allowed, path: str):
        for key in data:
            if key not in allowed:
                raise self.fail(f"Unknown field {key!r}", "json::unknown_field", path)

    def integer(self, data: Dict[str, Any], key: str, path: str) -> int:
        if key not in data:
            raise self.fail(f"Missing field {key!r}", "json::missing_field", path)
        value = data[key]
        if isinstance(value, bool) or not isinstance(value, int):
            raise self.fail(
                f"Field {key!r} must be an integer, got {_json_type(value)}",
                "json::type_mismatch",
                path,
            )
        return value

    def span(self, data, path: str) -> Span:
        data = self.expect_dict(data, path)
        self.check_keys(data, ("line", "column", "index"), path)
        return Span(
            line=self.integer(data, "line", path),
            column=self.integer(data, "column", path),
            index=self.integer(data, "index", path),
        )

    def loc(self, data: Dict[str, Any], path: str) -> Location:
        if "loc" not in data:
            raise self.fail("Missing field 'loc'", "json::missing_field", path)
        loc_path = f"{path}.loc" if path else "loc"
        loc = self.expect_dict(data["loc"], loc_path)
        self.check_keys(loc, ("start", "end"), loc_path)
        for key in ("start", "end"):
            if key not in loc:
                raise self.fail(f"Missing field {key!r}", "json::missing_field", loc_path)
        return Location(
            self.span(loc["start"], f"{loc_path}.start"),
            self.span(loc["end"], f"{loc_path}.end"),
        )

    def kind(self, data: Dict[str, Any], allowed: Optional[FrozenSet[NodeType]], path: str):
        if "kind" not in data:
            raise self.fail("Missing field 'kind'", "json::missing_field", path)
        name = data["kind"]
        if not isinstance(name, str):
            raise self.fail(
                f"Field 'kind' must be a string, got {_json_type(name)}",
                "json::type_mismatch",
                path,
            )
        kind = KIND_BY_NAME.get(name)
        if kind is None or kind not in CLASS_BY_KIND:
            raise self.fail(f"Unknown node kind {name!r}", "json::unknown_kind", path)
        if allowed is not None and kind not in allowed:
            expected = ", ".join(sorted(k.value for k in allowed))
            raise self.fail(
                f"Node kind {name!r} is not allowed here (expected one of: {expected})",
                "json::type_mismatch",
                path,
            )
        return kind

    def node(self, data, allowed: Optional[FrozenSet[NodeType]], path: str):
        if self.depth >= MAX_NODE_DEPTH:
            raise self.fail(
                f"Nodes nested more than {MAX_NODE_DEPTH} levels deep",
                "json::nesting_too_deep",
                path,
            )
        self.depth += 1
        try:
            return self.build(data, allowed, path)
        finally:
            self.depth -= 1

    def build(self, data, allowed: Optional[FrozenSet[NodeType]], path: str):
        data = self.expect_dict(data, path)
        kind = self.kind(data, allowed, path)
        cls = CLASS_BY_KIND[kind]
        schema = SCHEMA[cls]
        self.check_keys(data, {"kind", "loc"} | {entry[0] for entry in schema}, path)

        kwargs: Dict[str, Any] = {"loc": self.loc(data, path)}
        if cls in (Common, Comment, CollectionType):
            kwargs["kind"] = kind
        for key, attr, shape, child_kinds in schema:
            child_path = f"{path}.{key}" if path else key
            kwargs[attr] = self.field(data, key, shape, child_kinds, child_path, path)
        return cls(**kwargs)

    def field(self, data, key: str, shape: str, child_kinds, child_path: str, path: str):
        if shape == NODE:
            value = data.get(key)
            return None if value is None else self.node(value, child_kinds, child_path)

        if key not in data:
            raise self.fail(f"Missing field {key!r}", "json::missing_field", path)
        value = data[key]

        if shape == TEXT:
            if not isinstance(value, str):
                raise self.fail(
                    f"Field {key!r} must be a string, got {_json_type(value)}",
                    "json::type_mismatch",
                    path,
                )
            return value
        if shape == FLAG:
            if not isinstance(value, bool):
                raise self.fail(
                    f"Field {key!r} must be a boolean, got {_json_type(value)}",
                    "json::type_mismatch",
                    path,
                )
            return value
        if value is None and shape == NODES_OR_NULL:
            return None
        if not isinstance(value, list):
            raise self.fail(
                f"Field {key!r} must be an array, got {_json_type(value)}",
                "json::type_mismatch",
                path,
            )
        return tuple(
            self.node(item, child_kinds, f"{child_path}[{i}]")
            for i, item in enumerate(value)
        )


def _json_type(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def document_from_dict(data: Dict[str, Any]) -> Document:
    """Convert a dict produced by document_to_dict back into a Document."""
    return _Decoder().node(data, _only(NodeType.THRIFT_DOCUMENT), "")


def to_json(document: Document, indent: Optional[int] = None) -> str:
    """Serialize a Document to JSON text."""
    return json.dumps(document_to_dict(document), indent=indent, ensure_ascii=False)


def from_json(text: TypingUnion[str, bytes]) -> Document:
    """Parse JSON text into a Document, raising DeserializationError."""
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DeserializationError(
                f"JSON input is not valid UTF-8: {exc}", "json::invalid_json"
            ) from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DeserializationError(
            f"Invalid JSON: {exc.msg}",
            "json::invalid_json",
            start=Span(exc.lineno, exc.colno, exc.pos),
        ) from exc
    except RecursionError as exc:
        raise DeserializationError(
            "Invalid JSON: nested too deeply", "json::nesting_too_deep"
        ) from exc
    document = document_from_dict(data)
    logger.debug("Decoded document with %d definitions", len(document.members))
    return document


__all__ = [
    "node_to_dict",
    "document_to_dict",
    "document_from_dict",
    "to_json",
    "from_json",
]
