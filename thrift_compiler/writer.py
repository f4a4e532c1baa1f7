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

"""Emit a document AST as canonical Thrift IDL."""

import logging
from typing import List, Optional, Sequence

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
    BASE_TYPES,
    MAX_NESTING_DEPTH,
    NodeType,
    REQUIRED_TYPES,
)
from thrift_compiler.errors import LexError, SerializationError
from thrift_compiler.frontend.lexer import SOFT_KEYWORDS, Lexer, Token, TokenType

logger = logging.getLogger(__name__)

BASE_TYPE_NAMES = {kind: name for name, kind in BASE_TYPES.items()}

# Token type a literal's text must lex back to.
LITERAL_TOKEN_TYPES = {
    NodeType.INTEGER_LITERAL: (TokenType.INTEGER,),
    NodeType.HEX_LITERAL: (TokenType.HEX,),
    NodeType.FLOAT_LITERAL: (TokenType.FLOAT,),
    NodeType.EXPONENTIAL_LITERAL: (TokenType.EXPONENTIAL,),
    NodeType.BOOLEAN_LITERAL: (TokenType.TRUE, TokenType.FALSE),
    NodeType.IDENTIFIER: (TokenType.IDENT,),
}

STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}


def quote_string(value: str) -> str:
    """Quote a decoded string using escapes the lexer accepts."""
    parts = ['"']
    for ch in value:
        if ch in STRING_ESCAPES:
            parts.append(STRING_ESCAPES[ch])
        elif ord(ch) < 0x20 or 0xD800 <= ord(ch) <= 0xDFFF:
            parts.append(f"\\u{ord(ch):04x}")
        else:
            parts.append(ch)
    parts.append('"')
    return "".join(parts)


def relex(text: str) -> Optional[Token]:
    """Return the single token ``text`` lexes to, or None."""
    try:
        tokens = [t for t in Lexer(text).tokenize() if t.type != TokenType.EOF]
    except LexError:
        return None
    if len(tokens) != 1 or tokens[0].text != text:
        return None
    return tokens[0]


class ThriftWriter:
    """Render a Document as canonical Thrift IDL.

    The writer checks shape only: every required child is present, literal
    text re-lexes to the same literal, and const values agree with the
    container kind of their declared type. Anything else raises
    SerializationError before any text is returned.
    """

    def __init__(self, document: Document):
        self.document = document
        self.indent = "  "

    def emit(self) -> str:
        """Generate IDL source from the document."""
        if not isinstance(self.document, Document):
            raise SerializationError(
                f"Expected a ThriftDocument, got {type(self.document).__name__}"
            )
        lines: List[str] = []
        for member in _require_nodes(self.document.members, "members", self.document):
            body = self._emit_definition(member)
            lines.extend(self._emit_comments(member))
            lines.extend(body)
            lines.append("")
        lines.extend(self._emit_comments(self.document))
        text = "\n".join(lines).rstrip()
        logger.debug("Wrote %d definitions", len(self.document.members))
        return text + "\n" if text else ""

    def _emit_definition(self, member) -> List[str]:
        emitters = {
            Namespace: self._emit_namespace,
            Include: self._emit_include,
            Const: self._emit_const,
            Typedef: self._emit_typedef,
            Enum: self._emit_enum,
            Struct: self._emit_struct,
            Union: self._emit_struct,
            ThriftException: self._emit_struct,
            Service: self._emit_service,
        }
        emitter = emitters.get(type(member))
        if emitter is None:
            raise SerializationError(f"Unsupported document member: {_describe(member)}")
        return emitter(member)

    def _emit_comments(self, owner, level: int = 0) -> List[str]:
        indent = self.indent * level
        lines = []
        for comment in _require_nodes(owner.comments, "comments", owner):
            self._check_comment(comment)
            lines.append(f"{indent}{comment.value}")
        return lines

    def _check_comment(self, comment: Comment):
        if not isinstance(comment, Comment):
            raise SerializationError(f"Expected a comment, got {_describe(comment)}")
        text = comment.value
        if comment.kind == NodeType.COMMENT_LINE:
            valid = text.startswith(("//", "#")) and "\n" not in text and "\r" not in text
        elif comment.kind == NodeType.COMMENT_BLOCK:
            valid = (
                len(text) >= 4
                and text.startswith("/*")
                and text.endswith("*/")
                and "*/" not in text[2:-2]
            )
        else:
            valid = False
        if not valid:
            raise SerializationError(
                f"Comment text {text!r} is not a valid {comment.kind.value}",
                "writer::invalid_literal",
            )

    def _emit_namespace(self, ns: Namespace) -> List[str]:
        scope = _require(ns.scope, "scope", ns)
        scope_text = "*" if scope.value == "*" else self._name(scope)
        name = self._name(_require(ns.name, "name", ns))
        return [f"namespace {scope_text} {name}{self._emit_annotations(ns.annotations)}"]

    def _emit_include(self, inc: Include) -> List[str]:
        path = _require(inc.name, "name", inc)
        if path.kind != NodeType.STRING_LITERAL:
            raise SerializationError(
                f"Include path must be a StringLiteral, got {path.kind.value}"
            )
        return [f"include {quote_string(path.value)}{self._emit_annotations(inc.annotations)}"]

    def _emit_const(self, const: Const) -> List[str]:
        field_type = _require(const.field_type, "fieldType", const)
        value = _require(const.value, "value", const)
        type_text = self._emit_type(field_type)
        value_text = self._emit_value(value)
        self._check_value(field_type, value)
        return [
            f"const {type_text} {self._name(const.name)} = "
            f"{value_text}{self._emit_annotations(const.annotations)}"
        ]

    def _emit_typedef(self, typedef: Typedef) -> List[str]:
        field_type = _require(typedef.field_type, "fieldType", typedef)
        return [
            f"typedef {self._emit_type(field_type)} {self._name(typedef.name)}"
            f"{self._emit_annotations(typedef.annotations)}"
        ]

    def _emit_enum(self, enum: Enum, level: int = 0) -> List[str]:
        indent = self.indent * level
        name = self._name(enum.name)
        members = _require_nodes(enum.members, "members", enum)
        if not members:
            return [f"{indent}enum {name} {{}}{self._emit_annotations(enum.annotations)}"]
        lines = [f"{indent}enum {name} {{"]
        for member in members:
            text = self._emit_enum_member(member)
            lines.extend(self._emit_comments(member, level + 1))
            lines.append(f"{indent}{self.indent}{text},")
        lines.append(f"{indent}}}{self._emit_annotations(enum.annotations)}")
        return lines

    def _emit_enum_member(self, member: EnumMember) -> str:
        if not isinstance(member, EnumMember):
            raise SerializationError(f"Expected an EnumMember, got {_describe(member)}")
        text = self._name(member.name)
        if member.initializer is not None:
            value = _require(member.initializer.value, "value", member.initializer)
            if value.kind not in (NodeType.INTEGER_LITERAL, NodeType.HEX_LITERAL):
                raise SerializationError(
                    f"Enum member value must be an integer, got {value.kind.value}"
                )
            text += f" = {self._emit_value(value)}"
        return text + self._emit_annotations(member.annotations)

    def _emit_struct(self, node) -> List[str]:
        keyword = {
            NodeType.STRUCT_DEFINITION: "struct",
            NodeType.UNION_DEFINITION: "union",
            NodeType.EXCEPTION_DEFINITION: "exception",
        }[node.kind]
        name = self._name(node.name)
        annotations = self._emit_annotations(node.annotations)
        members = _require_nodes(node.members, "members", node)
        if not members:
            return [f"{keyword} {name} {{}}{annotations}"]
        lines = [f"{keyword} {name} {{"]
        lines.extend(self._emit_field_lines(members, 1))
        lines.append(f"}}{annotations}")
        return lines

    def _emit_field_lines(self, fields: Sequence[Field], level: int) -> List[str]:
        indent = self.indent * level
        lines = []
        for field in fields:
            if not isinstance(field, Field):
                raise SerializationError(f"Expected a FieldDefinition, got {_describe(field)}")
            lines.extend(self._emit_comments(field, level))
            lines.append(f"{indent}{self._emit_field(field)},")
        return lines

    def _emit_field(self, field: Field) -> str:
        parts = []
        field_id = _require(field.field_id, "fieldID", field)
        if field_id.kind == NodeType.FIELD_ID:
            token = relex(field_id.value)
            if token is None or token.type != TokenType.INTEGER:
                raise SerializationError(
                    f"Invalid field ID {field_id.value!r}", "writer::invalid_literal"
                )
            parts.append(f"{field_id.value}:")
        elif field_id.kind != NodeType.IMPLICIT_FIELD_ID:
            raise SerializationError(f"Unexpected field ID kind {field_id.kind.value}")

        if field.required_type not in REQUIRED_TYPES:
            raise SerializationError(f"Unknown requiredType {field.required_type!r}")
        if field.required_type != "default":
            parts.append(field.required_type)

        field_type = _require(field.field_type, "fieldType", field)
        parts.append(self._emit_type(field_type))
        parts.append(self._name(field.name))
        if field.default_value is not None:
            value_text = self._emit_value(field.default_value)
            self._check_value(field_type, field.default_value)
            parts.append(f"= {value_text}")
        return " ".join(parts) + self._emit_annotations(field.annotations)

    def _emit_service(self, service: Service) -> List[str]:
        header = f"service {self._name(service.name)}"
        if service.extends is not None:
            header += f" extends {self._type_name(service.extends)}"
        annotations = self._emit_annotations(service.annotations)
        members = _require_nodes(service.members, "members", service)
        if not members:
            return [f"{header} {{}}{annotations}"]
        lines = [f"{header} {{"]
        for function in members:
            if not isinstance(function, Function):
                raise SerializationError(
                    f"Expected a FunctionDefinition, got {_describe(function)}"
                )
            lines.extend(self._emit_comments(function, 1))
            lines.extend(self._emit_function(function, 1))
        lines.append(f"}}{annotations}")
        return lines

    def _emit_function(self, function: Function, level: int) -> List[str]:
        indent = self.indent * level
        return_type = _require(function.return_type, "returnType", function)
        if isinstance(return_type, Common) and return_type.kind == NodeType.VOID_KEYWORD:
            if return_type.value != "void":
                raise SerializationError(f"VoidKeyword must be 'void', got {return_type.value!r}")
            return_text = "void"
        else:
            return_text = self._emit_type(return_type)
        prefix = "oneway " if function.oneway else ""

        lines = [f"{indent}{prefix}{return_text} {self._name(function.name)}("]
        params = _require_nodes(function.params, "params", function)
        self._append_field_list(lines, params, level)
        if function.throws is not None:
            lines[-1] += " throws ("
            throws = _require_nodes(function.throws, "throws", function)
            self._append_field_list(lines, throws, level)
        lines[-1] += self._emit_annotations(function.annotations) + ","
        return lines

    def _append_field_list(self, lines: List[str], fields: Sequence[Field], level: int):
        """Append ``fields`` and the closing paren; inline unless any has comments."""
        if any(isinstance(f, Field) and f.comments for f in fields):
            lines.extend(self._emit_field_lines(fields, level + 1))
            lines.append(f"{self.indent * level})")
            return
        rendered = []
        for field in fields:
            if not isinstance(field, Field):
                raise SerializationError(f"Expected a FieldDefinition, got {_describe(field)}")
            rendered.append(self._emit_field(field))
        lines[-1] += ", ".join(rendered) + ")"

    def _emit_annotations(self, annotations: Optional[Annotations]) -> str:
        if annotations is None:
            return ""
        if not isinstance(annotations, Annotations):
            raise SerializationError(f"Expected Annotations, got {_describe(annotations)}")
        rendered = []
        for annotation in _require_nodes(annotations.members, "members", annotations):
            if not isinstance(annotation, Annotation):
                raise SerializationError(f"Expected an Annotation, got {_describe(annotation)}")
            text = self._name(annotation.name)
            if annotation.value is not None:
                if annotation.value.kind != NodeType.STRING_LITERAL:
                    raise SerializationError(
                        "Annotation values must be StringLiteral, "
                        f"got {annotation.value.kind.value}"
                    )
                text += f" = {quote_string(annotation.value.value)}"
            rendered.append(text)
        return f" ({', '.join(rendered)})"

    def _emit_type(self, field_type: FieldType, depth: int = 0) -> str:
        if isinstance(field_type, Common):
            if field_type.kind in BASE_TYPE_KINDS:
                expected = BASE_TYPE_NAMES[field_type.kind]
                if field_type.value != expected:
                    raise SerializationError(
                        f"{field_type.kind.value} must be {expected!r}, got {field_type.value!r}"
                    )
                return expected
            if field_type.kind == NodeType.IDENTIFIER:
                return self._type_name(field_type)
            raise SerializationError(f"Unsupported field type kind {field_type.kind.value}")
        if isinstance(field_type, CollectionType):
            keyword = {NodeType.LIST_TYPE: "list", NodeType.SET_TYPE: "set"}.get(field_type.kind)
            if keyword is None or field_type.value != keyword:
                raise SerializationError(
                    f"Inconsistent collection type {field_type.kind.value}/{field_type.value!r}"
                )
            _check_depth(depth, field_type)
            value_type = _require(field_type.value_type, "valueType", field_type)
            return f"{keyword}<{self._emit_type(value_type, depth + 1)}>"
        if isinstance(field_type, MapType):
            _check_depth(depth, field_type)
            key_type = _require(field_type.key_type, "keyType", field_type)
            value_type = _require(field_type.value_type, "valueType", field_type)
            key_text = self._emit_type(key_type, depth + 1)
            return f"map<{key_text}, {self._emit_type(value_type, depth + 1)}>"
        raise SerializationError(f"Unsupported field type: {_describe(field_type)}")

    def _check_value(self, field_type: FieldType, value: FieldValue):
        """Reject const values whose container kind contradicts ``field_type``."""
        if isinstance(value, Common):
            # Identifiers may name a const of the container type.
            if value.kind != NodeType.IDENTIFIER and isinstance(
                field_type, (CollectionType, MapType)
            ):
                raise SerializationError(
                    f"A {value.kind.value} cannot initialize a {field_type.value} type"
                )
        elif isinstance(value, ConstList):
            if isinstance(field_type, MapType):
                raise SerializationError("A list value cannot initialize a map type")
            if isinstance(field_type, Common) and field_type.kind in BASE_TYPE_KINDS:
                raise SerializationError(
                    f"A list value cannot initialize {field_type.value}"
                )
            if isinstance(field_type, CollectionType) and field_type.value_type is not None:
                for element in value.elements:
                    self._check_value(field_type.value_type, element)
        elif isinstance(value, ConstMap):
            if isinstance(field_type, CollectionType):
                raise SerializationError(
                    f"A map value cannot initialize a {field_type.value} type"
                )
            if isinstance(field_type, Common) and field_type.kind in BASE_TYPE_KINDS:
                raise SerializationError(
                    f"A map value cannot initialize {field_type.value}"
                )
            if isinstance(field_type, MapType):
                for prop in value.properties:
                    if field_type.key_type is not None and prop.name is not None:
                        self._check_value(field_type.key_type, prop.name)
                    if field_type.value_type is not None and prop.value is not None:
                        self._check_value(field_type.value_type, prop.value)

    def _emit_value(self, value: FieldValue, depth: int = 0) -> str:
        if isinstance(value, Common):
            if value.kind == NodeType.STRING_LITERAL:
                return quote_string(value.value)
            expected = LITERAL_TOKEN_TYPES.get(value.kind)
            if expected is None:
                raise SerializationError(f"Unsupported value kind {value.kind.value}")
            token = relex(value.value)
            if token is None or token.type not in expected:
                raise SerializationError(
                    f"{value.value!r} is not a valid {value.kind.value}",
                    "writer::invalid_literal",
                )
            return value.value
        if isinstance(value, ConstList):
            _check_depth(depth, value)
            elements = [
                self._emit_value(_require(e, "element", value), depth + 1)
                for e in _require_nodes(value.elements, "elements", value)
            ]
            return "[" + ", ".join(elements) + "]"
        if isinstance(value, ConstMap):
            _check_depth(depth, value)
            entries = []
            for prop in _require_nodes(value.properties, "properties", value):
                if not isinstance(prop, PropertyAssignment):
                    raise SerializationError(
                        f"Expected a PropertyAssignment, got {_describe(prop)}"
                    )
                key = _require(prop.name, "name", prop)
                item = _require(prop.value, "value", prop)
                key_text = self._emit_value(key, depth + 1)
                entries.append(f"{key_text}: {self._emit_value(item, depth + 1)}")
            return "{" + ", ".join(entries) + "}"
        raise SerializationError(f"Unsupported value: {_describe(value)}")

    def _name(self, name: Common) -> str:
        """Render a declared name; soft keywords are allowed."""
        if not isinstance(name, Common):
            raise SerializationError(f"Expected an Identifier, got {_describe(name)}")
        token = relex(name.value)
        if token is None or not (token.type == TokenType.IDENT or token.text in SOFT_KEYWORDS):
            raise SerializationError(
                f"{name.value!r} is not a valid name", "writer::invalid_literal"
            )
        return name.value

    def _type_name(self, name: Common) -> str:
        """Render a reference to a named type."""
        token = relex(name.value) if isinstance(name, Common) else None
        if token is None or token.type != TokenType.IDENT:
            value = name.value if isinstance(name, Common) else name
            raise SerializationError(
                f"{value!r} is not a valid type name", "writer::invalid_literal"
            )
        return name.value


def _require(child, field_name: str, owner):
    if child is None:
        raise SerializationError(
            f"{owner.kind.value} is missing {field_name}", "writer::missing_node"
        )
    return child


def _require_nodes(children, field_name: str, owner):
    children = _require(children, field_name, owner)
    if not isinstance(children, (tuple, list)):
        raise SerializationError(
            f"{_describe(owner)}.{field_name} must be a sequence of nodes, "
            f"got {type(children).__name__}"
        )
    return children


def _check_depth(depth: int, node):
    if depth > MAX_NESTING_DEPTH:
        raise SerializationError(
            f"{_describe(node)} nested more than {MAX_NESTING_DEPTH} levels deep"
        )


def _describe(node) -> str:
    kind = getattr(node, "kind", None)
    if isinstance(kind, NodeType):
        return kind.value
    return type(node).__name__


def write(document: Document) -> str:
    """Render ``document`` as canonical IDL, raising SerializationError."""
    return ThriftWriter(document).emit()


__all__ = ["ThriftWriter", "write", "quote_string"]
