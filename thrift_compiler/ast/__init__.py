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

"""Thrift abstract syntax tree."""

from thrift_compiler.ast.nodes import (  # noqa: F401
    Common,
    Comment,
    Annotation,
    Annotations,
    CollectionType,
    MapType,
    FieldType,
    ConstList,
    PropertyAssignment,
    ConstMap,
    FieldValue,
    Namespace,
    Include,
    Const,
    Typedef,
    Initializer,
    EnumMember,
    Enum,
    Field,
    Struct,
    Union,
    ThriftException,
    Function,
    Service,
    DocumentMember,
    Document,
    enum_values,
    iter_nodes,
    parse_int,
)
from thrift_compiler.ast.types import NodeType, Span, Location, BASE_TYPES  # noqa: F401

__all__ = [
    "NodeType",
    "Span",
    "Location",
    "BASE_TYPES",
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
    "enum_values",
    "iter_nodes",
    "parse_int",
]
