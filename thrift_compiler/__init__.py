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

"""Thrift IDL compiler front-end.

Parses Thrift IDL into a location-annotated AST, writes an AST back out as
canonical IDL, and transcodes the AST to and from JSON.
"""

from thrift_compiler.ast import Document
from thrift_compiler.config import CompilerConfig
from thrift_compiler.engine import Engine, Result, initialize
from thrift_compiler.errors import (
    ConfigError,
    DeserializationError,
    ErrorReport,
    InitializationError,
    LexError,
    ParseError,
    SerializationError,
    ThriftCompilerError,
)
from thrift_compiler.frontend import ThriftFrontend
from thrift_compiler.json_codec import document_from_dict, document_to_dict, from_json, to_json
from thrift_compiler.writer import write

__version__ = "0.1.0"


def parse(source: str, filename: str = "<input>") -> Document:
    """Parse IDL text, raising ParseError on the first error."""
    return ThriftFrontend().parse(source, filename)


__all__ = [
    "__version__",
    "parse",
    "write",
    "to_json",
    "from_json",
    "document_to_dict",
    "document_from_dict",
    "initialize",
    "Engine",
    "Result",
    "CompilerConfig",
    "Document",
    "ThriftFrontend",
    "ThriftCompilerError",
    "ParseError",
    "LexError",
    "SerializationError",
    "DeserializationError",
    "ConfigError",
    "InitializationError",
    "ErrorReport",
]
