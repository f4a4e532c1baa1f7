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

"""Thrift IDL frontend."""

import logging
from pathlib import Path
from typing import List

from thrift_compiler.ast.nodes import Document
from thrift_compiler.errors import LexError, ParseError
from thrift_compiler.frontend.lexer import Lexer, Token, TokenType
from thrift_compiler.frontend.parser import Parser

logger = logging.getLogger(__name__)


class ThriftFrontend:
    """Frontend for Thrift IDL (.thrift)."""

    extensions: List[str] = [".thrift"]

    def parse(self, source: str, filename: str = "<input>") -> Document:
        """Parse source and return its document AST.

        Raises ParseError (LexError for malformed tokens) on the first error.
        """
        parser = Parser(Lexer(source).tokens(), filename)
        try:
            return parser.parse()
        except ParseError as exc:
            logger.debug("Failed to parse %s: %s", filename, exc)
            raise

    def parse_file(self, path: Path) -> Document:
        """Parse a file and return its document AST."""
        return self.parse(Path(path).read_text(encoding="utf-8"), str(path))

    def supports_file(self, path: Path) -> bool:
        """Return True if this frontend handles the file extension."""
        return Path(path).suffix.lower() in self.extensions


__all__ = [
    "ThriftFrontend",
    "Lexer",
    "Parser",
    "Token",
    "TokenType",
    "LexError",
    "ParseError",
]
