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

"""Error taxonomy shared by the lexer, parser, writer and JSON transcoder.

Every failure is an exception derived from :class:`ThriftCompilerError`.
At the library boundary it is converted into an :class:`ErrorReport`, a
plain value with a stable JSON shape::

    {"kind": "ParseError", "message": ..., "code": ..., "help": ...,
     "location": {"line": ..., "column": ..., "length": ..., "sourceText": ...}}
"""

import json
from dataclasses import dataclass
from typing import Optional

from thrift_compiler.ast.types import Span

# Guidance attached to reports when the raise site gives none.
HELP = {
    "lexer::unterminated_string": "Close the string literal with a matching quote on the same line",
    "lexer::invalid_escape": "Supported escapes are \\\\ \\\" \\' \\n \\r \\t \\b \\f \\/ and \\uXXXX",
    "lexer::malformed_number": "Numbers must be decimal, hex (0x1F) or floating point (1.5e3)",
    "lexer::unrecognized_character": "This character is not valid in Thrift IDL",
    "lexer::unterminated_comment": "Close the block comment with */",
    "parser::unexpected_token": "Expected a different token here",
    "parser::unexpected_eof": "The file ended unexpectedly, you might be missing some closing tokens",
    "parser::unsupported_type": "Use a base type, list<T>, set<T>, map<K, V> or a type name",
    "parser::invalid_field_id": 'Field IDs must be integers, e.g. "1: string name"',
    "parser::duplicate_field_id": "Each field in a struct, union, exception or argument list needs a unique ID",
    "parser::invalid_field_name": "Field names must be valid identifiers",
    "parser::invalid_value": "Expected a literal, an identifier, a [list] or a {map}",
    "parser::invalid_return_type": "Functions return void or a field type",
    "parser::nesting_too_deep": "Flatten the type or value, or split it with a typedef",
    "writer::missing_node": "Every required child node must be present before writing",
    "writer::invalid_literal": "Literal and name text must lex back to the same token",
    "writer::invalid_shape": "The value or type does not fit where it is used",
    "json::invalid_json": "The input is not well-formed JSON",
    "json::unknown_kind": "Each node needs a \"kind\" naming a known AST node type",
    "json::missing_field": "Add the missing key; optional values are written as null",
    "json::unknown_field": "Remove keys the AST node does not define",
    "json::type_mismatch": "Check the JSON type of the value against the AST schema",
    "json::nesting_too_deep": "The AST is nested deeper than any parsed document can be",
    "config::invalid_value": "Check the THRIFT_COMPILER_* environment variables",
}


class ThriftCompilerError(Exception):
    """Base class for all compiler errors."""

    kind = "ThriftCompilerError"
    default_code = "error"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        help: Optional[str] = None,
        start: Optional[Span] = None,
        end: Optional[Span] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.help = help if help is not None else HELP.get(self.code)
        self.start = start
        self.end = end if end is not None else start
        if start is not None:
            super().__init__(f"Line {start.line}, Column {start.column}: {message}")
        else:
            super().__init__(message)

    @property
    def line(self) -> Optional[int]:
        return self.start.line if self.start else None

    @property
    def column(self) -> Optional[int]:
        return self.start.column if self.start else None

    def report(self, source: Optional[str] = None) -> "ErrorReport":
        """Build the structured report, excerpting ``source`` when given."""
        location = None
        if self.start is not None:
            location = ErrorLocation.from_spans(self.start, self.end, source)
        return ErrorReport(
            kind=self.kind,
            message=self.message,
            code=self.code,
            help=self.help,
            location=location,
        )


class ParseError(ThriftCompilerError):
    """Grammar violation in IDL text."""

    kind = "ParseError"
    default_code = "parser::unexpected_token"


class LexError(ParseError):
    """Malformed token; reported as a ParseError with a ``lexer::`` code."""

    default_code = "lexer::unrecognized_character"


class SerializationError(ThriftCompilerError):
    """The writer was given an AST shape it cannot render."""

    kind = "SerializationError"
    default_code = "writer::invalid_shape"


class DeserializationError(ThriftCompilerError):
    """Malformed JSON AST."""

    kind = "DeserializationError"
    default_code = "json::invalid_document"


class ConfigError(ThriftCompilerError):
    """Invalid configuration value."""

    kind = "ConfigError"
    default_code = "config::invalid_value"


class InitializationError(ThriftCompilerError):
    """Engine bootstrap failed; calling initialize() again retries."""

    kind = "InitializationError"
    default_code = "engine::initialization_failed"


@dataclass(frozen=True)
class ErrorLocation:
    """Where an error occurred, with the offending source line."""

    line: int
    column: int
    length: int
    source_text: str

    @classmethod
    def from_spans(
        cls, start: Span, end: Span, source: Optional[str] = None
    ) -> "ErrorLocation":
        source_text = ""
        if source is not None:
            # Only "\n" ends a line for the lexer; splitlines() knows more.
            lines = source.split("\n")
            if 0 < start.line <= len(lines):
                source_text = lines[start.line - 1].rstrip("\r")
        return cls(
            line=start.line,
            column=start.column,
            length=max(end.index - start.index, 0),
            source_text=source_text,
        )

    def to_dict(self) -> dict:
        return {
            "line": self.line,
            "column": self.column,
            "length": self.length,
            "sourceText": self.source_text,
        }


@dataclass(frozen=True)
class ErrorReport:
    """A structured error value returned across the library boundary."""

    kind: str
    message: str
    code: str
    help: Optional[str] = None
    location: Optional[ErrorLocation] = None

    def to_dict(self) -> dict:
        result = {"kind": self.kind, "message": self.message, "code": self.code}
        if self.help is not None:
            result["help"] = self.help
        if self.location is not None:
            result["location"] = self.location.to_dict()
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def render(self, filename: Optional[str] = None) -> str:
        """Render a caret diagnostic without needing the original source."""
        lines = [f"{self.kind}[{self.code}]: {self.message}"]
        loc = self.location
        if loc is not None:
            where = f"{loc.line}:{loc.column}"
            lines.append(f"  --> {filename}:{where}" if filename else f"  --> {where}")
            if loc.source_text:
                gutter = " " * len(str(loc.line))
                # Clamp the caret run to the excerpted line.
                available = max(len(loc.source_text) - (loc.column - 1), 1)
                carets = "^" * max(1, min(loc.length, available))
                lines.append(f"{gutter} |")
                lines.append(f"{loc.line} | {loc.source_text}")
                lines.append(f"{gutter} | {' ' * (loc.column - 1)}{carets}")
        if self.help:
            lines.append(f"  = help: {self.help}")
        return "\n".join(lines)


__all__ = [
    "HELP",
    "ThriftCompilerError",
    "ParseError",
    "LexError",
    "SerializationError",
    "DeserializationError",
    "ConfigError",
    "InitializationError",
    "ErrorLocation",
    "ErrorReport",
]
