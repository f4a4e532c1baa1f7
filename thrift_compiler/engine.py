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

"""Engine handle and the process-wide bootstrap.

``initialize()`` returns an :class:`Engine`; callers keep the handle and
call ``parse``/``write`` on it. The engine methods never raise for bad
input: they return a :class:`Result` carrying either a value or an
:class:`~thrift_compiler.errors.ErrorReport`.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union as TypingUnion

from thrift_compiler.ast.nodes import Document
from thrift_compiler.config import CompilerConfig
from thrift_compiler.errors import (
    DeserializationError,
    ErrorReport,
    InitializationError,
    ParseError,
    SerializationError,
    ThriftCompilerError,
)
from thrift_compiler.frontend import ThriftFrontend
from thrift_compiler.json_codec import document_from_dict, from_json, to_json
from thrift_compiler.writer import ThriftWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Result:
    """Outcome of an engine call: exactly one of value or error is set."""

    value: Any = None
    error: Optional[ErrorReport] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the value, or raise a ThriftCompilerError for the report."""
        if self.error is not None:
            raise ThriftCompilerError(self.error.message, self.error.code, self.error.help)
        return self.value


class Engine:
    """Parses and writes Thrift IDL with a fixed configuration."""

    def __init__(self, config: CompilerConfig):
        self.config = config
        self.frontend = ThriftFrontend()

    def parse(self, source: str, filename: str = "<input>") -> Result:
        """Parse IDL text into a Document."""
        try:
            return Result(value=self.frontend.parse(source, filename))
        except ParseError as exc:
            return Result(error=exc.report(source))

    def parse_json(self, source: str, filename: str = "<input>") -> Result:
        """Parse IDL text and return the document as JSON text."""
        result = self.parse(source, filename)
        if not result.ok:
            return result
        return Result(value=to_json(result.value, indent=self.config.json_indent))

    def from_json(self, text: TypingUnion[str, bytes]) -> Result:
        """Decode JSON text into a Document."""
        try:
            return Result(value=from_json(text))
        except DeserializationError as exc:
            return Result(error=exc.report(text if isinstance(text, str) else None))

    def write(self, document: TypingUnion[Document, Dict[str, Any], str, bytes]) -> Result:
        """Render IDL from a Document, a JSON dict, or JSON text."""
        source = document if isinstance(document, str) else None
        try:
            if isinstance(document, (str, bytes)):
                document = from_json(document)
            elif isinstance(document, dict):
                document = document_from_dict(document)
            return Result(value=ThriftWriter(document).emit())
        except (DeserializationError, SerializationError) as exc:
            return Result(error=exc.report(source))


class _BootstrapAttempt:
    """One in-flight initialization shared by every concurrent caller."""

    def __init__(self):
        self.done = threading.Event()
        self.engine: Optional[Engine] = None
        self.error: Optional[ThriftCompilerError] = None


_lock = threading.Lock()
_engine: Optional[Engine] = None
_attempt: Optional[_BootstrapAttempt] = None


def _bootstrap(config: Optional[CompilerConfig]) -> Engine:
    if config is None:
        config = CompilerConfig.from_env()
    logging.getLogger("thrift_compiler").setLevel(config.level)
    logger.debug("Initialized engine with %s", config)
    return Engine(config)


def initialize(config: Optional[CompilerConfig] = None) -> Engine:
    """Return the process-wide engine, creating it on first use.

    Concurrent first calls wait for a single bootstrap and share its
    outcome. A failed bootstrap raises InitializationError and is not
    remembered, so the next call tries again. Once an engine exists,
    ``config`` is ignored.
    """
    global _engine, _attempt
    with _lock:
        if _engine is not None:
            return _engine
        attempt = _attempt
        owner = attempt is None
        if owner:
            attempt = _attempt = _BootstrapAttempt()

    if owner:
        try:
            attempt.engine = _bootstrap(config)
        except ThriftCompilerError as exc:
            attempt.error = exc
        finally:
            with _lock:
                _attempt = None
                if attempt.engine is not None:
                    _engine = attempt.engine
            attempt.done.set()
    else:
        attempt.done.wait()

    if attempt.engine is None:
        cause = attempt.error
        message = cause.message if cause is not None else "bootstrap did not complete"
        raise InitializationError(f"Engine initialization failed: {message}") from cause
    return attempt.engine


def reset():
    """Drop the process-wide engine so the next initialize() starts over."""
    global _engine
    with _lock:
        _engine = None


__all__ = ["Engine", "Result", "initialize", "reset"]
