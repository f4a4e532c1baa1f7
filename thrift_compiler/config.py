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

"""Process configuration read from the environment."""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from thrift_compiler.errors import ConfigError

LOG_LEVEL_ENV = "THRIFT_COMPILER_LOG_LEVEL"
JSON_INDENT_ENV = "THRIFT_COMPILER_JSON_INDENT"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class CompilerConfig:
    """Settings shared by the engine and the command line.

    ``json_indent`` of None writes compact JSON.
    """

    log_level: str = "WARNING"
    json_indent: Optional[int] = 2

    def __post_init__(self):
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(
                f"Invalid log level {self.log_level!r}, expected one of {', '.join(LOG_LEVELS)}"
            )
        if self.json_indent is not None and (
            isinstance(self.json_indent, bool)
            or not isinstance(self.json_indent, int)
            or self.json_indent < 0
        ):
            raise ConfigError(
                f"Invalid JSON indent {self.json_indent!r}, expected a non-negative integer"
            )

    @property
    def level(self) -> int:
        return getattr(logging, self.log_level)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CompilerConfig":
        """Build a config from THRIFT_COMPILER_* environment variables."""
        if environ is None:
            environ = os.environ
        kwargs = {}
        log_level = environ.get(LOG_LEVEL_ENV)
        if log_level:
            kwargs["log_level"] = log_level.strip().upper()
        json_indent = environ.get(JSON_INDENT_ENV)
        if json_indent is not None and json_indent.strip():
            text = json_indent.strip()
            if text.lower() in ("none", "compact"):
                kwargs["json_indent"] = None
            else:
                try:
                    kwargs["json_indent"] = int(text)
                except ValueError as exc:
                    raise ConfigError(
                        f"{JSON_INDENT_ENV} must be an integer, got {json_indent!r}"
                    ) from exc
        return cls(**kwargs)


__all__ = ["CompilerConfig", "LOG_LEVEL_ENV", "JSON_INDENT_ENV"]
