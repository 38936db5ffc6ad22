# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""StructlogAdapter — renders pysieve's compiler events through structlog.

The compilers emit event-style records on the ``pysieve.data.compiler``
logger: ``filters_compiled`` with the compiled predicate, ``filter_skipped``
and ``sort_skipped`` for descriptors dropped in lenient mode, and
``length_unsupported`` for ``len`` operators on non-measurable fields. All
of them are DEBUG events, so they only show up once that logger is lowered::

    adapter = StructlogAdapter()
    adapter.configure(Config.from_file("pysieve.yaml"))
    adapter.set_level(COMPILER_LOGGER, "DEBUG")
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog

from pysieve.config.properties.logging import LoggingProperties
from pysieve.core.config import Config

COMPILER_LOGGER = "pysieve.data.compiler"


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


class StructlogAdapter:
    """:class:`~pysieve.logging.port.LoggingPort` backed by structlog over stdlib logging."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self._root_level = "INFO"
        self._format = "console"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        """Configure from the ``pysieve.logging`` section of *config*."""
        self.apply(config.bind(LoggingProperties))

    def apply(self, properties: LoggingProperties) -> None:
        """Configure from already bound :class:`LoggingProperties`."""
        levels = {name: str(level).upper() for name, level in (properties.level or {}).items()}
        self._root_level = levels.pop("root", "INFO")
        self._module_levels = levels
        self._format = str(properties.format).lower()

        structlog.configure(
            processors=self._processors(),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=False,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=self._stream or sys.stdout,
            level=_level(self._root_level),
            force=True,
        )
        for name, level in self._module_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str = COMPILER_LOGGER) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(_level(level))

    def _processors(self) -> list[structlog.types.Processor]:
        renderer: structlog.types.Processor
        if self._format == "json":
            renderer = structlog.processors.JSONRenderer()
        else:
            renderer = structlog.dev.ConsoleRenderer(colors=False)
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            renderer,
        ]
