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
"""Fluent construction of a :class:`SieveProcessor`.

Example::

    processor = (
        SieveBuilder()
        .with_default_page_size(20)
        .with_max_page_size(200)
        .throw_on_invalid_fields()
        .configure_entity(User, lambda e: e.ignore("password_hash").as_vector("bio"))
        .build()
    )

Entity configuration callbacks run in :meth:`SieveBuilder.build`, after the
schema is known, so builder calls can come in any order.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from pysieve.config.properties.query import QueryProperties
from pysieve.core.config import Config
from pysieve.data.ports.outbound import QueryEnginePort
from pysieve.data.registry import EntityConfigurationBuilder, RegistryBuilder
from pysieve.data.schema import SchemaProvider, TypeHintSchema
from pysieve.processor import SieveProcessor

T = TypeVar("T")


class SieveBuilder:
    """Collects options, schema, and entity configuration for a processor."""

    def __init__(self, properties: QueryProperties | None = None) -> None:
        self._options: dict[str, Any] = (properties or QueryProperties()).model_dump()
        self._schema: SchemaProvider | None = None
        self._configurations: list[tuple[type, Callable[[EntityConfigurationBuilder[Any]], Any]]] = []

    @classmethod
    def from_config(cls, config: Config) -> SieveBuilder:
        """A builder seeded with the ``pysieve.query`` section of *config*."""
        return cls(config.bind(QueryProperties))

    def with_default_page_size(self, size: int) -> SieveBuilder:
        self._options["default_page_size"] = size
        return self

    def with_max_page_size(self, size: int) -> SieveBuilder:
        self._options["max_page_size"] = size
        return self

    def with_default_vector_language(self, language: str) -> SieveBuilder:
        self._options["default_vector_language"] = language
        return self

    def throw_on_invalid_fields(self, enabled: bool = True) -> SieveBuilder:
        self._options["throw_on_invalid_fields"] = enabled
        return self

    def with_schema(self, schema: SchemaProvider) -> SieveBuilder:
        """Use *schema* instead of :class:`TypeHintSchema` (e.g. ``SqlAlchemySchema()``)."""
        self._schema = schema
        return self

    def configure_entity(
        self, entity_type: type[T], configure: Callable[[EntityConfigurationBuilder[T]], Any]
    ) -> SieveBuilder:
        """Register field policy for *entity_type*; may be called several times."""
        self._configurations.append((entity_type, configure))
        return self

    def build(self, engine: QueryEnginePort[Any] | None = None) -> SieveProcessor:
        """Validate options, run entity configuration, and freeze everything.

        Raises:
            ValueError: For invalid options or unknown configured fields.
        """
        properties = QueryProperties.model_validate(self._options)
        schema = self._schema or TypeHintSchema()
        registry = RegistryBuilder(schema)
        for entity_type, configure in self._configurations:
            configure(registry.entity(entity_type))
        return SieveProcessor(properties, registry.build(), schema, engine)
