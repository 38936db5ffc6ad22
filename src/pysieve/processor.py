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
"""SieveProcessor: compile descriptors and apply them to a query source.

The processor is immutable once built and safe to share across requests.
Each ``apply_*`` method takes the source (a list of records, a
``sqlalchemy.Select`` ...) and the entity type to compile against, and
returns a new source produced by the query engine. The engine fixed at
build time can be replaced per call, typically to bind a session::

    processor = SieveBuilder().build()
    rows = processor.apply(users, SieveQuery(filters=[FilterLeaf("age", ">", [30])]), User)

    page = await processor.apply_async(
        select(User), query, User, engine=SqlAlchemyQueryEngine(session)
    )
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

from pysieve.config.properties.query import QueryProperties
from pysieve.data.descriptor import Filter, SieveQuery, SortDescriptor
from pysieve.data.filter_compiler import PredicateCompiler
from pysieve.data.memory import MemoryQueryEngine
from pysieve.data.page import Page
from pysieve.data.pageable import PageRequest
from pysieve.data.ports.outbound import QueryEnginePort
from pysieve.data.predicate import Predicate
from pysieve.data.registry import Registry
from pysieve.data.schema import SchemaProvider
from pysieve.data.sort import SortChain
from pysieve.data.sort_compiler import SortCompiler


class SieveProcessor:
    """Compiles :class:`SieveQuery` descriptors and drives a :class:`QueryEnginePort`."""

    def __init__(
        self,
        properties: QueryProperties,
        registry: Registry,
        schema: SchemaProvider,
        engine: QueryEnginePort[Any] | None = None,
    ) -> None:
        self._properties = properties
        self._registry = registry
        self._schema = schema
        self._engine: QueryEnginePort[Any] = engine or MemoryQueryEngine()
        self._filters = PredicateCompiler(schema, registry, properties)
        self._sorts = SortCompiler(schema, registry, properties)

    @property
    def properties(self) -> QueryProperties:
        return self._properties

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def schema(self) -> SchemaProvider:
        return self._schema

    @property
    def engine(self) -> QueryEnginePort[Any]:
        return self._engine

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def compile_filters(
        self, filters: Sequence[Filter] | None, entity: type, strict: bool | None = None
    ) -> Predicate | None:
        """Compile filter descriptors; ``None`` when nothing filters."""
        return self._filters.compile(filters, entity, strict)

    def compile_sorts(
        self, sorts: Sequence[SortDescriptor] | None, entity: type, strict: bool | None = None
    ) -> SortChain:
        """Compile sort descriptors into a (possibly empty) chain."""
        return self._sorts.compile(sorts, entity, strict)

    def page_request(self, query: SieveQuery) -> PageRequest:
        """The clamped page/size pair for *query*."""
        return PageRequest.of(query.page, query.page_size, self._properties)

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    def apply_filters(self, source: Any, query: SieveQuery, entity: type, *, engine: QueryEnginePort[Any] | None = None) -> Any:
        predicate = self.compile_filters(query.filters, entity)
        if predicate is None:
            return source
        return (engine or self._engine).where(source, predicate, entity)

    def apply_sort(self, source: Any, query: SieveQuery, entity: type, *, engine: QueryEnginePort[Any] | None = None) -> Any:
        chain = self.compile_sorts(query.sorts, entity)
        if not chain:
            return source
        return (engine or self._engine).order_by(source, chain, entity)

    def apply_pagination(self, source: Any, query: SieveQuery, *, engine: QueryEnginePort[Any] | None = None) -> Any:
        request = self.page_request(query)
        return (engine or self._engine).slice(source, request.offset, request.size)

    def apply(self, source: Any, query: SieveQuery, entity: type, *, engine: QueryEnginePort[Any] | None = None) -> Any:
        """Filter, then sort, then paginate."""
        result = self.apply_without_pagination(source, query, entity, engine=engine)
        return self.apply_pagination(result, query, engine=engine)

    def apply_without_pagination(
        self, source: Any, query: SieveQuery, entity: type, *, engine: QueryEnginePort[Any] | None = None
    ) -> Any:
        """Filter, then sort."""
        result = self.apply_filters(source, query, entity, engine=engine)
        return self.apply_sort(result, query, entity, engine=engine)

    async def count(
        self, source: Any, query: SieveQuery, entity: type, *, engine: QueryEnginePort[Any] | None = None
    ) -> int:
        """Number of records matching the filters of *query*."""
        filtered = self.apply_filters(source, query, entity, engine=engine)
        return await (engine or self._engine).count(filtered)

    async def apply_async(
        self, source: Any, query: SieveQuery, entity: type, *, engine: QueryEnginePort[Any] | None = None
    ) -> Page[Any]:
        """Count the filtered set, then fetch the requested page of it."""
        engine = engine or self._engine
        filtered = self.apply_filters(source, query, entity, engine=engine)
        if isinstance(filtered, Iterator):
            # Counted and fetched from the same source, so read one-shot iterators once.
            filtered = list(filtered)
        total = await engine.count(filtered)
        ordered = self.apply_sort(filtered, query, entity, engine=engine)
        request = self.page_request(query)
        items = await engine.fetch(engine.slice(ordered, request.offset, request.size))
        return Page.of(items, total, request)
