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
"""Sort descriptor compiler: descriptors in, :class:`SortChain` out.

Descriptors are applied in order; the first becomes the primary key and
each later one breaks ties of the keys before it. A registered custom sort
key wins over structural path resolution. Sorting through a collection is
not possible (there is no single value per record), so such paths are
rejected like unknown fields.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from pysieve.config.properties.query import QueryProperties
from pysieve.data.descriptor import SortDescriptor
from pysieve.data.filter_compiler import holds_json, split_json_path
from pysieve.data.policy import FieldPolicy
from pysieve.data.predicate import FieldRef, JsonValue
from pysieve.data.registry import Registry
from pysieve.data.resolver import FieldResolver
from pysieve.data.schema import SchemaProvider
from pysieve.data.sort import CustomKey, SortChain, SortKey
from pysieve.kernel.exceptions import (
    CompileFailureException,
    FieldNotFoundException,
    InvalidJsonPathException,
    SieveException,
)

logger = structlog.get_logger("pysieve.data.compiler")


class SortCompiler:
    """Compile sort descriptors for one schema/registry pair."""

    def __init__(self, schema: SchemaProvider, registry: Registry, properties: QueryProperties) -> None:
        self._resolver = FieldResolver(schema)
        self._policy = FieldPolicy(schema, registry)
        self._registry = registry
        self._properties = properties

    def compile(
        self,
        sorts: Sequence[SortDescriptor] | None,
        root: type,
        strict: bool | None = None,
    ) -> SortChain:
        if strict is None:
            strict = self._properties.throw_on_invalid_fields
        keys: list[SortKey] = []
        for descriptor in sorts or ():
            try:
                keys.append(self._compile_sort(descriptor, root))
            except InvalidJsonPathException:
                raise
            except SieveException as exc:
                if strict:
                    raise
                logger.debug(
                    "sort_skipped",
                    entity=root.__name__,
                    field=descriptor.field,
                    code=exc.code,
                    reason=str(exc),
                )
        return SortChain(tuple(keys))

    def _compile_sort(self, descriptor: SortDescriptor, root: type) -> SortKey:
        path = (descriptor.field or "").strip()
        if not path:
            raise CompileFailureException("Sort descriptor has no field", context={"entity_type": root.__name__})
        if descriptor.json:
            split_json_path(path)

        custom = self._registry.get_custom_sort(root, path)
        if custom is not None:
            return SortKey(CustomKey(path, custom), descriptor.descending)

        self._policy.require_sortable(root, path)

        if descriptor.json:
            column, *keys = split_json_path(path)
            member = self._resolver.resolve_member(root, column)
            if not holds_json(member):
                raise CompileFailureException(
                    f"Field '{member.name}' does not hold a JSON document",
                    context={"path": path, "entity_type": root.__name__},
                )
            return SortKey(JsonValue(FieldRef((member,)), tuple(keys)), descriptor.descending)

        field_path = self._resolver.resolve(root, path)
        if field_path.crosses_collection or field_path.terminal.is_collection:
            raise FieldNotFoundException(path, root)
        if field_path.terminal.is_json:
            raise CompileFailureException(
                f"Field '{path}' holds a JSON document; sort it with a JSON path",
                context={"path": path, "entity_type": root.__name__},
            )
        return SortKey(FieldRef(field_path.members), descriptor.descending)
