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
"""Per-entity field configuration: policy, aliases, vector fields, custom keys.

The registry is assembled once through :class:`RegistryBuilder` and read
concurrently afterwards; it is never mutated after :meth:`RegistryBuilder.build`.

Example::

    builder = RegistryBuilder(TypeHintSchema())
    (
        builder.entity(User)
        .ignore("password_hash")
        .ignore("email", sorts=True, filter=False)
        .as_vector("bio", "simple")
        .has_alias("name", "full_name")
        .add_filter("is_locked", lambda u: u.lockout_end is not None)
        .add_sort("popularity", lambda u: len(u.posts))
    )
    registry = builder.build()
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Generic, TypeVar

from pysieve.data.resolver import AnyElement, FieldPath, FieldResolver
from pysieve.data.schema import SchemaProvider
from pysieve.kernel.exceptions import FieldNotFoundException

T = TypeVar("T")

KeyFunction = Callable[[Any], Any]


@dataclass(frozen=True)
class FieldConfig:
    """Policy for one field of an entity.

    Attributes:
        name: Field path as declared on the entity.
        alias: Alternate public name (metadata only).
        sortable: Whether sort descriptors may target the field.
        filterable: Whether filter descriptors may target the field.
        is_vector: Whether the field was marked with ``as_vector`` (metadata only;
            any field can be searched by a ``vector`` filter leaf).
        vector_language: Text-search configuration; ``None`` means the global default.
    """

    name: str
    alias: str | None = None
    sortable: bool = True
    filterable: bool = True
    is_vector: bool = False
    vector_language: str | None = None


@dataclass(frozen=True)
class EntityConfiguration:
    """Everything registered for one entity type, keyed case-insensitively."""

    entity_type: type
    fields: Mapping[str, FieldConfig] = field(default_factory=dict)
    custom_filters: Mapping[str, KeyFunction] = field(default_factory=dict)
    custom_sorts: Mapping[str, KeyFunction] = field(default_factory=dict)


class Registry:
    """Read-only lookup of entity configurations."""

    def __init__(self, entities: Mapping[type, EntityConfiguration] | None = None) -> None:
        self._entities: Mapping[type, EntityConfiguration] = MappingProxyType(dict(entities or {}))

    @property
    def entities(self) -> Mapping[type, EntityConfiguration]:
        return self._entities

    def entity(self, entity_type: Any) -> EntityConfiguration | None:
        return self._entities.get(entity_type)

    def get(self, entity_type: Any, field_name: str) -> FieldConfig | None:
        """The :class:`FieldConfig` registered for *field_name*, if any."""
        config = self._entities.get(entity_type)
        return config.fields.get(field_name.lower()) if config else None

    def get_custom_filter(self, entity_type: Any, key: str) -> KeyFunction | None:
        config = self._entities.get(entity_type)
        return config.custom_filters.get(key.lower()) if config else None

    def get_custom_sort(self, entity_type: Any, key: str) -> KeyFunction | None:
        config = self._entities.get(entity_type)
        return config.custom_sorts.get(key.lower()) if config else None


class EntityConfigurationBuilder(Generic[T]):
    """Fluent configuration of a single entity type.

    Field names are validated against the schema when registered; an unknown
    field raises :class:`ValueError`.
    """

    def __init__(self, entity_type: type[T], schema: SchemaProvider) -> None:
        self._entity_type = entity_type
        self._resolver = FieldResolver(schema)
        self._fields: dict[str, FieldConfig] = {}
        self._filters: dict[str, KeyFunction] = {}
        self._sorts: dict[str, KeyFunction] = {}

    @property
    def entity_type(self) -> type[T]:
        return self._entity_type

    def ignore(self, field_name: str, sorts: bool = True, filter: bool = True) -> EntityConfigurationBuilder[T]:
        """Exclude *field_name* from sorting and/or filtering."""
        config = self._field(field_name)
        self._store(
            replace(
                config,
                sortable=config.sortable and not sorts,
                filterable=config.filterable and not filter,
            )
        )
        return self

    def add_sort(self, key: str, key_function: KeyFunction) -> EntityConfigurationBuilder[T]:
        """Register a named sort key computed by *key_function*."""
        self._sorts[self._key(key)] = key_function
        return self

    def add_filter(self, key: str, predicate: KeyFunction) -> EntityConfigurationBuilder[T]:
        """Register a named filter; it replaces the descriptor's operator and values."""
        self._filters[self._key(key)] = predicate
        return self

    def as_vector(self, field_name: str, language: str | None = None) -> EntityConfigurationBuilder[T]:
        """Mark *field_name* as a full-text field searched with *language*."""
        self._store(replace(self._field(field_name), is_vector=True, vector_language=language))
        return self

    def has_alias(self, field_name: str, alias: str) -> EntityConfigurationBuilder[T]:
        """Record *alias* as the public name of *field_name*."""
        self._store(replace(self._field(field_name), alias=alias))
        return self

    def build(self) -> EntityConfiguration:
        return EntityConfiguration(
            entity_type=self._entity_type,
            fields=MappingProxyType(dict(self._fields)),
            custom_filters=MappingProxyType(dict(self._filters)),
            custom_sorts=MappingProxyType(dict(self._sorts)),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _field(self, field_name: str) -> FieldConfig:
        try:
            path = self._resolver.resolve(self._entity_type, field_name)
        except FieldNotFoundException as exc:
            raise ValueError(
                f"Cannot configure '{field_name}' on {self._entity_type.__name__}: {exc}"
            ) from exc
        key = field_name.lower()
        existing = self._fields.get(key)
        if existing is not None:
            return existing
        name = ".".join(self._declared_names(path)) if "." in field_name else path.terminal.name
        return FieldConfig(name=name)

    @staticmethod
    def _declared_names(path: FieldPath) -> list[str]:
        names = [m.name for m in path.members]
        last = path.segments[-1]
        if isinstance(last, AnyElement):
            names.extend(EntityConfigurationBuilder._declared_names(last.rest))
        return names

    def _store(self, config: FieldConfig) -> None:
        self._fields[config.name.lower()] = config

    @staticmethod
    def _key(key: str) -> str:
        if not key or not key.strip():
            raise ValueError("Custom filter and sort keys must be non-empty")
        return key.strip().lower()


class RegistryBuilder:
    """Collects :class:`EntityConfigurationBuilder` instances into a :class:`Registry`."""

    def __init__(self, schema: SchemaProvider) -> None:
        self._schema = schema
        self._builders: dict[type, EntityConfigurationBuilder[Any]] = {}

    def entity(self, entity_type: type[T]) -> EntityConfigurationBuilder[T]:
        """The builder for *entity_type*, created on first use."""
        builder = self._builders.get(entity_type)
        if builder is None:
            builder = EntityConfigurationBuilder(entity_type, self._schema)
            self._builders[entity_type] = builder
        return builder

    def build(self) -> Registry:
        return Registry({t: b.build() for t, b in self._builders.items()})
