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
"""Schema providers: per-entity field tables consulted by the field resolver.

A :class:`SchemaProvider` answers one question: given a type and a member
name (matched case-insensitively), what is that member's type, is it
nullable, and is it a collection (and of what)? Field tables are built once
per type and are read-only afterwards.

:class:`TypeHintSchema` derives tables from class annotations, which covers
dataclasses, Pydantic models, attrs classes, and plain annotated classes::

    @dataclass
    class User:
        name: str
        age: int
        email: str | None
        tags: list[str]
        profile: dict
        comments: list[Comment]
"""

from __future__ import annotations

import collections.abc
import threading
import types
import typing
from dataclasses import dataclass
from typing import Any, Protocol, Union, get_args, get_origin, get_type_hints, runtime_checkable

from pydantic import BaseModel

from pysieve.kernel.exceptions import CompileFailureException

_COLLECTION_ORIGINS: frozenset[Any] = frozenset(
    {
        list,
        tuple,
        set,
        frozenset,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Set,
        collections.abc.MutableSet,
        collections.abc.Collection,
        collections.abc.Iterable,
    }
)

_JSON_ORIGINS: frozenset[Any] = frozenset({dict, collections.abc.Mapping, collections.abc.MutableMapping})


class Json:
    """Annotation marker for members holding JSON text or an untyped document.

    ``payload: Annotated[str, Json]`` makes ``payload`` JSON-bearing, so JSON
    path filters may address it while plain text filters may not.
    """


@dataclass(frozen=True)
class MemberInfo:
    """Metadata for one member of an entity type.

    Attributes:
        name: Attribute name as declared on the owner.
        owner: The type declaring the member.
        type: Underlying type with ``Optional`` stripped (``list`` for ``list[str]``).
        nullable: Whether ``None`` is a legal value.
        is_collection: Whether the member holds several elements (never for ``str``).
        element_type: Element type of a collection member.
        is_json: Whether the member holds a JSON document (mapping or JSON text).
        is_relationship: Whether the member navigates to another mapped entity.
    """

    name: str
    owner: type
    type: Any
    nullable: bool = False
    is_collection: bool = False
    element_type: Any = None
    is_json: bool = False
    is_relationship: bool = False

    def get(self, instance: Any) -> Any:
        """Read the member from *instance*."""
        return getattr(instance, self.name)


@runtime_checkable
class SchemaProvider(Protocol):
    """Type-metadata port consumed by the field resolver."""

    def find_member(self, entity_type: Any, name: str) -> MemberInfo | None: ...


class TypeHintSchema:
    """Schema provider built from type hints (fields and annotated properties)."""

    def __init__(self) -> None:
        self._tables: dict[Any, dict[str, MemberInfo]] = {}
        self._lock = threading.Lock()

    def find_member(self, entity_type: Any, name: str) -> MemberInfo | None:
        """Find *name* on *entity_type*, ignoring case."""
        if not isinstance(entity_type, type) or entity_type.__module__ == "builtins":
            return None
        return self.members(entity_type).get(name.lower())

    def members(self, entity_type: type) -> dict[str, MemberInfo]:
        """The case-folded field table of *entity_type*."""
        table = self._tables.get(entity_type)
        if table is None:
            with self._lock:
                table = self._tables.get(entity_type)
                if table is None:
                    table = self._build_table(entity_type)
                    self._tables[entity_type] = table
        return table

    @staticmethod
    def _build_table(entity_type: type) -> dict[str, MemberInfo]:
        try:
            hints = _model_hints(entity_type) if issubclass(entity_type, BaseModel) else get_type_hints(
                entity_type, include_extras=True
            )
        except (NameError, TypeError) as exc:
            raise CompileFailureException(
                f"Cannot resolve type hints of '{entity_type.__name__}': {exc}",
                context={"entity_type": entity_type.__name__},
            ) from exc

        table: dict[str, MemberInfo] = {}
        for name, annotation in hints.items():
            if name.startswith("_") or get_origin(annotation) is typing.ClassVar:
                continue
            table[name.lower()] = describe_member(entity_type, name, annotation)

        # Read-only properties with a return annotation behave like fields.
        for klass in reversed(entity_type.__mro__):
            if klass is object or klass.__module__.startswith("pydantic"):
                continue
            for name, attr in vars(klass).items():
                if isinstance(attr, property) and not name.startswith("_") and attr.fget is not None:
                    try:
                        prop_hints = get_type_hints(attr.fget, include_extras=True)
                    except (NameError, TypeError):
                        continue
                    if "return" in prop_hints:
                        table[name.lower()] = describe_member(entity_type, name, prop_hints["return"])
        return table


def strip_optional(annotation: Any) -> tuple[Any, bool]:
    """Split ``T | None`` into ``(T, True)``; other annotations pass through."""
    origin = get_origin(annotation)
    if origin is typing.Annotated:
        return strip_optional(get_args(annotation)[0])
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        nullable = len(args) != len(get_args(annotation))
        if len(args) == 1:
            inner, inner_nullable = strip_optional(args[0])
            return inner, nullable or inner_nullable
        return object, nullable
    if annotation is Any:
        return object, True
    return annotation, False


def describe_member(owner: type, name: str, annotation: Any) -> MemberInfo:
    """Classify an annotation into a :class:`MemberInfo`."""
    underlying, nullable = strip_optional(annotation)
    origin = get_origin(underlying)

    if _has_json_marker(annotation):
        return MemberInfo(name=name, owner=owner, type=underlying, nullable=nullable, is_json=True)

    if underlying in (str, bytes):
        return MemberInfo(name=name, owner=owner, type=underlying, nullable=nullable)

    if underlying in _JSON_ORIGINS or origin in _JSON_ORIGINS:
        return MemberInfo(name=name, owner=owner, type=dict, nullable=nullable, is_json=True)

    if underlying in _COLLECTION_ORIGINS or origin in _COLLECTION_ORIGINS:
        args = get_args(underlying)
        element: Any = object
        if args and args[0] is not Ellipsis:
            element, _ = strip_optional(args[0])
        return MemberInfo(
            name=name,
            owner=owner,
            type=origin or underlying,
            nullable=nullable,
            is_collection=True,
            element_type=element,
        )

    return MemberInfo(name=name, owner=owner, type=origin or underlying, nullable=nullable)


def _has_json_marker(annotation: Any) -> bool:
    origin = get_origin(annotation)
    if origin is typing.Annotated:
        return any(m is Json or isinstance(m, Json) for m in annotation.__metadata__) or _has_json_marker(
            get_args(annotation)[0]
        )
    if origin is Union or origin is types.UnionType:
        return any(_has_json_marker(a) for a in get_args(annotation))
    return False


def _model_hints(model: type[BaseModel]) -> dict[str, Any]:
    # Pydantic keeps Annotated metadata on the field, not on the annotation.
    hints: dict[str, Any] = {}
    for name, info in model.model_fields.items():
        annotation = info.annotation
        hints[name] = typing.Annotated[(annotation, *info.metadata)] if info.metadata else annotation
    return hints
