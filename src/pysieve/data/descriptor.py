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
"""Filter, sort, and query descriptors supplied by callers.

Descriptors are transient: they are built per request, consumed once by the
compilers, then discarded. A filter is either a :class:`FilterLeaf` naming a
``field``/``operator``/``values`` triple or an :class:`OrGroup` of child
filters; the two shapes are separate types so a descriptor can never be both.

Example::

    query = SieveQuery(
        page=1,
        page_size=10,
        sorts=(SortDescriptor("name"), SortDescriptor("age", "desc")),
        filters=(
            FilterLeaf("name", "==", ("alice", "bob")),
            OrGroup((FilterLeaf("age", ">", (35,)), FilterLeaf("name", "@=*", ("li",)))),
        ),
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

Direction = Literal["asc", "desc"]


@dataclass(frozen=True)
class FilterLeaf:
    """A single ``field operator values`` filter.

    Attributes:
        field: Dotted field path, matched case-insensitively.
        operator: Operator token (``==``, ``@=*``, ``len>`` ...). ``None`` means ``==``.
        values: Raw values; several values combine with OR (AND for ``!=``).
        json: Treat the first path segment as a JSON document and the rest as keys.
        vector: Hand the values to the full-text backend as search terms.
    """

    field: str
    operator: str | None = "=="
    values: Sequence[Any] | None = ()
    json: bool = False
    vector: bool = False

    def __post_init__(self) -> None:
        # Lists are accepted for convenience but stored as tuples.
        if self.values is not None and not isinstance(self.values, tuple):
            object.__setattr__(self, "values", tuple(self.values))

    def with_field(self, field: str) -> FilterLeaf:
        """Same leaf, rebased onto another field path."""
        return FilterLeaf(field, self.operator, self.values, self.json, self.vector)


@dataclass(frozen=True)
class OrGroup:
    """Child filters of which at least one must match."""

    filters: Sequence[Filter] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.filters, tuple):
            object.__setattr__(self, "filters", tuple(self.filters))


Filter: TypeAlias = FilterLeaf | OrGroup


@dataclass(frozen=True)
class SortDescriptor:
    """A single sort key: dotted field path, direction, and JSON flag."""

    field: str
    direction: str = "asc"
    json: bool = False

    @property
    def descending(self) -> bool:
        """``desc`` in any case means descending; everything else is ascending."""
        return (self.direction or "").lower() == "desc"


@dataclass(frozen=True)
class SieveQuery:
    """A complete request: pagination, sorting, and filtering."""

    page: int | None = None
    page_size: int | None = None
    sorts: Sequence[SortDescriptor] = field(default_factory=tuple)
    filters: Sequence[Filter] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.sorts, tuple):
            object.__setattr__(self, "sorts", tuple(self.sorts or ()))
        if not isinstance(self.filters, tuple):
            object.__setattr__(self, "filters", tuple(self.filters or ()))
