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
"""Backend-neutral sort chain produced by the sort compiler."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, TypeVar

from pysieve.data.predicate import FieldRef, JsonValue

T = TypeVar("T")


@dataclass(frozen=True)
class CustomKey:
    """A registered sort key; ``func`` receives the record or the mapped class."""

    name: str
    func: Callable[[Any], Any]

    def __str__(self) -> str:
        return f"custom({self.name})"


@dataclass(frozen=True)
class SortKey:
    key: FieldRef | JsonValue | CustomKey
    descending: bool = False

    def __str__(self) -> str:
        return f"{self.key} {'desc' if self.descending else 'asc'}"


KeyReader = Callable[[SortKey, Any], Any]


def compare_values(left: Any, right: Any) -> int:
    """Three-way comparison placing ``None`` after every other value."""
    if left is None or right is None:
        return (left is None) - (right is None)
    try:
        if left < right:
            return -1
        if right < left:
            return 1
        return 0
    except TypeError:
        # Mixed types fall back to a deterministic textual order.
        a, b = (type(left).__name__, str(left)), (type(right).__name__, str(right))
        return (a > b) - (a < b)


@dataclass(frozen=True)
class SortChain:
    """Ordered sort keys; the first key is primary, later keys break ties.

    Ascending keys place ``None`` last and descending keys place it first,
    mirroring the default null ordering of PostgreSQL.
    """

    keys: tuple[SortKey, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def __iter__(self) -> Iterator[SortKey]:
        return iter(self.keys)

    def then(self, key: SortKey) -> SortChain:
        return SortChain(self.keys + (key,))

    def comparator(self, read: KeyReader) -> Callable[[Any, Any], int]:
        """A ``cmp`` function comparing two records key by key."""

        def compare(a: Any, b: Any) -> int:
            for key in self.keys:
                result = compare_values(read(key, a), read(key, b))
                if result:
                    return -result if key.descending else result
            return 0

        return compare

    def sort(self, items: Iterable[T], read: KeyReader) -> list[T]:
        """Stable sort of *items*; equal records keep their input order."""
        if not self.keys:
            return list(items)
        return sorted(items, key=cmp_to_key(self.comparator(read)))

    def __str__(self) -> str:
        return ", ".join(str(k) for k in self.keys)
